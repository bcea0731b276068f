"""Point git at the active identity."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from multigit.errors import GitConfigError
from multigit.models import Account
from multigit.ssh_config import DEFAULT_HOST

logger = logging.getLogger(__name__)


class GitConfigurator(Protocol):
    def apply(self, account: Account, key_path: Path | None, local: bool = False) -> None: ...


class GitConfig:
    """Rewrite ``git config`` for an account via the ``git`` binary."""

    def __init__(self, host: str = DEFAULT_HOST, command: str = "git") -> None:
        self.host = host
        self.command = command

    def run(self, args: Sequence[str]) -> None:
        try:
            result = subprocess.run(
                [self.command, *args], capture_output=True, text=True, check=False
            )
        except OSError as exc:
            raise GitConfigError(f"Failed to run {self.command}: {exc}") from exc
        if result.returncode != 0:
            raise GitConfigError(
                f"git {' '.join(args)} failed: {result.stderr.strip()}"
            )

    def apply(self, account: Account, key_path: Path | None, local: bool = False) -> None:
        """Set user name/email, and for global scope the SSH settings too."""
        scope = [] if local else ["--global"]
        self.run(["config", *scope, "user.name", account.name])
        self.run(["config", *scope, "user.email", account.email])

        if local:
            logger.info("Set local git identity to %s", account.name)
            return

        self.run(
            [
                "config",
                "--global",
                f"url.ssh://git@{self.host}/.insteadOf",
                f"https://{self.host}/",
            ]
        )
        self.run(["config", "--global", "push.default", "current"])
        if key_path is not None:
            self.run(
                [
                    "config",
                    "--global",
                    "core.sshCommand",
                    f"ssh -i {key_path} -F /dev/null",
                ]
            )
        logger.info("Set global git identity to %s", account.name)


__all__ = ["GitConfig", "GitConfigurator"]

"""ssh-agent collaborator."""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Protocol

from multigit.errors import AgentError
from multigit.keys import find_private_key

logger = logging.getLogger(__name__)


class KeyAgent(Protocol):
    """Anything that can load an identity's private key into an agent."""

    def register_key(self, identity_name: str) -> None: ...


class SSHAgent:
    """Register keys by running ``ssh-add``.

    The subprocess is not given a timeout; callers that need one should
    wrap this object.
    """

    def __init__(self, ssh_dir: Path | str, command: str = "ssh-add") -> None:
        self.ssh_dir = Path(ssh_dir)
        self.command = command

    def register_key(self, identity_name: str) -> None:
        key_path = find_private_key(self.ssh_dir, identity_name)
        if key_path is None:
            raise AgentError(f"No private key found for '{identity_name}' in {self.ssh_dir}")
        if not os.environ.get("SSH_AUTH_SOCK"):
            raise AgentError("SSH agent is not running (SSH_AUTH_SOCK is not set)")

        try:
            result = subprocess.run(
                [self.command, str(key_path)],
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as exc:
            raise AgentError(f"Failed to run {self.command}: {exc}") from exc

        if result.returncode != 0:
            output = (result.stderr or result.stdout).strip()
            raise AgentError(f"Failed to add {key_path} to SSH agent: {output}")
        logger.info("Added %s to SSH agent", key_path)


__all__ = ["KeyAgent", "SSHAgent"]

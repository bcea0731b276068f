"""Tests for the subprocess collaborators — SSHAgent and GitConfig."""

from __future__ import annotations

import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from multigit.agent import SSHAgent
from multigit.errors import AgentError, GitConfigError
from multigit.gitconfig import GitConfig
from multigit.models import Account


def _completed(returncode: int = 0, stderr: str = "") -> subprocess.CompletedProcess[str]:
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout="", stderr=stderr)


# ===========================================================================
# SSHAgent
# ===========================================================================


class TestSSHAgent:
    @pytest.fixture()
    def key_dir(self, tmp_path: Path) -> Path:
        (tmp_path / "id_ed25519_work").write_text("key")
        return tmp_path

    def test_runs_ssh_add_with_key_path(
        self, key_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SSH_AUTH_SOCK", "/tmp/agent.sock")
        with patch("multigit.agent.subprocess.run", return_value=_completed()) as run:
            SSHAgent(key_dir).register_key("work")
        args = run.call_args.args[0]
        assert args == ["ssh-add", str(key_dir / "id_ed25519_work")]

    def test_missing_key_raises(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SSH_AUTH_SOCK", "/tmp/agent.sock")
        with pytest.raises(AgentError, match="No private key"):
            SSHAgent(tmp_path).register_key("work")

    def test_agent_not_running(self, key_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("SSH_AUTH_SOCK", raising=False)
        with patch("multigit.agent.subprocess.run") as run:
            with pytest.raises(AgentError, match="not running"):
                SSHAgent(key_dir).register_key("work")
        run.assert_not_called()

    def test_ssh_add_failure(self, key_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SSH_AUTH_SOCK", "/tmp/agent.sock")
        with patch(
            "multigit.agent.subprocess.run",
            return_value=_completed(1, "Error loading key: bad passphrase"),
        ):
            with pytest.raises(AgentError, match="bad passphrase"):
                SSHAgent(key_dir).register_key("work")

    def test_missing_binary(self, key_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SSH_AUTH_SOCK", "/tmp/agent.sock")
        with patch("multigit.agent.subprocess.run", side_effect=FileNotFoundError("ssh-add")):
            with pytest.raises(AgentError, match="Failed to run"):
                SSHAgent(key_dir).register_key("work")


# ===========================================================================
# GitConfig
# ===========================================================================


class TestGitConfig:
    account = Account(name="work", email="a@b.com")

    def test_local_sets_only_identity(self) -> None:
        with patch("multigit.gitconfig.subprocess.run", return_value=_completed()) as run:
            GitConfig().apply(self.account, Path("/k/id"), local=True)
        calls = [c.args[0] for c in run.call_args_list]
        assert calls == [
            ["git", "config", "user.name", "work"],
            ["git", "config", "user.email", "a@b.com"],
        ]

    def test_global_sets_ssh_settings(self) -> None:
        with patch("multigit.gitconfig.subprocess.run", return_value=_completed()) as run:
            GitConfig(host="gitlab.com").apply(self.account, Path("/k/id"))
        calls = [c.args[0] for c in run.call_args_list]
        assert calls[0] == ["git", "config", "--global", "user.name", "work"]
        assert [
            "git",
            "config",
            "--global",
            "url.ssh://git@gitlab.com/.insteadOf",
            "https://gitlab.com/",
        ] in calls
        assert ["git", "config", "--global", "push.default", "current"] in calls
        assert calls[-1] == [
            "git",
            "config",
            "--global",
            "core.sshCommand",
            "ssh -i /k/id -F /dev/null",
        ]

    def test_global_without_key_skips_ssh_command(self) -> None:
        with patch("multigit.gitconfig.subprocess.run", return_value=_completed()) as run:
            GitConfig().apply(self.account, None)
        assert all("core.sshCommand" not in c.args[0] for c in run.call_args_list)

    def test_failure_raises(self) -> None:
        with patch(
            "multigit.gitconfig.subprocess.run",
            return_value=_completed(1, "could not lock config file"),
        ):
            with pytest.raises(GitConfigError, match="could not lock"):
                GitConfig().apply(self.account, None)

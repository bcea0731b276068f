"""Shared test fixtures for multigit."""

from __future__ import annotations

from pathlib import Path

import pytest

from multigit.errors import AgentError
from multigit.keys import KeyPairCodec
from multigit.lifecycle import IdentityLifecycle
from multigit.models import Account, KeyAlgorithm, KeyPair
from multigit.ssh_config import HostAliasStore
from multigit.store import AccountStore

# ---------------------------------------------------------------------------
# Collaborator fakes
# ---------------------------------------------------------------------------


class FakeAgent:
    """Records registrations instead of running ssh-add."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.registered: list[str] = []

    def register_key(self, identity_name: str) -> None:
        if self.fail:
            raise AgentError("agent refused the key")
        self.registered.append(identity_name)


class FakeGit:
    """Records git settings instead of running git."""

    def __init__(self) -> None:
        self.applied: list[tuple[str, Path | None, bool]] = []

    def apply(self, account: Account, key_path: Path | None, local: bool = False) -> None:
        self.applied.append((account.name, key_path, local))


# ---------------------------------------------------------------------------
# Key fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def codec() -> KeyPairCodec:
    """A shared KeyPairCodec (stateless, safe to share)."""
    return KeyPairCodec()


@pytest.fixture(scope="session")
def ed25519_pair(codec: KeyPairCodec) -> KeyPair:
    return codec.generate(KeyAlgorithm.ed25519, "work <a@b.com>")


@pytest.fixture(scope="session")
def rsa_pair(codec: KeyPairCodec) -> KeyPair:
    """A 4096-bit RSA pair, generated once because it is slow."""
    return codec.generate(KeyAlgorithm.rsa, "work <a@b.com>")


# ---------------------------------------------------------------------------
# Filesystem layout
# ---------------------------------------------------------------------------


@pytest.fixture()
def home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """An isolated home directory; ``MULTIGIT_CONFIG`` is unset."""
    monkeypatch.delenv("MULTIGIT_CONFIG", raising=False)
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture()
def ssh_dir(home: Path) -> Path:
    return home / ".ssh"


@pytest.fixture()
def config_path(home: Path) -> Path:
    return home / ".config" / "multigit" / "config.json"


@pytest.fixture()
def store(config_path: Path) -> AccountStore:
    return AccountStore(config_path)


@pytest.fixture()
def aliases(ssh_dir: Path) -> HostAliasStore:
    return HostAliasStore(ssh_dir / "config")


@pytest.fixture()
def agent() -> FakeAgent:
    return FakeAgent()


@pytest.fixture()
def git() -> FakeGit:
    return FakeGit()


@pytest.fixture()
def lifecycle(
    store: AccountStore,
    aliases: HostAliasStore,
    agent: FakeAgent,
    git: FakeGit,
    ssh_dir: Path,
    codec: KeyPairCodec,
) -> IdentityLifecycle:
    return IdentityLifecycle(
        store=store, aliases=aliases, agent=agent, ssh_dir=ssh_dir, codec=codec, git=git
    )

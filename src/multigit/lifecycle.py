"""Create, switch, list and delete identities."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from pathlib import Path

from multigit.agent import KeyAgent, SSHAgent
from multigit.errors import (
    AccountNotFoundError,
    AgentRegistrationError,
    AliasConfigError,
    DuplicateAccountError,
    KeyGenError,
    MultigitError,
    PersistError,
    ValidationError,
)
from multigit.gitconfig import GitConfig, GitConfigurator
from multigit.keys import (
    KeyPairCodec,
    default_key_path,
    find_private_key,
    key_comment,
    resolve_algorithm,
)
from multigit.models import (
    Account,
    ConfigDocument,
    IdentityStatus,
    KeyAlgorithm,
    KeyPair,
)
from multigit.ssh_config import DEFAULT_HOST, HostAliasStore
from multigit.store import AccountStore, default_config_path

logger = logging.getLogger(__name__)

PersistFunc = Callable[[ConfigDocument], None]

_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


def validate_identity(name: str, email: str) -> None:
    """Check name and email shape; the first failing check wins."""
    if not name:
        raise ValidationError("name", "account name cannot be empty")
    if not _NAME_PATTERN.match(name):
        raise ValidationError(
            "name", "account name may only contain letters, digits, '-' and '_'"
        )
    if not email:
        raise ValidationError("email", "email cannot be empty")
    if "@" not in email:
        raise ValidationError("email", "invalid email format")


class IdentityLifecycle:
    """Compose key files, SSH config entries and the account store.

    Multi-step operations are not rolled back: when a step fails the
    earlier steps stay done, and the raised error names the failed step.

    Args:
        store: Where accounts are loaded from.
        aliases: The SSH config editor.
        agent: Registers new keys with an SSH agent.
        ssh_dir: Directory holding ``id_<algorithm>_<name>`` key files.
        codec: Key generator, a default :class:`KeyPairCodec` if omitted.
        git: Applies git settings on :meth:`switch_identity`.
        persist: Save function; defaults to ``store.save``.
    """

    def __init__(
        self,
        store: AccountStore,
        aliases: HostAliasStore,
        agent: KeyAgent,
        ssh_dir: Path | str,
        codec: KeyPairCodec | None = None,
        git: GitConfigurator | None = None,
        persist: PersistFunc | None = None,
    ) -> None:
        self.store = store
        self.aliases = aliases
        self.agent = agent
        self.ssh_dir = Path(ssh_dir)
        self.codec = codec or KeyPairCodec()
        self.git = git
        self.persist = persist or store.save

    @classmethod
    def default(cls, home: Path | str | None = None, host: str = DEFAULT_HOST) -> IdentityLifecycle:
        """Wire the real stores and collaborators under *home* (``~`` by default)."""
        home = Path(home) if home else Path.home()
        ssh_dir = home / ".ssh"
        return cls(
            store=AccountStore(default_config_path(home)),
            aliases=HostAliasStore(ssh_dir / "config", host=host),
            agent=SSHAgent(ssh_dir),
            ssh_dir=ssh_dir,
            git=GitConfig(host=host),
        )

    def create_identity(
        self,
        name: str,
        email: str,
        passphrase: str = "",
        algorithm: KeyAlgorithm = KeyAlgorithm.ed25519,
        persist: PersistFunc | None = None,
    ) -> KeyPair:
        """Create key files, agent registration, SSH config entry and account.

        Raises:
            ValidationError: bad name or email; nothing was touched.
            DuplicateAccountError: the name is taken; nothing was touched.
            UnsupportedAlgorithmError: unknown algorithm; nothing was touched.
            KeyGenError: generating or writing the key pair failed.
            AgentRegistrationError: the agent refused the key.
            AliasConfigError: the SSH config entry could not be added.
            PersistError: the account could not be saved.
        """
        validate_identity(name, email)

        document = self.store.load()
        if name in document.accounts:
            raise DuplicateAccountError(name)

        algorithm = resolve_algorithm(algorithm)
        key_path = default_key_path(self.ssh_dir, name, algorithm)
        key_pair = self.codec.generate(algorithm, key_comment(name, email), passphrase)
        try:
            self.codec.write_to_files(key_pair, key_path)
        except MultigitError as exc:
            raise KeyGenError(f"Failed to write key pair: {exc}") from exc

        try:
            self.agent.register_key(name)
        except Exception as exc:
            raise AgentRegistrationError(f"Failed to add SSH key to agent: {exc}") from exc

        try:
            self.aliases.add_entry(name, key_path)
        except MultigitError as exc:
            raise AliasConfigError(f"Failed to add SSH config entry: {exc}") from exc

        document.accounts[name] = Account(name=name, email=email)
        save = persist or self.persist
        try:
            save(document)
        except Exception as exc:
            raise PersistError(f"Failed to save config: {exc}") from exc

        logger.info("Account '%s' created", name)
        return key_pair

    def delete_identity(self, name: str) -> None:
        """Remove an identity; only the final save can fail the operation.

        Raises:
            AccountNotFoundError: no such account; nothing was touched.
            PersistError: the updated config could not be saved.
        """
        document = self.store.load()
        if name not in document.accounts:
            raise AccountNotFoundError(name)

        for algorithm in KeyAlgorithm:
            try:
                self.codec.delete_files(default_key_path(self.ssh_dir, name, algorithm))
            except MultigitError as exc:
                logger.warning("Failed to delete SSH key: %s", exc)

        try:
            outcome = self.aliases.remove_entry(name)
            logger.debug("SSH config entry for %s: %s", name, outcome.value)
        except MultigitError as exc:
            logger.warning("Failed to remove SSH config entry: %s", exc)

        del document.accounts[name]
        if document.active_account == name:
            document.active_account = ""

        try:
            self.persist(document)
        except Exception as exc:
            raise PersistError(f"Failed to save config: {exc}") from exc
        logger.info("Account '%s' deleted", name)

    def switch_identity(self, name: str, local: bool = False) -> Account:
        """Load the identity's key into the agent, point git at it, mark it active."""
        document = self.store.load()
        account = document.accounts.get(name)
        if account is None:
            raise AccountNotFoundError(name)

        try:
            self.agent.register_key(name)
        except Exception as exc:
            raise AgentRegistrationError(f"Failed to add SSH key to agent: {exc}") from exc

        if self.git is not None:
            self.git.apply(account, find_private_key(self.ssh_dir, name), local)

        document.active_account = name
        try:
            self.persist(document)
        except Exception as exc:
            raise PersistError(f"Failed to save config: {exc}") from exc
        logger.info("Switched to account '%s'", name)
        return account

    def active_identity(self) -> IdentityStatus:
        """Status row for the active account; raises if none is active."""
        name, account = self.store.get_active_account()
        key_path = find_private_key(self.ssh_dir, name)
        return IdentityStatus(
            account=account, active=True, key_path=str(key_path) if key_path else None
        )

    def list_identities(self) -> list[IdentityStatus]:
        document = self.store.load()
        rows = []
        for name in sorted(document.accounts):
            key_path = find_private_key(self.ssh_dir, name)
            rows.append(
                IdentityStatus(
                    account=document.accounts[name],
                    active=name == document.active_account,
                    key_path=str(key_path) if key_path else None,
                )
            )
        return rows


__all__ = ["IdentityLifecycle", "PersistFunc", "validate_identity"]

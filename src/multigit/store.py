"""Account and profile store with JSON file persistence."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from multigit.errors import (
    ActiveAccountNotFoundError,
    ConfigParseError,
    DuplicateProfileError,
    FileOperationError,
    NoActiveAccountError,
    ProfileNotFoundError,
)
from multigit.fileutil import PRIVATE_FILE_MODE, ensure_private_dir, replace_atomically
from multigit.models import Account, ConfigDocument, Profile

logger = logging.getLogger(__name__)

TOOL_NAME = "multigit"
CONFIG_ENV_VAR = "MULTIGIT_CONFIG"


def default_config_path(home: Path | None = None) -> Path:
    """``$MULTIGIT_CONFIG`` or ``<home>/.config/multigit/config.json``."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return (home or Path.home()) / ".config" / TOOL_NAME / "config.json"


class AccountStore:
    """Whole-document persistence of accounts and profiles.

    Nothing is cached between calls: every operation re-reads the file,
    mutates the parsed document and writes the whole document back.
    Before each write, active account/profile names that point at missing
    entries are cleared.
    """

    def __init__(self, path: Path | str | None = None) -> None:
        self.path = Path(path) if path else default_config_path()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> ConfigDocument:
        """Load the document, degrading to an empty one on any problem.

        A missing, unreadable or malformed file is treated as "no config
        yet" so the tool can always start.
        """
        if not self.path.exists():
            return ConfigDocument()
        try:
            return self.load_from_file(self.path)
        except (FileOperationError, ConfigParseError) as exc:
            logger.warning("Ignoring unusable config file: %s", exc)
            return ConfigDocument()

    def save(self, document: ConfigDocument) -> None:
        self.save_to_file(document, self.path)

    @staticmethod
    def load_from_file(path: Path | str) -> ConfigDocument:
        """Load the document at *path*, raising on any problem.

        Raises:
            FileOperationError: if the file cannot be read.
            ConfigParseError: if it is not a valid config document.
        """
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise FileOperationError(path, f"Failed to read config file ({exc})") from exc
        try:
            raw = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ConfigParseError(path, f"not valid UTF-8 ({exc})") from exc
        try:
            return ConfigDocument.model_validate_json(raw)
        except PydanticValidationError as exc:
            raise ConfigParseError(path, str(exc)) from exc

    @staticmethod
    def save_to_file(document: ConfigDocument, path: Path | str) -> None:
        """Heal *document* in place and write it to *path* with mode 0o600."""
        path = Path(path)
        document.heal()
        ensure_private_dir(path.parent)
        replace_atomically(
            path,
            document.model_dump_json(indent=2).encode("utf-8"),
            PRIVATE_FILE_MODE,
        )
        logger.debug("Saved config to %s", path)

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def get_active_account(self) -> tuple[str, Account]:
        """Return ``(name, account)`` for the active account.

        Raises:
            NoActiveAccountError: if no account is active.
            ActiveAccountNotFoundError: if the active name has no account,
                which only happens when the file was edited by hand.
        """
        document = self.load()
        name = document.active_account
        if not name:
            raise NoActiveAccountError()
        account = document.accounts.get(name)
        if account is None:
            raise ActiveAccountNotFoundError(name)
        return name, account

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def list_profiles(self) -> list[Profile]:
        document = self.load()
        return [document.profiles[name] for name in sorted(document.profiles)]

    def create_profile(self, name: str) -> Profile:
        document = self.load()
        if name in document.profiles:
            raise DuplicateProfileError(name)
        profile = Profile(name=name)
        document.profiles[name] = profile
        self.save(document)
        logger.info("Created profile %s", name)
        return profile

    def delete_profile(self, name: str) -> None:
        document = self.load()
        if name not in document.profiles:
            raise ProfileNotFoundError(name)
        del document.profiles[name]
        if document.active_profile == name:
            document.active_profile = ""
        self.save(document)
        logger.info("Deleted profile %s", name)

    def use_profile(self, name: str) -> None:
        document = self.load()
        if name not in document.profiles:
            raise ProfileNotFoundError(name)
        document.active_profile = name
        self.save(document)

    def set_profile_member(self, profile_name: str, account_name: str, enabled: bool = True) -> None:
        """Add *account_name* to a profile, or toggle its enabled flag.

        The account does not have to exist.
        """
        document = self.load()
        profile = document.profiles.get(profile_name)
        if profile is None:
            raise ProfileNotFoundError(profile_name)
        profile.accounts[account_name] = enabled
        self.save(document)

    def remove_profile_member(self, profile_name: str, account_name: str) -> bool:
        """Drop *account_name* from a profile. Returns whether it was a member."""
        document = self.load()
        profile = document.profiles.get(profile_name)
        if profile is None:
            raise ProfileNotFoundError(profile_name)
        if profile.accounts.pop(account_name, None) is None:
            return False
        self.save(document)
        return True


__all__ = ["CONFIG_ENV_VAR", "AccountStore", "default_config_path"]

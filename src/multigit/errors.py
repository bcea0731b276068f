"""Exception hierarchy for multigit."""

from __future__ import annotations

from pathlib import Path


class MultigitError(Exception):
    """Base class for every error raised by multigit."""


class ValidationError(MultigitError):
    """Input rejected before any side effect took place."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field


class DuplicateAccountError(MultigitError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Account '{name}' already exists")
        self.name = name


class DuplicateAliasEntryError(MultigitError):
    def __init__(self, name: str, path: Path) -> None:
        super().__init__(f"SSH config entry for '{name}' already exists in {path}")
        self.name = name
        self.path = path


class DuplicateProfileError(MultigitError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Profile '{name}' already exists")
        self.name = name


class FileOperationError(MultigitError):
    """A filesystem call failed; ``path`` names the offending file."""

    def __init__(self, path: Path | str, message: str) -> None:
        super().__init__(f"{message}: {path}")
        self.path = Path(path)


class ConfigParseError(MultigitError):
    def __init__(self, path: Path | str, message: str) -> None:
        super().__init__(f"Invalid config file {path}: {message}")
        self.path = Path(path)


class AccountNotFoundError(MultigitError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Account '{name}' does not exist")
        self.name = name


class ActiveAccountNotFoundError(MultigitError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Active account '{name}' not found in config")
        self.name = name


class NoActiveAccountError(MultigitError):
    def __init__(self) -> None:
        super().__init__("No active account")


class ProfileNotFoundError(MultigitError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Profile '{name}' does not exist")
        self.name = name


class UnsupportedAlgorithmError(MultigitError, ValueError):
    def __init__(self, algorithm: object) -> None:
        super().__init__(f"Unsupported key algorithm: {algorithm!r}")
        self.algorithm = algorithm


class KeyGenError(MultigitError):
    """Key generation, encryption or writing the key files failed."""

    step = "key generation"


class AgentError(MultigitError):
    """The ssh-agent collaborator could not register a key."""


class GitConfigError(MultigitError):
    """A ``git config`` invocation failed."""


class AgentRegistrationError(MultigitError):
    step = "agent registration"


class AliasConfigError(MultigitError):
    step = "ssh config entry"


class PersistError(MultigitError):
    step = "saving config"


__all__ = [
    "AccountNotFoundError",
    "ActiveAccountNotFoundError",
    "AgentError",
    "AgentRegistrationError",
    "AliasConfigError",
    "ConfigParseError",
    "DuplicateAccountError",
    "DuplicateAliasEntryError",
    "DuplicateProfileError",
    "FileOperationError",
    "GitConfigError",
    "KeyGenError",
    "MultigitError",
    "NoActiveAccountError",
    "PersistError",
    "ProfileNotFoundError",
    "UnsupportedAlgorithmError",
    "ValidationError",
]

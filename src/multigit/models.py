"""Pydantic models for multigit."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class KeyAlgorithm(str, Enum):
    """SSH key algorithm choices."""

    rsa = "rsa"
    ed25519 = "ed25519"


class RemovalOutcome(str, Enum):
    """Result of removing an identity's block from the SSH config."""

    removed = "removed"
    not_found = "not_found"


class KeyPair(BaseModel):
    """Freshly generated key material in its two on-disk encodings."""

    model_config = ConfigDict(frozen=True)

    algorithm: KeyAlgorithm
    private_key_bytes: bytes  # PEM, encrypted when a passphrase was given
    public_key_line: str  # "<algo-id> <base64> <comment>"
    comment: str


class Account(BaseModel):
    """A named identity and the email used for its commits."""

    name: str
    email: str


class Profile(BaseModel):
    """A named group of accounts.

    Member names are not checked against the configured accounts, so a
    profile may keep referring to an account that was deleted.
    """

    name: str
    accounts: dict[str, bool] = Field(default_factory=dict)

    @field_validator("accounts", mode="before")
    @classmethod
    def _null_accounts(cls, value: Any) -> Any:
        return {} if value is None else value


class ConfigDocument(BaseModel):
    """Root of the persisted ``config.json`` document."""

    accounts: dict[str, Account] = Field(default_factory=dict)
    active_account: str = ""
    profiles: dict[str, Profile] = Field(default_factory=dict)
    active_profile: str = ""

    @field_validator("accounts", "profiles", mode="before")
    @classmethod
    def _null_maps(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("active_account", "active_profile", mode="before")
    @classmethod
    def _null_names(cls, value: Any) -> Any:
        return "" if value is None else value

    def heal(self) -> None:
        """Clear active references that point at entries which no longer exist."""
        if self.active_account and self.active_account not in self.accounts:
            self.active_account = ""
        if self.active_profile and self.active_profile not in self.profiles:
            self.active_profile = ""


class IdentityStatus(BaseModel):
    """One row of ``multigit list``."""

    account: Account
    active: bool = False
    key_path: str | None = None


__all__ = [
    "Account",
    "ConfigDocument",
    "IdentityStatus",
    "KeyAlgorithm",
    "KeyPair",
    "Profile",
    "RemovalOutcome",
]

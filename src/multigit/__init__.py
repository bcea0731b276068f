"""multigit: Manage several SSH identities for one git host."""

from multigit.errors import MultigitError
from multigit.keys import KeyPairCodec
from multigit.lifecycle import IdentityLifecycle
from multigit.models import (
    Account,
    ConfigDocument,
    IdentityStatus,
    KeyAlgorithm,
    KeyPair,
    Profile,
    RemovalOutcome,
)
from multigit.ssh_config import HostAliasStore
from multigit.store import AccountStore

__version__ = "0.1.0"

__all__ = [
    "Account",
    "AccountStore",
    "ConfigDocument",
    "HostAliasStore",
    "IdentityLifecycle",
    "IdentityStatus",
    "KeyAlgorithm",
    "KeyPair",
    "KeyPairCodec",
    "MultigitError",
    "Profile",
    "RemovalOutcome",
]

"""multigit quickstart — working demonstrations of the main features.

Run this file directly to see every feature in action:

    python examples/quickstart.py

Each demo works inside a throwaway home directory in the system temp
directory, so your real ``~/.ssh`` and multigit config are never touched.
"""

from __future__ import annotations

import tempfile
from pathlib import Path

from multigit import (
    AccountStore,
    HostAliasStore,
    IdentityLifecycle,
    KeyAlgorithm,
    KeyPairCodec,
    RemovalOutcome,
)


class PrintingAgent:
    """Stands in for ssh-agent so the demos run anywhere."""

    def register_key(self, identity_name: str) -> None:
        print(f"  (agent) would run ssh-add for {identity_name}")


def _lifecycle(home: Path) -> IdentityLifecycle:
    ssh_dir = home / ".ssh"
    return IdentityLifecycle(
        store=AccountStore(home / ".config" / "multigit" / "config.json"),
        aliases=HostAliasStore(ssh_dir / "config"),
        agent=PrintingAgent(),
        ssh_dir=ssh_dir,
    )


# ---------------------------------------------------------------------------
# Demo 1 — Key pair generation
# ---------------------------------------------------------------------------

def demo_key_pairs() -> None:
    """Generate an Ed25519 pair and an encrypted one, then write them out."""

    print("\n=== Demo 1: Key Pairs ===")

    with tempfile.TemporaryDirectory() as tmpdir:
        tmp = Path(tmpdir)
        codec = KeyPairCodec()

        pair = codec.generate(KeyAlgorithm.ed25519, "demo <demo@example.com>")
        public_path = codec.write_to_files(pair, tmp / "id_ed25519_demo")
        print(f"  Public key: {public_path.read_text().strip()}")
        print(f"  Private key header: {pair.private_key_bytes.splitlines()[0].decode()}")

        locked = codec.generate(KeyAlgorithm.ed25519, "locked", passphrase="s3cret")
        print(f"  Encrypted header: {locked.private_key_bytes.splitlines()[1].decode()}")

        removed = codec.delete_files(tmp / "id_ed25519_demo")
        print(f"  Removed: {[p.name for p in removed]}")

        print("  Demo 1 passed.")


# ---------------------------------------------------------------------------
# Demo 2 — SSH config entries
# ---------------------------------------------------------------------------

def demo_ssh_config() -> None:
    """Add a managed Host block next to hand-written content and remove it again."""

    print("\n=== Demo 2: SSH Config Entries ===")

    with tempfile.TemporaryDirectory() as tmpdir:
        config = Path(tmpdir) / "config"
        config.write_text("Host example.org\n\tUser me\n", encoding="utf-8")

        aliases = HostAliasStore(config)
        aliases.add_entry("work", Path(tmpdir) / "id_ed25519_work")
        print(config.read_text(encoding="utf-8"))

        outcome = aliases.remove_entry("work")
        print(f"  Remove outcome: {outcome.value}")
        assert outcome is RemovalOutcome.removed
        assert config.read_text(encoding="utf-8") == "Host example.org\n\tUser me\n"

        print("  Demo 2 passed.")


# ---------------------------------------------------------------------------
# Demo 3 — Identity lifecycle
# ---------------------------------------------------------------------------

def demo_identity_lifecycle() -> None:
    """Create two identities, switch between them and delete one."""

    print("\n=== Demo 3: Identity Lifecycle ===")

    with tempfile.TemporaryDirectory() as tmpdir:
        lifecycle = _lifecycle(Path(tmpdir))

        lifecycle.create_identity("work", "me@work.example")
        lifecycle.create_identity("personal", "me@home.example")
        lifecycle.switch_identity("work")

        for row in lifecycle.list_identities():
            marker = "*" if row.active else " "
            print(f"  {marker} {row.account.name:<10} {row.key_path}")

        lifecycle.delete_identity("work")
        names = [row.account.name for row in lifecycle.list_identities()]
        print(f"  Remaining accounts: {names}")
        assert names == ["personal"]

        print("  Demo 3 passed.")


# ---------------------------------------------------------------------------
# Demo 4 — Profiles
# ---------------------------------------------------------------------------

def demo_profiles() -> None:
    """Group accounts into a profile and make it active."""

    print("\n=== Demo 4: Profiles ===")

    with tempfile.TemporaryDirectory() as tmpdir:
        store = AccountStore(Path(tmpdir) / "config.json")
        store.create_profile("office")
        store.set_profile_member("office", "work")
        store.set_profile_member("office", "legacy", enabled=False)
        store.use_profile("office")

        document = store.load()
        print(f"  Active profile: {document.active_profile}")
        print(f"  Members: {document.profiles['office'].accounts}")

        print("  Demo 4 passed.")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main() -> None:
    """Run all quickstart demos in sequence."""
    print("multigit quickstart demos")
    print("=" * 45)

    demo_key_pairs()
    demo_ssh_config()
    demo_identity_lifecycle()
    demo_profiles()

    print("\n" + "=" * 45)
    print("All demos completed successfully.")


if __name__ == "__main__":
    main()

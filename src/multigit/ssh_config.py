"""Managed ``Host`` blocks inside the user's SSH config file."""

from __future__ import annotations

import logging
from pathlib import Path

from multigit.errors import DuplicateAliasEntryError, FileOperationError
from multigit.fileutil import (
    PRIVATE_FILE_MODE,
    ensure_private_dir,
    replace_atomically,
    write_file,
)
from multigit.models import RemovalOutcome

logger = logging.getLogger(__name__)

DEFAULT_HOST = "github.com"
BEGIN_MARKER = "# Multigit managed config for "
END_MARKER = "# End of Multigit config for "
BACKUP_SUFFIX = ".multigit.bak"


def line_names_identity(line: str, token: str) -> bool:
    """Whether a config line refers to *token*.

    This is plain substring containment, so ``acct`` also matches a line
    naming ``acct2``. Every block lookup goes through here.
    """
    return token in line


def _is_host_line(stripped: str) -> bool:
    return stripped.startswith("Host ") or stripped.startswith("Match ")


class HostAliasStore:
    """Read, mutate and atomically rewrite the SSH config file.

    Each identity owns one block delimited by comment markers. Blocks are
    appended by :meth:`add_entry` and dropped by :meth:`remove_entry`; lines
    outside managed blocks are preserved verbatim.
    """

    def __init__(self, config_path: Path | str, host: str = DEFAULT_HOST) -> None:
        self.config_path = Path(config_path)
        self.host = host

    # ------------------------------------------------------------------
    # Block format
    # ------------------------------------------------------------------

    def alias_for(self, identity_name: str) -> str:
        return f"{self.host}-{identity_name}"

    def render_block(self, identity_name: str, private_key_path: Path | str) -> str:
        return (
            f"{BEGIN_MARKER}{identity_name}\n"
            f"Host {self.alias_for(identity_name)}\n"
            f"\tHostName {self.host}\n"
            "\tUser git\n"
            f"\tIdentityFile {private_key_path}\n"
            "\tIdentitiesOnly yes\n"
            f"{END_MARKER}{identity_name}\n"
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def read(self) -> str:
        """Return the document text; a missing file reads as empty.

        Bytes that are not valid UTF-8 are kept as surrogate escapes so they
        are written back unchanged.
        """
        try:
            return self.config_path.read_text(encoding="utf-8", errors="surrogateescape")
        except FileNotFoundError:
            return ""
        except OSError as exc:
            raise FileOperationError(
                self.config_path, f"Failed to read SSH config ({exc})"
            ) from exc

    def has_entry(self, identity_name: str, text: str | None = None) -> bool:
        """Whether a ``Host`` line for the identity's alias is present."""
        if text is None:
            text = self.read()
        alias = self.alias_for(identity_name)
        for line in text.splitlines():
            stripped = line.strip()
            if stripped.startswith("Host ") and line_names_identity(stripped, alias):
                return True
        return False

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_entry(self, identity_name: str, private_key_path: Path | str) -> None:
        """Append the managed block for *identity_name*.

        Raises:
            DuplicateAliasEntryError: if the alias host is already configured.
                The file is left untouched.
            FileOperationError: on any read or write failure.
        """
        original = self.read()
        if self.has_entry(identity_name, original):
            raise DuplicateAliasEntryError(identity_name, self.config_path)

        updated = original
        if updated and not updated.endswith("\n"):
            updated += "\n"
        if updated:
            updated += "\n"
        updated += self.render_block(identity_name, private_key_path)

        self._write(original, updated)
        logger.info("Added SSH config entry for %s", identity_name)

    def remove_entry(self, identity_name: str) -> RemovalOutcome:
        """Drop the managed (or legacy unmarked) block for *identity_name*.

        Returns:
            :attr:`RemovalOutcome.removed` when the file was rewritten,
            :attr:`RemovalOutcome.not_found` when there was nothing to drop.
        """
        if not self.config_path.exists():
            return RemovalOutcome.not_found

        original = self.read()
        kept, dropped = self._strip_blocks(original.split("\n"), identity_name)
        if not dropped:
            logger.debug("No SSH config entry for %s", identity_name)
            return RemovalOutcome.not_found

        while kept and not kept[-1].strip():
            kept.pop()
        updated = "\n".join(kept)
        if updated:
            updated += "\n"

        self._write(original, updated)
        logger.info("Removed SSH config entry for %s", identity_name)
        return RemovalOutcome.removed

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _strip_blocks(self, lines: list[str], identity_name: str) -> tuple[list[str], int]:
        """Return the lines outside this identity's blocks and how many were dropped."""
        alias = self.alias_for(identity_name)
        kept: list[str] = []
        dropped = 0
        in_managed = False
        in_legacy = False

        for line in lines:
            stripped = line.strip()

            if in_managed:
                dropped += 1
                if stripped.startswith(END_MARKER) and line_names_identity(
                    stripped[len(END_MARKER) :], identity_name
                ):
                    in_managed = False
                continue

            if stripped.startswith(BEGIN_MARKER) and line_names_identity(
                stripped[len(BEGIN_MARKER) :], identity_name
            ):
                in_managed = True
                in_legacy = False
                dropped += 1
                continue

            if in_legacy:
                if _is_host_line(stripped) or stripped.startswith(BEGIN_MARKER):
                    in_legacy = False
                else:
                    dropped += 1
                    continue

            if stripped.startswith("Host ") and line_names_identity(stripped, alias):
                in_legacy = True
                dropped += 1
                continue

            kept.append(line)

        # an unterminated managed block runs to the end of the file
        return kept, dropped

    def _write(self, original: str, updated: str) -> None:
        ensure_private_dir(self.config_path.parent)
        backup_path = self.config_path.with_name(self.config_path.name + BACKUP_SUFFIX)
        has_original = self.config_path.exists()
        if has_original:
            write_file(
                backup_path, original.encode("utf-8", "surrogateescape"), PRIVATE_FILE_MODE
            )

        replace_atomically(self.config_path, updated.encode("utf-8", "surrogateescape"))

        if has_original:
            try:
                backup_path.unlink()
            except OSError as exc:
                logger.warning("Could not remove SSH config backup %s: %s", backup_path, exc)


__all__ = [
    "BEGIN_MARKER",
    "DEFAULT_HOST",
    "END_MARKER",
    "HostAliasStore",
    "line_names_identity",
]

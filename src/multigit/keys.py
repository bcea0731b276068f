"""SSH key pair generation and on-disk encoding."""

from __future__ import annotations

import base64
import hashlib
import logging
import os
import struct
from collections.abc import Callable
from pathlib import Path

from cryptography.hazmat.primitives import padding, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from multigit.errors import FileOperationError, KeyGenError, UnsupportedAlgorithmError
from multigit.fileutil import (
    PRIVATE_FILE_MODE,
    PUBLIC_FILE_MODE,
    ensure_private_dir,
    write_file,
)
from multigit.models import KeyAlgorithm, KeyPair

logger = logging.getLogger(__name__)

RSA_KEY_SIZE = 4096
RSA_PUBLIC_EXPONENT = 65537

_OPENSSH_MAGIC = b"openssh-key-v1\x00"
_OPENSSH_PEM_TYPE = "OPENSSH PRIVATE KEY"
_ED25519_KEY_TYPE = b"ssh-ed25519"
_PEM_CIPHER = "AES-256-CBC"

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _ssh_string(data: bytes) -> bytes:
    """Length-prefixed byte string as used by the SSH wire format."""
    return struct.pack(">I", len(data)) + data


def _pem_armor(pem_type: str, body: bytes, headers: str = "", width: int = 70) -> bytes:
    encoded = base64.b64encode(body).decode("ascii")
    lines = [encoded[i : i + width] for i in range(0, len(encoded), width)]
    text = f"-----BEGIN {pem_type}-----\n"
    if headers:
        text += headers + "\n"
    text += "\n".join(lines)
    text += f"\n-----END {pem_type}-----\n"
    return text.encode("ascii")


def _evp_bytes_to_key(passphrase: bytes, salt: bytes, key_len: int) -> bytes:
    """OpenSSL's legacy PEM key derivation (MD5, one iteration)."""
    derived = b""
    block = b""
    while len(derived) < key_len:
        block = hashlib.md5(block + passphrase + salt).digest()
        derived += block
    return derived[:key_len]


def _encrypt_pem(pem_type: str, body: bytes, passphrase: bytes) -> bytes:
    """Encrypt *body* with AES-256-CBC behind ``Proc-Type``/``DEK-Info`` headers."""
    iv = os.urandom(16)
    key = _evp_bytes_to_key(passphrase, iv[:8], 32)
    padder = padding.PKCS7(algorithms.AES.block_size).padder()
    padded = padder.update(body) + padder.finalize()
    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()
    headers = f"Proc-Type: 4,ENCRYPTED\nDEK-Info: {_PEM_CIPHER},{iv.hex().upper()}\n"
    return _pem_armor(pem_type, ciphertext, headers=headers, width=64)


def _openssh_ed25519_blob(private_key: Ed25519PrivateKey, comment: str) -> bytes:
    """Binary ``openssh-key-v1`` container for an unencrypted Ed25519 key."""
    seed = private_key.private_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PrivateFormat.Raw,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )
    public_blob = _ssh_string(_ED25519_KEY_TYPE) + _ssh_string(public)

    check = os.urandom(4)
    section = (
        check
        + check
        + _ssh_string(_ED25519_KEY_TYPE)
        + _ssh_string(public)
        + _ssh_string(seed + public)
        + _ssh_string(comment.encode("utf-8"))
    )
    pad_len = -len(section) % 8
    section += bytes(range(1, pad_len + 1))

    return (
        _OPENSSH_MAGIC
        + _ssh_string(b"none")  # cipher
        + _ssh_string(b"none")  # kdf
        + _ssh_string(b"")  # kdf options
        + struct.pack(">I", 1)
        + _ssh_string(public_blob)
        + _ssh_string(section)
    )


def _generate_rsa(comment: str, passphrase: bytes | None, key_size: int) -> tuple[bytes, str]:
    private_key = rsa.generate_private_key(
        public_exponent=RSA_PUBLIC_EXPONENT, key_size=key_size
    )
    encryption: serialization.KeySerializationEncryption = (
        serialization.BestAvailableEncryption(passphrase)
        if passphrase
        else serialization.NoEncryption()
    )
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=encryption,
    )
    public_line = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.OpenSSH,
        format=serialization.PublicFormat.OpenSSH,
    )
    return private_pem, f"{public_line.decode('ascii')} {comment}"


def _generate_ed25519(
    comment: str, passphrase: bytes | None, key_size: int
) -> tuple[bytes, str]:
    private_key = Ed25519PrivateKey.generate()
    blob = _openssh_ed25519_blob(private_key, comment)
    if passphrase:
        private_pem = _encrypt_pem(_OPENSSH_PEM_TYPE, blob, passphrase)
    else:
        private_pem = _pem_armor(_OPENSSH_PEM_TYPE, blob)
    public_line = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.OpenSSH,
        format=serialization.PublicFormat.OpenSSH,
    )
    return private_pem, f"{public_line.decode('ascii')} {comment}"


_GENERATORS: dict[KeyAlgorithm, Callable[[str, bytes | None, int], tuple[bytes, str]]] = {
    KeyAlgorithm.rsa: _generate_rsa,
    KeyAlgorithm.ed25519: _generate_ed25519,
}

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------


def resolve_algorithm(algorithm: KeyAlgorithm | str) -> KeyAlgorithm:
    try:
        return KeyAlgorithm(algorithm)
    except ValueError:
        raise UnsupportedAlgorithmError(algorithm) from None


def default_key_path(ssh_dir: Path, name: str, algorithm: KeyAlgorithm | str) -> Path:
    """Return ``<ssh_dir>/id_<algorithm>_<name>``."""
    return Path(ssh_dir) / f"id_{resolve_algorithm(algorithm).value}_{name}"


def find_private_key(ssh_dir: Path, name: str) -> Path | None:
    """Return the existing private key for *name*, preferring RSA, or None."""
    for algorithm in (KeyAlgorithm.rsa, KeyAlgorithm.ed25519):
        candidate = default_key_path(ssh_dir, name, algorithm)
        if candidate.exists():
            return candidate
    return None


def public_key_path(private_key_path: Path) -> Path:
    private_key_path = Path(private_key_path)
    return private_key_path.with_name(private_key_path.name + ".pub")


def key_comment(name: str, email: str) -> str:
    return f"{name} <{email}>"


# ---------------------------------------------------------------------------
# KeyPairCodec
# ---------------------------------------------------------------------------


class KeyPairCodec:
    """Generate SSH key pairs and manage their files."""

    def __init__(self, rsa_key_size: int = RSA_KEY_SIZE) -> None:
        self.rsa_key_size = rsa_key_size

    def generate(
        self,
        algorithm: KeyAlgorithm | str,
        comment: str,
        passphrase: str = "",
    ) -> KeyPair:
        """Generate a fresh key pair.

        Args:
            algorithm: ``rsa`` (4096-bit, PKCS#1 PEM) or ``ed25519`` (OpenSSH PEM).
            comment: Text appended to the public key line and, for Ed25519,
                embedded in the private key.
            passphrase: When non-empty the private PEM is AES-256 encrypted.

        Raises:
            UnsupportedAlgorithmError: for any other algorithm tag.
            KeyGenError: if generation or encryption fails.
        """
        algo = resolve_algorithm(algorithm)
        secret = passphrase.encode("utf-8") if passphrase else None
        try:
            private_pem, public_line = _GENERATORS[algo](
                comment, secret, self.rsa_key_size
            )
        except (ValueError, TypeError) as exc:
            raise KeyGenError(f"Failed to generate {algo.value} key: {exc}") from exc

        return KeyPair(
            algorithm=algo,
            private_key_bytes=private_pem,
            public_key_line=public_line,
            comment=comment,
        )

    def write_to_files(self, key_pair: KeyPair, private_key_path: Path | str) -> Path:
        """Write the private key and its ``.pub`` sibling.

        The parent directory is created with mode 0o700. The private key is
        written with mode 0o600 and the public key with 0o644. A failure on
        the public key leaves the private key in place.

        Returns:
            The public key path.
        """
        private_path = Path(private_key_path)
        public_path = public_key_path(private_path)
        ensure_private_dir(private_path.parent)

        write_file(private_path, key_pair.private_key_bytes, PRIVATE_FILE_MODE)
        write_file(
            public_path,
            (key_pair.public_key_line + "\n").encode("utf-8"),
            PUBLIC_FILE_MODE,
        )
        logger.info("Wrote %s key pair to %s", key_pair.algorithm.value, private_path)
        return public_path

    def delete_files(self, private_key_path: Path | str) -> list[Path]:
        """Remove the private key and its ``.pub`` sibling.

        Missing files are skipped. Both removals are always attempted.

        Returns:
            The paths that were actually removed.

        Raises:
            FileOperationError: if a removal failed for a reason other than
                the file being absent.
        """
        private_path = Path(private_key_path)
        removed: list[Path] = []
        failures: list[str] = []

        for path in (private_path, public_key_path(private_path)):
            try:
                path.unlink()
            except FileNotFoundError:
                logger.debug("Key file %s does not exist, skipping", path)
                continue
            except OSError as exc:
                failures.append(f"{path}: {exc}")
                continue
            removed.append(path)
            logger.debug("Removed key file %s", path)

        if failures:
            raise FileOperationError(
                private_path, "Failed to remove key files (" + "; ".join(failures) + ")"
            )
        return removed


__all__ = [
    "RSA_KEY_SIZE",
    "KeyPairCodec",
    "default_key_path",
    "find_private_key",
    "key_comment",
    "public_key_path",
    "resolve_algorithm",
]

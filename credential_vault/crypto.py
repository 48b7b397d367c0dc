"""
Vault Crypto Core — Key derivation, encryption/decryption and buffer wiping.

- Key derivation: scrypt(passphrase, fixed application salt) → 32-byte key
- Value encryption: AES-256-GCM, fresh 96-bit nonce per call, 128-bit tag

The salt is fixed and public; brute-force cost comes from scrypt alone.

Security Note:
    Never log plaintext, ciphertext, nonces, tags or passphrases.
    Nonces are random 96-bit; collision probability negligible under normal usage.
"""
import os
from typing import NamedTuple, Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from .exceptions import DecryptionError

NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16  # 128-bit GCM tag
KEY_LENGTH = 32  # AES-256

APPLICATION_SALT = b"credential-vault-salt"

# scrypt cost parameters (N=2^14, r=8, p=1 ≈ 16 MiB per derivation)
SCRYPT_N = 2 ** 14
SCRYPT_R = 8
SCRYPT_P = 1

Buffer = Union[bytes, bytearray, memoryview]


class EncryptedValue(NamedTuple):
    """The three AES-GCM outputs stored for every secret."""

    ciphertext: bytes
    nonce: bytes
    auth_tag: bytes


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

def derive_master_key(
    passphrase: str,
    *,
    n: int = SCRYPT_N,
    r: int = SCRYPT_R,
    p: int = SCRYPT_P,
) -> bytes:
    """Derive the 32-byte vault master key from a passphrase using scrypt.

    Args:
        passphrase: Vault passphrase. Strength is not validated here.
        n: scrypt CPU/memory cost (power of two).
        r: scrypt block size.
        p: scrypt parallelization.

    Returns:
        32-byte derived key, identical for identical passphrase and cost.
    """
    kdf = Scrypt(
        salt=APPLICATION_SALT,
        length=KEY_LENGTH,
        n=n,
        r=r,
        p=p,
    )
    return kdf.derive(passphrase.encode("utf-8"))


# ---------------------------------------------------------------------------
# Value encryption
# ---------------------------------------------------------------------------

def encrypt(plaintext: str, master_key: bytes) -> EncryptedValue:
    """Encrypt a secret value with AES-256-GCM.

    A new random nonce is drawn on every call, so encrypting the same
    plaintext twice never yields the same (ciphertext, nonce) pair.

    Args:
        plaintext: Secret value (any str, including empty).
        master_key: Raw 32-byte key.

    Returns:
        EncryptedValue(ciphertext, nonce, auth_tag).
    """
    nonce = os.urandom(NONCE_SIZE)
    sealed = AESGCM(master_key).encrypt(nonce, plaintext.encode("utf-8"), None)
    # AESGCM appends the tag to the ciphertext
    return EncryptedValue(
        ciphertext=sealed[:-TAG_SIZE],
        nonce=nonce,
        auth_tag=sealed[-TAG_SIZE:],
    )


def decrypt(
    ciphertext: Buffer,
    nonce: Buffer,
    auth_tag: Buffer,
    master_key: bytes,
) -> str:
    """Verify and decrypt a secret value.

    Args:
        ciphertext: Encrypted payload without tag.
        nonce: 12-byte nonce used at encryption time.
        auth_tag: 16-byte GCM tag.
        master_key: Raw 32-byte key.

    Returns:
        Decrypted plaintext.

    Raises:
        DecryptionError: If the tag does not verify or the nonce/tag
            have the wrong size.
    """
    if len(nonce) != NONCE_SIZE:
        raise DecryptionError(
            f"nonce must be {NONCE_SIZE} bytes, got {len(nonce)}"
        )
    if len(auth_tag) != TAG_SIZE:
        raise DecryptionError(
            f"auth tag must be {TAG_SIZE} bytes, got {len(auth_tag)}"
        )
    try:
        plaintext = AESGCM(master_key).decrypt(
            bytes(nonce), bytes(ciphertext) + bytes(auth_tag), None,
        )
    except InvalidTag as err:
        raise DecryptionError(
            "Authentication tag verification failed"
        ) from err
    return plaintext.decode("utf-8")


def wipe(buffer: bytearray) -> None:
    """Overwrite a mutable buffer with zeros in place."""
    for i in range(len(buffer)):
        buffer[i] = 0

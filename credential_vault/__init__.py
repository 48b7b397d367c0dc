"""Credential Vault — Encrypted, in-memory storage for third-party secrets.

Security Note (Threat Model):
    Secrets are held AES-256-GCM encrypted under a key derived from a
    passphrase and are never written to disk. Decrypted values exist in
    process memory only while a call is using them, and shutdown zeroes
    every stored buffer. A memory dump taken while the vault is running
    could still expose the master key; mitigating that requires HSM or
    secure enclave integration, which is out of scope.
"""

from .version import __version__
from .exceptions import (
    VaultError,
    NotInitializedError,
    DecryptionError,
    ImportParseError,
)
from .models import CredentialInfo, ExportedCredential, ImportFormat, ImportResult
from .masking import mask_value
from .config import VaultConfig, resolve_passphrase
from .vault import CredentialVault
from .rotation import reencrypt_vault
from .transfer import dump_entries
from .tools import ToolResult, create_extension_pack

__all__ = [
    "__version__",
    "CredentialVault",
    "CredentialInfo",
    "ExportedCredential",
    "ImportFormat",
    "ImportResult",
    "VaultError",
    "NotInitializedError",
    "DecryptionError",
    "ImportParseError",
    "VaultConfig",
    "resolve_passphrase",
    "mask_value",
    "reencrypt_vault",
    "dump_entries",
    "ToolResult",
    "create_extension_pack",
]

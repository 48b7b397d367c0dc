"""Credential Vault errors."""


class VaultError(Exception):
    """Base class for every error raised by the credential vault."""


class NotInitializedError(VaultError):
    """Raised when the vault is used before ``initialize()`` or after ``shutdown()``."""

    def __init__(self, message: str = "CredentialVault not initialized"):
        super().__init__(message)


class DecryptionError(VaultError):
    """Raised when an AES-GCM authentication tag fails to verify.

    Indicates tampered ciphertext, a tampered tag, a wrong nonce or a
    wrong master key. Never carries any plaintext.
    """


class ImportParseError(VaultError):
    """Raised when an import payload cannot be parsed at the top level."""

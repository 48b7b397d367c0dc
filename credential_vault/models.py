"""
Credential Vault data models.

``CredentialRecord`` is the internal table row and never leaves the vault.
Everything handed to callers is a pydantic model built from copies.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from .crypto import EncryptedValue, wipe


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ImportFormat(str, Enum):
    """Supported bulk import/export payload formats."""

    JSON = "json"
    CSV = "csv"


@dataclass
class CredentialRecord:
    """One encrypted secret, keyed by ``(platform, key)``.

    Byte fields are mutable buffers so they can be zeroed in place.
    """

    platform: str
    key: str
    ciphertext: bytearray
    nonce: bytearray
    auth_tag: bytearray
    created_at: datetime
    updated_at: datetime
    rotated_at: Optional[datetime] = None

    @classmethod
    def from_encrypted(
        cls,
        platform: str,
        key: str,
        sealed: EncryptedValue,
        *,
        created_at: datetime,
        updated_at: datetime,
        rotated_at: Optional[datetime] = None,
    ) -> "CredentialRecord":
        return cls(
            platform=platform,
            key=key,
            ciphertext=bytearray(sealed.ciphertext),
            nonce=bytearray(sealed.nonce),
            auth_tag=bytearray(sealed.auth_tag),
            created_at=created_at,
            updated_at=updated_at,
            rotated_at=rotated_at,
        )

    @property
    def sort_key(self) -> tuple[str, str]:
        return (self.platform, self.key)

    def wipe(self) -> None:
        """Zero every byte buffer of this record."""
        wipe(self.ciphertext)
        wipe(self.nonce)
        wipe(self.auth_tag)


class CredentialInfo(BaseModel):
    """Display-safe view of a stored credential."""

    platform: str
    key: str
    masked_value: str
    created_at: datetime
    updated_at: datetime
    rotated_at: Optional[datetime] = None


class ExportedCredential(BaseModel):
    """Plaintext credential produced by export. Handle as maximally sensitive."""

    platform: str
    key: str
    value: str

    def __repr__(self) -> str:
        return f"ExportedCredential(platform={self.platform!r}, key={self.key!r}, value='****')"

    __str__ = __repr__


class ImportResult(BaseModel):
    """Outcome of a bulk import."""

    imported: int = 0
    skipped: int = 0
    errors: list[str] = Field(default_factory=list)

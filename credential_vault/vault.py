"""
CredentialVault — Encrypted in-memory storage for third-party credentials.

Provides the public API of the vault:
- ``initialize()`` / ``shutdown()`` — lifecycle; shutdown wipes every record
- ``set(platform, key, value)`` — encrypt and upsert a secret
- ``get(platform, key)`` — decrypt and return a secret, or None
- ``delete(platform, key)`` — remove a secret
- ``rotate(platform, key, value)`` — replace a secret and stamp ``rotated_at``
- ``list(platform)`` — enumerate credentials with masked values
- ``import_credentials(data, fmt)`` / ``export_credentials(platform)`` — bulk transfer

Security Note:
    Never log plaintext or ciphertext values. Only log platforms, key names
    and counts. Decrypted values exist in process memory only for the
    duration of a call.
"""
import logging
import threading
from typing import Optional, Union

from .config import VaultConfig
from .crypto import SCRYPT_N, SCRYPT_P, SCRYPT_R, decrypt, derive_master_key, encrypt
from .exceptions import ImportParseError, NotInitializedError, VaultError
from .masking import mask_value
from .models import (
    CredentialInfo,
    CredentialRecord,
    ExportedCredential,
    ImportFormat,
    ImportResult,
    utcnow,
)
from .transfer import parse_payload

logger = logging.getLogger("credential_vault")


class CredentialVault:
    """Passphrase-protected vault keyed by ``(platform, key)``.

    The master key is derived once, in the constructor. Each instance owns
    its own table, so several vaults can live in one process.

    Every operation is a coroutine for uniformity with I/O-bound callers,
    but none of them awaits anything internally. The table is guarded by a
    re-entrant lock, which keeps the read/compute/write sequence of ``set``
    and ``rotate`` atomic when one vault is shared between threads.
    """

    def __init__(
        self,
        passphrase: str,
        *,
        scrypt_n: int = SCRYPT_N,
        scrypt_r: int = SCRYPT_R,
        scrypt_p: int = SCRYPT_P,
    ):
        self._master_key = derive_master_key(
            passphrase, n=scrypt_n, r=scrypt_r, p=scrypt_p,
        )
        self._records: dict[tuple[str, str], CredentialRecord] = {}
        self._running = False
        self._lock = threading.RLock()

    @classmethod
    def from_config(cls, config: VaultConfig) -> "CredentialVault":
        """Build a vault from a validated configuration."""
        return cls(
            config.passphrase.get_secret_value(),
            scrypt_n=config.scrypt_n,
            scrypt_r=config.scrypt_r,
            scrypt_p=config.scrypt_p,
        )

    def __repr__(self) -> str:
        return f"<CredentialVault running={self._running} records={len(self._records)}>"

    def __len__(self) -> int:
        return len(self._records)

    @property
    def is_running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """Start the vault with an empty table."""
        with self._lock:
            self._wipe_all()
            self._running = True
        logger.info("Credential vault initialized")

    async def shutdown(self) -> None:
        """Zero and drop every record, then stop the vault."""
        with self._lock:
            count = len(self._records)
            self._wipe_all()
            self._running = False
        logger.info("Credential vault shut down, %d record(s) wiped", count)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_running(self) -> None:
        if not self._running:
            raise NotInitializedError()

    def _wipe_all(self) -> None:
        for record in self._records.values():
            record.wipe()
        self._records.clear()

    def _open(self, record: CredentialRecord) -> str:
        """Decrypt a record. Raises DecryptionError on tag failure."""
        return decrypt(
            record.ciphertext, record.nonce, record.auth_tag, self._master_key,
        )

    def _store(self, platform: str, key: str, value: str, *, rotated: bool) -> None:
        """Encrypt ``value`` under a fresh nonce and upsert it. Caller holds the lock."""
        now = utcnow()
        existing = self._records.get((platform, key))
        record = CredentialRecord.from_encrypted(
            platform,
            key,
            encrypt(value, self._master_key),
            created_at=existing.created_at if existing else now,
            updated_at=now,
            rotated_at=now if rotated else (existing.rotated_at if existing else None),
        )
        self._records[(platform, key)] = record
        if existing is not None:
            existing.wipe()

    def _install(self, record: CredentialRecord) -> None:
        """Place a fully built record in the table, wiping any replaced one."""
        with self._lock:
            self._require_running()
            existing = self._records.get(record.sort_key)
            self._records[record.sort_key] = record
            if existing is not None:
                existing.wipe()

    def _sorted_records(self, platform: Optional[str] = None) -> list[CredentialRecord]:
        """Records matching ``platform`` (all when empty), ordered by (platform, key)."""
        with self._lock:
            records = [
                record for record in self._records.values()
                if not platform or record.platform == platform
            ]
        return sorted(records, key=lambda record: record.sort_key)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def set(self, platform: str, key: str, value: str) -> None:
        """Encrypt and store a secret, replacing any previous value.

        ``created_at`` and ``rotated_at`` of an existing record are kept;
        ``updated_at`` is refreshed.

        Raises:
            NotInitializedError: If the vault is not running.
        """
        with self._lock:
            self._require_running()
            self._store(platform, key, value, rotated=False)
        logger.debug("Vault set: platform=%s key=%s", platform, key)

    async def get(self, platform: str, key: str) -> Optional[str]:
        """Decrypt and return a secret.

        Returns:
            The plaintext value, or None if no such credential exists.

        Raises:
            NotInitializedError: If the vault is not running.
            DecryptionError: If the stored record fails authentication.
        """
        with self._lock:
            self._require_running()
            record = self._records.get((platform, key))
            if record is None:
                return None
            return self._open(record)

    async def exists(self, platform: str, key: str) -> bool:
        with self._lock:
            self._require_running()
            return (platform, key) in self._records

    async def delete(self, platform: str, key: str) -> bool:
        """Remove a secret.

        Returns:
            True if a credential was removed, False if there was none.
        """
        with self._lock:
            self._require_running()
            record = self._records.pop((platform, key), None)
            if record is None:
                return False
            record.wipe()
        logger.debug("Vault delete: platform=%s key=%s", platform, key)
        return True

    async def rotate(self, platform: str, key: str, value: str) -> None:
        """Replace a secret and mark it as deliberately rotated.

        Behaves like ``set`` and additionally stamps ``rotated_at``.
        """
        with self._lock:
            self._require_running()
            self._store(platform, key, value, rotated=True)
        logger.debug("Vault rotate: platform=%s key=%s", platform, key)

    # ------------------------------------------------------------------
    # Bulk transfer
    # ------------------------------------------------------------------

    async def import_credentials(
        self,
        data: str,
        fmt: Union[ImportFormat, str] = ImportFormat.JSON,
    ) -> ImportResult:
        """Upsert every valid record of a JSON or CSV payload.

        Malformed records are skipped and described in ``errors``. Only a
        JSON document that fails to parse at all aborts the import, leaving
        a single error and nothing imported.

        Raises:
            NotInitializedError: If the vault is not running.
            ValueError: If ``fmt`` is not a supported format.
        """
        self._require_running()
        fmt = ImportFormat(fmt)
        result = ImportResult()
        try:
            rows = parse_payload(data, fmt)
        except ImportParseError as err:
            logger.warning("Vault import aborted: %s", err)
            result.errors.append(str(err))
            return result

        for row in rows:
            if row.error is not None:
                result.errors.append(row.error)
                result.skipped += 1
                continue
            try:
                await self.set(row.platform, row.key, row.value)
            except (VaultError, ValueError) as err:
                result.errors.append(
                    f"{row.label}: failed to import {row.platform}/{row.key}: {err}"
                )
                result.skipped += 1
                continue
            result.imported += 1

        logger.info(
            "Vault import (%s): %d imported, %d skipped",
            fmt.value, result.imported, result.skipped,
        )
        return result

    async def export_credentials(
        self, platform: Optional[str] = None,
    ) -> list[ExportedCredential]:
        """Return plaintext credentials, ordered by (platform, key).

        The output defeats encryption at rest. Use it for migration or
        backup only and treat it as maximally sensitive.
        """
        with self._lock:
            self._require_running()
            exported = [
                ExportedCredential(
                    platform=record.platform,
                    key=record.key,
                    value=self._open(record),
                )
                for record in self._sorted_records(platform)
            ]
        logger.info("Vault export: %d credential(s)", len(exported))
        return exported

    # ------------------------------------------------------------------
    # Listing (kept last: the method name shadows the builtin ``list``
    # for the rest of the class body)
    # ------------------------------------------------------------------

    async def list(self, platform: Optional[str] = None) -> list[CredentialInfo]:
        """List credentials with masked values, ordered by (platform, key).

        Plaintext is decrypted only long enough to be masked.
        """
        with self._lock:
            self._require_running()
            return [
                CredentialInfo(
                    platform=record.platform,
                    key=record.key,
                    masked_value=mask_value(self._open(record)),
                    created_at=record.created_at,
                    updated_at=record.updated_at,
                    rotated_at=record.rotated_at,
                )
                for record in self._sorted_records(platform)
            ]

"""
Vault Re-encryption — Move every secret into a vault keyed by another passphrase.

A vault's master key is fixed for its lifetime, so changing the passphrase
means building a second vault and re-encrypting each record into it. Records
are processed in (platform, key) order and in batches; timestamps are
carried over unchanged and every value gets a fresh nonce under the target
key. The operation is idempotent: records already present in the target with
the same value are skipped.

Security Note:
    Plaintext exists in memory only during re-encryption of each record.
    Never log plaintext or ciphertext values.
"""
import logging
from typing import Optional

from .crypto import encrypt
from .exceptions import DecryptionError
from .models import CredentialRecord
from .vault import CredentialVault

logger = logging.getLogger("credential_vault")


async def reencrypt_vault(
    source: CredentialVault,
    target: CredentialVault,
    *,
    platform: Optional[str] = None,
    batch_size: int = 100,
) -> dict:
    """Re-encrypt all secrets of ``source`` into ``target``.

    Args:
        source: Running vault to read from. Left untouched.
        target: Running vault to write into, usually derived from a new passphrase.
        platform: Only copy records of this platform.
        batch_size: Number of records handled per logged batch.

    Returns:
        Stats dict with keys: total, rotated, errors, skipped. Records already
        present in target, or deleted from source meanwhile, count as skipped.

    Raises:
        NotInitializedError: If either vault is not running.
        ValueError: If batch_size is not positive.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be positive, got {batch_size}")
    source._require_running()
    target._require_running()

    records = source._sorted_records(platform)
    stats = {"total": 0, "rotated": 0, "errors": 0, "skipped": 0}

    logger.info(
        "Starting vault re-encryption of %d record(s) (batch_size=%d)",
        len(records), batch_size,
    )

    for offset in range(0, len(records), batch_size):
        batch = records[offset:offset + batch_size]
        logger.info(
            "Processing batch %d (%d records)", offset // batch_size + 1, len(batch),
        )
        for record in batch:
            stats["total"] += 1
            try:
                with source._lock:
                    # the snapshot may be stale; re-read the live record
                    record = source._records.get(record.sort_key)
                    if record is None:
                        stats["skipped"] += 1
                        continue
                    value = source._open(record)
                if await target.get(record.platform, record.key) == value:
                    stats["skipped"] += 1
                    continue
            except DecryptionError as err:
                logger.error(
                    "Error re-encrypting platform=%s key=%s: %s",
                    record.platform, record.key, err,
                )
                stats["errors"] += 1
                continue

            target._install(CredentialRecord.from_encrypted(
                record.platform,
                record.key,
                encrypt(value, target._master_key),
                created_at=record.created_at,
                updated_at=record.updated_at,
                rotated_at=record.rotated_at,
            ))
            stats["rotated"] += 1

    logger.info("Vault re-encryption complete: %s", stats)
    return stats

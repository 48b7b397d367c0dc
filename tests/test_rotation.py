"""Tests for reencrypt_vault."""
import pytest

from credential_vault import NotInitializedError, reencrypt_vault


@pytest.mark.asyncio
async def test_reencrypts_all_records(vault, make_vault):
    target = make_vault("brand new passphrase")
    await target.initialize()
    await vault.set("openai", "apiKey", "sk-1")
    await vault.set("github", "token", "ghp-1")
    await vault.rotate("github", "token", "ghp-2")

    stats = await reencrypt_vault(vault, target, batch_size=1)

    assert stats == {"total": 2, "rotated": 2, "errors": 0, "skipped": 0}
    assert await target.export_credentials() == await vault.export_credentials()
    assert [
        (i.created_at, i.updated_at, i.rotated_at) for i in await target.list()
    ] == [
        (i.created_at, i.updated_at, i.rotated_at) for i in await vault.list()
    ]
    # different key, fresh nonce
    assert bytes(target._records[("openai", "apiKey")].nonce) != bytes(
        vault._records[("openai", "apiKey")].nonce
    )


@pytest.mark.asyncio
async def test_idempotent(vault, make_vault):
    target = make_vault("brand new passphrase")
    await target.initialize()
    await vault.set("openai", "apiKey", "sk-1")
    await reencrypt_vault(vault, target)
    stats = await reencrypt_vault(vault, target)
    assert stats == {"total": 1, "rotated": 0, "errors": 0, "skipped": 1}


@pytest.mark.asyncio
async def test_platform_filter(vault, make_vault):
    target = make_vault("brand new passphrase")
    await target.initialize()
    await vault.set("openai", "apiKey", "sk-1")
    await vault.set("github", "token", "ghp-1")
    stats = await reencrypt_vault(vault, target, platform="github")
    assert stats["total"] == 1
    assert await target.get("openai", "apiKey") is None
    assert await target.get("github", "token") == "ghp-1"


@pytest.mark.asyncio
async def test_corrupted_record_counted_as_error(vault, make_vault):
    target = make_vault("brand new passphrase")
    await target.initialize()
    await vault.set("openai", "apiKey", "sk-1")
    await vault.set("github", "token", "ghp-1")
    vault._records[("github", "token")].ciphertext[0] ^= 0x01

    stats = await reencrypt_vault(vault, target)

    assert stats == {"total": 2, "rotated": 1, "errors": 1, "skipped": 0}
    assert await target.exists("github", "token") is False


@pytest.mark.asyncio
async def test_requires_running_vaults(vault, make_vault):
    with pytest.raises(NotInitializedError):
        await reencrypt_vault(vault, make_vault())


@pytest.mark.asyncio
async def test_invalid_batch_size(vault, make_vault):
    target = make_vault()
    await target.initialize()
    with pytest.raises(ValueError):
        await reencrypt_vault(vault, target, batch_size=0)


@pytest.mark.asyncio
async def test_record_replaced_after_snapshot(vault, make_vault, monkeypatch):
    """A record overwritten in the source mid-run is copied with its live value."""
    target = make_vault("brand new passphrase")
    await target.initialize()
    await vault.set("openai", "apiKey", "sk-old")
    await vault.set("github", "token", "ghp-1")
    stale = vault._sorted_records()
    await vault.set("openai", "apiKey", "sk-new")
    await vault.delete("github", "token")
    monkeypatch.setattr(vault, "_sorted_records", lambda platform=None: stale)

    stats = await reencrypt_vault(vault, target)

    assert stats == {"total": 2, "rotated": 1, "errors": 0, "skipped": 1}
    assert await target.get("openai", "apiKey") == "sk-new"
    assert await target.exists("github", "token") is False

"""Shared fixtures for the credential vault tests."""
import pytest
import pytest_asyncio

from credential_vault import CredentialVault

# Lowest cost VaultConfig accepts; keeps key derivation fast in tests.
FAST_SCRYPT_N = 2 ** 10


@pytest.fixture
def make_vault():
    """Factory for vaults with a cheap key derivation."""
    def _make(passphrase: str = "test-passphrase") -> CredentialVault:
        return CredentialVault(passphrase, scrypt_n=FAST_SCRYPT_N)
    return _make


@pytest_asyncio.fixture
async def vault(make_vault):
    """A running vault, shut down after the test."""
    v = make_vault()
    await v.initialize()
    yield v
    await v.shutdown()


@pytest.fixture
def clean_env(monkeypatch):
    """Remove vault env vars that leak between tests."""
    for key in ("CREDENTIAL_VAULT_PASSPHRASE", "CREDENTIAL_VAULT_SCRYPT_N"):
        monkeypatch.delenv(key, raising=False)
    return monkeypatch

"""Tests for passphrase resolution and VaultConfig."""
import logging

import pytest
from pydantic import ValidationError

from credential_vault.config import (
    DEFAULT_PASSPHRASE,
    PASSPHRASE_SECRET,
    VaultConfig,
    resolve_passphrase,
)
from credential_vault.crypto import SCRYPT_N


class TestResolvePassphrase:
    """Resolution order: options → secrets → env → default."""

    def test_explicit_option_wins(self, clean_env):
        clean_env.setenv("CREDENTIAL_VAULT_PASSPHRASE", "from-env")
        assert resolve_passphrase(
            {"passphrase": "explicit"}, {PASSPHRASE_SECRET: "from-secrets"},
        ) == "explicit"

    def test_secrets_before_env(self, clean_env):
        clean_env.setenv("CREDENTIAL_VAULT_PASSPHRASE", "from-env")
        assert resolve_passphrase({}, {PASSPHRASE_SECRET: "from-secrets"}) == "from-secrets"

    def test_env(self, clean_env):
        clean_env.setenv("CREDENTIAL_VAULT_PASSPHRASE", "from-env")
        assert resolve_passphrase() == "from-env"

    def test_default_logs_warning(self, clean_env, caplog):
        with caplog.at_level(logging.WARNING, logger="credential_vault"):
            assert resolve_passphrase() == DEFAULT_PASSPHRASE
        assert "built-in default" in caplog.text

    def test_passphrase_never_logged(self, clean_env, caplog):
        with caplog.at_level(logging.DEBUG, logger="credential_vault"):
            resolve_passphrase({"passphrase": "hunter2-super-secret"})
        assert "hunter2-super-secret" not in caplog.text


class TestVaultConfig:
    """Tests for VaultConfig validation."""

    def test_defaults(self):
        config = VaultConfig(passphrase="topsecret")
        assert config.scrypt_n == SCRYPT_N
        assert config.passphrase.get_secret_value() == "topsecret"
        assert "topsecret" not in repr(config)

    def test_scrypt_n_power_of_two(self):
        with pytest.raises(ValidationError):
            VaultConfig(passphrase="p", scrypt_n=3000)

    def test_scrypt_n_minimum(self):
        with pytest.raises(ValidationError):
            VaultConfig(passphrase="p", scrypt_n=2 ** 4)

    def test_from_env(self, clean_env):
        clean_env.setenv("CREDENTIAL_VAULT_PASSPHRASE", "from-env")
        clean_env.setenv("CREDENTIAL_VAULT_SCRYPT_N", "2048")
        config = VaultConfig.from_env()
        assert config.passphrase.get_secret_value() == "from-env"
        assert config.scrypt_n == 2048

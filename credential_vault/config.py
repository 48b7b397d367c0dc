"""
Vault Configuration — passphrase resolution and validated KDF settings.

Reads settings from environment variables:
    CREDENTIAL_VAULT_PASSPHRASE = <passphrase>
    CREDENTIAL_VAULT_SCRYPT_N = <power of two, default 16384>

Security Note:
    Never log the passphrase. Only log where it was resolved from.
"""
import os
import logging
from collections.abc import Mapping
from typing import Any, Optional

from pydantic import BaseModel, Field, SecretStr, field_validator

from .crypto import SCRYPT_N, SCRYPT_P, SCRYPT_R

logger = logging.getLogger("credential_vault")

PASSPHRASE_ENV = "CREDENTIAL_VAULT_PASSPHRASE"
SCRYPT_N_ENV = "CREDENTIAL_VAULT_SCRYPT_N"
PASSPHRASE_SECRET = "credential-vault.passphrase"
DEFAULT_PASSPHRASE = "credential-vault-default-passphrase"


def resolve_passphrase(
    options: Optional[Mapping[str, Any]] = None,
    secrets: Optional[Mapping[str, str]] = None,
) -> str:
    """Pick the vault passphrase.

    Order: ``options["passphrase"]`` → ``secrets["credential-vault.passphrase"]``
    → ``$CREDENTIAL_VAULT_PASSPHRASE`` → built-in default.

    No strength policy is applied. Falling back to the built-in default
    only emits a warning.
    """
    options = options or {}
    secrets = secrets or {}
    if options.get("passphrase") is not None:
        logger.debug("Vault passphrase resolved from options")
        return options["passphrase"]
    if secrets.get(PASSPHRASE_SECRET) is not None:
        logger.debug("Vault passphrase resolved from secrets")
        return secrets[PASSPHRASE_SECRET]
    env_value = os.environ.get(PASSPHRASE_ENV)
    if env_value is not None:
        logger.debug("Vault passphrase resolved from %s", PASSPHRASE_ENV)
        return env_value
    logger.warning(
        "No vault passphrase configured, using the built-in default. "
        "Set %s to protect stored credentials.", PASSPHRASE_ENV,
    )
    return DEFAULT_PASSPHRASE


class VaultConfig(BaseModel):
    """Validated vault configuration."""

    passphrase: SecretStr
    scrypt_n: int = Field(default=SCRYPT_N, ge=2 ** 10)
    scrypt_r: int = Field(default=SCRYPT_R, ge=1)
    scrypt_p: int = Field(default=SCRYPT_P, ge=1)

    @field_validator("scrypt_n")
    @classmethod
    def validate_scrypt_n(cls, v: int) -> int:
        """scrypt requires N to be a power of two."""
        if v & (v - 1):
            raise ValueError(f"scrypt_n must be a power of two, got {v}")
        return v

    @classmethod
    def from_env(cls) -> "VaultConfig":
        """Create VaultConfig by loading values from environment.

        Returns:
            Populated VaultConfig instance.
        """
        scrypt_n = os.environ.get(SCRYPT_N_ENV)
        kwargs: dict[str, Any] = {"passphrase": resolve_passphrase()}
        if scrypt_n is not None:
            kwargs["scrypt_n"] = int(scrypt_n)
        return cls(**kwargs)

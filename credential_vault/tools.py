"""
Vault Tools — Callable actions exposing the vault to an agent runtime.

Each tool validates its arguments, calls one vault operation and reports the
outcome as a ``ToolResult`` envelope instead of raising. ``create_extension_pack``
wires one vault and its five tools together with activate/deactivate hooks.
"""
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from pydantic import BaseModel

from .config import resolve_passphrase
from .exceptions import VaultError
from .models import ImportFormat, utcnow
from .vault import CredentialVault
from .version import __version__

logger = logging.getLogger("credential_vault")

PACK_NAME = "credential-vault"
TOOL_PRIORITY = 50


class ToolResult(BaseModel):
    """Outcome envelope returned by every tool."""

    success: bool
    data: Optional[dict[str, Any]] = None
    error: Optional[str] = None


class VaultTool(ABC):
    """Base class for vault tools.

    Subclasses declare their metadata and JSON input schema and implement
    ``run``. Vault and argument errors are reported as failed results.
    """

    id: str = ""
    display_name: str = ""
    description: str = ""
    category: str = "security"
    version: str = __version__
    has_side_effects: bool = False
    input_schema: dict[str, Any] = {"type": "object", "properties": {}}

    def __init__(self, vault: CredentialVault):
        self._vault = vault

    @property
    def name(self) -> str:
        return self.id

    def _missing_args(self, args: Mapping[str, Any]) -> list[str]:
        return [
            name for name in self.input_schema.get("required", [])
            if args.get(name) is None
        ]

    def _non_string_args(self, args: Mapping[str, Any]) -> list[str]:
        return [
            name for name, prop in self.input_schema.get("properties", {}).items()
            if prop.get("type") == "string"
            and args.get(name) is not None
            and not isinstance(args[name], str)
        ]

    async def execute(self, args: Mapping[str, Any]) -> ToolResult:
        missing = self._missing_args(args)
        if missing:
            return ToolResult(
                success=False,
                error=f"Missing required argument(s): {', '.join(missing)}",
            )
        invalid = self._non_string_args(args)
        if invalid:
            return ToolResult(
                success=False,
                error=f"Argument(s) must be strings: {', '.join(invalid)}",
            )
        try:
            return await self.run(args)
        except (VaultError, ValueError) as err:
            logger.debug("Tool %s failed: %s", self.id, err)
            return ToolResult(success=False, error=str(err))

    @abstractmethod
    async def run(self, args: Mapping[str, Any]) -> ToolResult:
        """Perform the tool's vault operation on validated arguments."""


class CredentialsSetTool(VaultTool):
    id = "credentialsSet"
    display_name = "Store Credential"
    description = "Store an encrypted credential in the vault, scoped by platform and key."
    has_side_effects = True
    input_schema = {
        "type": "object",
        "properties": {
            "platform": {"type": "string", "description": 'Platform or service name (e.g., "openai", "github")'},
            "key": {"type": "string", "description": 'Credential key (e.g., "apiKey", "accessToken")'},
            "value": {"type": "string", "description": "Credential value to encrypt and store"},
        },
        "required": ["platform", "key", "value"],
    }

    async def run(self, args: Mapping[str, Any]) -> ToolResult:
        platform, key = args["platform"], args["key"]
        await self._vault.set(platform, key, args["value"])
        return ToolResult(success=True, data={
            "platform": platform,
            "key": key,
            "message": f"Credential stored for {platform}/{key}",
        })


class CredentialsGetTool(VaultTool):
    id = "credentialsGet"
    display_name = "Retrieve Credential"
    description = "Retrieve a decrypted credential from the vault by platform and key."
    input_schema = {
        "type": "object",
        "properties": {
            "platform": {"type": "string", "description": "Platform or service name"},
            "key": {"type": "string", "description": "Credential key"},
        },
        "required": ["platform", "key"],
    }

    async def run(self, args: Mapping[str, Any]) -> ToolResult:
        platform, key = args["platform"], args["key"]
        value = await self._vault.get(platform, key)
        if value is None:
            return ToolResult(success=False, error=f"Credential not found: {platform}/{key}")
        return ToolResult(success=True, data={"platform": platform, "key": key, "value": value})


class CredentialsListTool(VaultTool):
    id = "credentialsList"
    display_name = "List Credentials"
    description = "List stored credentials with masked values. Optionally filter by platform."
    input_schema = {
        "type": "object",
        "properties": {
            "platform": {"type": "string", "description": "Optional platform filter"},
        },
    }

    async def run(self, args: Mapping[str, Any]) -> ToolResult:
        credentials = await self._vault.list(args.get("platform"))
        return ToolResult(success=True, data={
            "credentials": [info.model_dump(mode="json") for info in credentials],
            "count": len(credentials),
        })


class CredentialsRotateTool(VaultTool):
    id = "credentialsRotate"
    display_name = "Rotate Credential"
    description = (
        "Rotate an existing credential by updating its value and marking "
        "rotation timestamp. Useful for OAuth token refresh."
    )
    has_side_effects = True
    input_schema = {
        "type": "object",
        "properties": {
            "platform": {"type": "string", "description": "Platform or service name"},
            "key": {"type": "string", "description": "Credential key to rotate"},
            "refreshToken": {"type": "string", "description": "New credential value or refresh token"},
        },
        "required": ["platform", "key", "refreshToken"],
    }

    async def run(self, args: Mapping[str, Any]) -> ToolResult:
        platform, key = args["platform"], args["key"]
        if not await self._vault.exists(platform, key):
            return ToolResult(
                success=False,
                error=(
                    f"Credential not found: {platform}/{key}. "
                    "Cannot rotate a non-existent credential."
                ),
            )
        await self._vault.rotate(platform, key, args["refreshToken"])
        return ToolResult(success=True, data={
            "platform": platform,
            "key": key,
            "rotatedAt": utcnow().isoformat(),
            "message": f"Credential rotated for {platform}/{key}",
        })


class CredentialsImportTool(VaultTool):
    id = "credentialsImport"
    display_name = "Import Credentials"
    description = "Import credentials from JSON array or CSV data into the encrypted vault."
    has_side_effects = True
    input_schema = {
        "type": "object",
        "properties": {
            "data": {
                "type": "string",
                "description": (
                    'Credential data as JSON array (e.g., [{"platform":"x","key":"apiKey","value":"sk-..."}]) '
                    "or CSV (platform,key,value per line)"
                ),
            },
            "format": {
                "type": "string",
                "enum": [fmt.value for fmt in ImportFormat],
                "description": "Data format (default: json)",
            },
        },
        "required": ["data"],
    }

    async def run(self, args: Mapping[str, Any]) -> ToolResult:
        result = await self._vault.import_credentials(
            args["data"], args.get("format") or ImportFormat.JSON,
        )
        return ToolResult(success=True, data={
            "imported": result.imported,
            "skipped": result.skipped,
            "errors": result.errors or None,
            "message": f"Imported {result.imported} credential(s), skipped {result.skipped}",
        })


TOOL_CLASSES = (
    CredentialsSetTool,
    CredentialsGetTool,
    CredentialsListTool,
    CredentialsRotateTool,
    CredentialsImportTool,
)


# ---------------------------------------------------------------------------
# Extension pack
# ---------------------------------------------------------------------------

@dataclass
class ToolDescriptor:
    id: str
    payload: VaultTool
    kind: str = "tool"
    priority: int = TOOL_PRIORITY


@dataclass
class ExtensionPack:
    name: str
    version: str
    vault: CredentialVault
    descriptors: list[ToolDescriptor] = field(default_factory=list)
    on_activate: Optional[Callable[[], Awaitable[None]]] = None
    on_deactivate: Optional[Callable[[], Awaitable[None]]] = None

    def tool(self, tool_id: str) -> VaultTool:
        for descriptor in self.descriptors:
            if descriptor.id == tool_id:
                return descriptor.payload
        raise KeyError(tool_id)


def create_extension_pack(
    options: Optional[Mapping[str, Any]] = None,
    secrets: Optional[Mapping[str, str]] = None,
) -> ExtensionPack:
    """Build a vault and its tools.

    The passphrase is resolved from ``options``, then ``secrets`` (or
    ``options["secrets"]``), then the environment. ``options`` may also carry
    ``scrypt_n`` to tune the key derivation cost.
    """
    options = options or {}
    secrets = options.get("secrets") or secrets or {}
    vault_kwargs = {}
    if options.get("scrypt_n") is not None:
        vault_kwargs["scrypt_n"] = options["scrypt_n"]
    vault = CredentialVault(resolve_passphrase(options, secrets), **vault_kwargs)
    return ExtensionPack(
        name=PACK_NAME,
        version=__version__,
        vault=vault,
        descriptors=[ToolDescriptor(id=cls.id, payload=cls(vault)) for cls in TOOL_CLASSES],
        on_activate=vault.initialize,
        on_deactivate=vault.shutdown,
    )

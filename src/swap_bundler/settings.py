"""Settings module with unified configuration precedence: CLI > ENV > CONFIG FILE."""

from __future__ import annotations

import os
import tomllib
from enum import Enum
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    field_validator,
)
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from .constants import (
    ARTIO_CHAIN_ID,
    BERACHAIN_CHAIN_ID,
    DEFAULT_ARTIO_RPC_URL,
    DEFAULT_BERACHAIN_RPC_URL,
    DEFAULT_CATALOG,
    DEFAULT_PRICE_API_URL,
    DEFAULT_ROUTING_API_URL,
    MULTISEND_CALL_ONLY_ADDRESS,
    PRICE_CACHE_TTL_SECONDS,
)

load_dotenv()

SECRET_FIELDS = ("api_key", "private_key", "safe_txn_srvc_api_key")


class Network(str, Enum):
    BERACHAIN = "berachain"
    ARTIO = "artio"


class DryRunFormat(str, Enum):
    TABLE = "table"
    JSON = "json"


NETWORK_CHAIN_IDS = {
    Network.BERACHAIN: BERACHAIN_CHAIN_ID,
    Network.ARTIO: ARTIO_CHAIN_ID,
}

NETWORK_RPC_DEFAULTS = {
    Network.BERACHAIN: DEFAULT_BERACHAIN_RPC_URL,
    Network.ARTIO: DEFAULT_ARTIO_RPC_URL,
}


class AssetConfig(BaseModel):
    """One entry of the token catalog."""

    symbol: str
    address: str
    decimals: int = Field(ge=0, le=36)
    is_native: bool = False

    model_config = ConfigDict(extra="ignore")


class BundlerSettings(BaseSettings):
    """Single source of truth for configuration. Values may come from:
    - CLI (init kwargs)
    - ENV / .env (prefixed with SWAP_BUNDLER_)
    - Config file (TOML), lowest precedence

    Do not read os.environ or files elsewhere in the codebase.
    """

    # --- global toggles ---
    dry_run: bool = True
    dry_run_format: DryRunFormat = DryRunFormat.TABLE

    # --- network ---
    network: Network = Network.BERACHAIN
    rpc_url: str | None = None

    # --- routing / price services ---
    routing_api_url: str = DEFAULT_ROUTING_API_URL
    price_api_url: str = DEFAULT_PRICE_API_URL
    api_key: SecretStr | None = None
    quote_timeout: float = Field(default=10.0, gt=0)
    slippage_tolerance: float = Field(
        default=0.5,
        gt=0,
        le=100.0,
        description="Maximum accepted deviation between expected and minimum output (%).",
    )
    price_cache_ttl_seconds: float = Field(default=PRICE_CACHE_TTL_SECONDS, gt=0)

    # --- safe / signing ---
    safe_address: str | None = None
    private_key: SecretStr | None = None
    safe_txn_srvc_api_key: SecretStr | None = None
    safe_txn_srvc_url: str | None = None
    safe_version: str = "1.3.0"
    multisend_address: str = MULTISEND_CALL_ONLY_ADDRESS

    # --- catalog (from config file only) ---
    assets: list[AssetConfig] = Field(
        default_factory=lambda: [AssetConfig(**entry) for entry in DEFAULT_CATALOG]
    )

    # --- runtime ---
    global_timeout_seconds: float | None = 120.0
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="SWAP_BUNDLER_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator(*SECRET_FIELDS, mode="before")
    @classmethod
    def wrap_secrets(cls, v: Any) -> SecretStr | None:
        """Wrap string secrets in SecretStr."""
        if v is None or isinstance(v, SecretStr):
            return v
        return SecretStr(v)

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Custom config-file source with explicit precedence: CLI > ENV > FILE."""
        env_cfg = os.environ.get("SWAP_BUNDLER_CONFIG")
        cfg_path = Path(env_cfg) if env_cfg else None

        class TomlConfigSource(PydanticBaseSettingsSource):
            def __init__(self, settings_cls: type[BaseSettings], path: Path | None):
                super().__init__(settings_cls)
                self._path = path

            def get_field_value(
                self, field: Any, field_name: str
            ) -> tuple[Any, str, bool]:
                return None, "", False

            def __call__(self) -> dict[str, Any]:
                if not self._path:
                    local_config = Path("swap-bundler.toml")
                    user_config = (
                        Path.home() / ".config" / "swap-bundler" / "config.toml"
                    )
                    if local_config.exists():
                        self._path = local_config
                    elif user_config.exists():
                        self._path = user_config
                    else:
                        return {}

                if not self._path.exists():
                    return {}

                with self._path.open("rb") as f:
                    data = tomllib.load(f)  # supports top-level or [swap_bundler]
                body = data.get("swap_bundler", data)
                if not isinstance(body, dict):
                    return {}

                for key in SECRET_FIELDS:
                    if key in body:
                        raise ValueError(
                            f"Security violation: '{key}' found in TOML config file. "
                            f"Secrets must only be provided via environment variables or CLI flags."
                        )

                return body

        return (
            init_settings,  # CLI (highest)
            env_settings,  # ENV
            TomlConfigSource(settings_cls, cfg_path),  # CONFIG (lowest)
            file_secret_settings,
        )

    def as_safe_dict(self) -> dict[str, Any]:
        """Return the config as a dict with secrets redacted."""
        data = self.model_dump(mode="json")
        for key in SECRET_FIELDS:
            if getattr(self, key):
                data[key] = "***redacted***"
        return data

    @property
    def is_broadcast(self) -> bool:
        """Check if Broadcast mode is enabled (Safe address provided and not dry-run)."""
        return self.safe_address is not None and not self.dry_run

    @property
    def chain_id(self) -> int:
        return NETWORK_CHAIN_IDS[self.network]

    @property
    def rpc_url_required(self) -> str:
        """Get rpc_url, falling back to the network default."""
        return self.rpc_url or NETWORK_RPC_DEFAULTS[self.network]

    @property
    def api_key_value(self) -> str | None:
        if self.api_key is None:
            return None
        return self.api_key.get_secret_value().strip() or None

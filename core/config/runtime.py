"""
Runtime Configuration

Central configuration for one chain node: ledger, withdrawal fees, split
router, messaging transport and proof verifier.
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field
from typing import Any, Optional
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


DEFAULT_LEDGER_ADDRESS = "0x" + "00" * 19 + "a1"
DEFAULT_ROUTER_ADDRESS = "0x" + "00" * 19 + "b2"
DEFAULT_OWNER_ADDRESS = "0x" + "00" * 19 + "0f"
DEFAULT_FEE_SINK = "0x" + "00" * 19 + "fe"


@dataclass
class LedgerConfig:
    """Configuration for the commitment ledger."""
    chain_id: int = 1
    token: str = "USDC"
    address: str = DEFAULT_LEDGER_ADDRESS
    depth: int = 20
    root_history_size: int = 30


@dataclass
class WithdrawalConfig:
    """Configuration for withdrawal fees."""
    fee_bps: int = 10
    fee_sink: str = DEFAULT_FEE_SINK
    owner: str = DEFAULT_OWNER_ADDRESS


@dataclass
class RemoteRouteConfig:
    """A remote chain the split router can send legs to."""
    chain_id: int
    transport_chain_id: int
    ledger_address: str
    router_address: str
    gas_price: Optional[int] = None


@dataclass
class RouterConfig:
    """Configuration for the cross-chain split router."""
    address: str = DEFAULT_ROUTER_ADDRESS
    owner: str = DEFAULT_OWNER_ADDRESS
    transport_chain_id: Optional[int] = None
    replay_protection: bool = True
    enforce_trusted_sources: bool = True
    local_gas_price: Optional[int] = None
    routes: list[RemoteRouteConfig] = field(default_factory=list)


@dataclass
class TransportConfig:
    """Configuration for the messaging transport."""
    kind: str = "memory"  # memory | http
    address: Optional[str] = None
    fee_per_message: int = 0
    auto_deliver: bool = False
    relayer_url: Optional[str] = None
    relayer_token: Optional[str] = None
    timeout: float = 10.0


@dataclass
class VerifierConfig:
    """Configuration for the proof verifier."""
    kind: str = "mock"  # mock | inclusion | snarkjs
    mock_result: bool = True
    vkey_path: Optional[str] = None
    command: str = "snarkjs"
    timeout: float = 60.0


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


@dataclass
class RuntimeConfig:
    """
    Complete runtime configuration of a privpay node.

    Can be loaded from:
    - Environment variables
    - YAML file
    - Programmatic construction
    """
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    withdrawal: WithdrawalConfig = field(default_factory=WithdrawalConfig)
    router: RouterConfig = field(default_factory=RouterConfig)
    transport: TransportConfig = field(default_factory=TransportConfig)
    verifier: VerifierConfig = field(default_factory=VerifierConfig)
    log_level: str = "INFO"
    extra: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def _get_env_overrides() -> dict[str, Any]:
        """
        Get configuration overrides from environment variables.

        This is the SINGLE source of truth for all env var reading.

        Supported variables:
        - PRIVPAY_CHAIN_ID: Chain id of this node
        - PRIVPAY_TREE_DEPTH: Commitment tree depth
        - PRIVPAY_ROOT_HISTORY: Number of recent roots accepted
        - PRIVPAY_TOKEN: Pool token identifier
        - PRIVPAY_FEE_BPS: Withdrawal fee in basis points
        - PRIVPAY_FEE_SINK: Fee recipient address
        - PRIVPAY_VERIFIER: mock | inclusion | snarkjs
        - PRIVPAY_VKEY_PATH: Groth16 verification key for snarkjs
        - PRIVPAY_TRANSPORT: memory | http
        - PRIVPAY_RELAYER_URL: Relayer base URL (http transport)
        - PRIVPAY_RELAYER_TOKEN: Shared relayer secret
        - PRIVPAY_REPLAY_PROTECTION: Reject replayed inbound nonces (true/false)
        - PRIVPAY_LOG_LEVEL: Logging level name
        """
        overrides: dict[str, Any] = {}

        # Ledger settings
        if os.getenv("PRIVPAY_CHAIN_ID"):
            overrides.setdefault("ledger", {})["chain_id"] = int(os.getenv("PRIVPAY_CHAIN_ID"))
        if os.getenv("PRIVPAY_TREE_DEPTH"):
            overrides.setdefault("ledger", {})["depth"] = int(os.getenv("PRIVPAY_TREE_DEPTH"))
        if os.getenv("PRIVPAY_ROOT_HISTORY"):
            overrides.setdefault("ledger", {})["root_history_size"] = int(
                os.getenv("PRIVPAY_ROOT_HISTORY")
            )
        if os.getenv("PRIVPAY_TOKEN"):
            overrides.setdefault("ledger", {})["token"] = os.getenv("PRIVPAY_TOKEN")

        # Withdrawal settings
        if os.getenv("PRIVPAY_FEE_BPS"):
            overrides.setdefault("withdrawal", {})["fee_bps"] = int(os.getenv("PRIVPAY_FEE_BPS"))
        if os.getenv("PRIVPAY_FEE_SINK"):
            overrides.setdefault("withdrawal", {})["fee_sink"] = os.getenv("PRIVPAY_FEE_SINK")

        # Verifier settings
        if os.getenv("PRIVPAY_VERIFIER"):
            overrides.setdefault("verifier", {})["kind"] = os.getenv("PRIVPAY_VERIFIER")
        if os.getenv("PRIVPAY_VKEY_PATH"):
            overrides.setdefault("verifier", {})["vkey_path"] = os.getenv("PRIVPAY_VKEY_PATH")

        # Transport settings
        if os.getenv("PRIVPAY_TRANSPORT"):
            overrides.setdefault("transport", {})["kind"] = os.getenv("PRIVPAY_TRANSPORT")
        if os.getenv("PRIVPAY_RELAYER_URL"):
            overrides.setdefault("transport", {})["relayer_url"] = os.getenv("PRIVPAY_RELAYER_URL")
        if os.getenv("PRIVPAY_RELAYER_TOKEN"):
            overrides.setdefault("transport", {})["relayer_token"] = os.getenv("PRIVPAY_RELAYER_TOKEN")

        # Router settings
        if os.getenv("PRIVPAY_REPLAY_PROTECTION"):
            overrides.setdefault("router", {})["replay_protection"] = _env_bool(
                "PRIVPAY_REPLAY_PROTECTION", "true"
            )

        if os.getenv("PRIVPAY_LOG_LEVEL"):
            overrides["log_level"] = os.getenv("PRIVPAY_LOG_LEVEL").upper()

        return overrides

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        """
        Load configuration purely from environment variables.

        Uses defaults for any values not specified in env vars.
        """
        overrides = cls._get_env_overrides()
        return cls.from_dict(overrides)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "RuntimeConfig":
        """Load configuration from a YAML file."""
        import yaml
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f)

        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RuntimeConfig":
        """Load configuration from a dictionary (supports partial data)."""
        ledger_data = data.get("ledger", {})
        withdrawal_data = data.get("withdrawal", {})
        router_data = dict(data.get("router", {}) or {})
        transport_data = data.get("transport", {})
        verifier_data = data.get("verifier", {})

        routes = [
            route if isinstance(route, RemoteRouteConfig) else RemoteRouteConfig(**route)
            for route in router_data.pop("routes", []) or []
        ]

        return cls(
            ledger=LedgerConfig(**ledger_data) if ledger_data else LedgerConfig(),
            withdrawal=WithdrawalConfig(**withdrawal_data) if withdrawal_data else WithdrawalConfig(),
            router=RouterConfig(routes=routes, **router_data),
            transport=TransportConfig(**transport_data) if transport_data else TransportConfig(),
            verifier=VerifierConfig(**verifier_data) if verifier_data else VerifierConfig(),
            log_level=str(data.get("log_level", "INFO")).upper(),
            extra=data.get("extra", {}),
        )

    def with_env_overrides(self) -> "RuntimeConfig":
        """
        Return a new config with environment variable overrides applied.

        This allows loading from a config file first, then overlaying env vars.
        """
        overrides = self._get_env_overrides()
        if not overrides:
            return self

        import copy
        new_config = copy.deepcopy(self)

        for section in ("ledger", "withdrawal", "router", "transport", "verifier"):
            for key, value in overrides.get(section, {}).items():
                setattr(getattr(new_config, section), key, value)

        if "log_level" in overrides:
            new_config.log_level = overrides["log_level"]

        return new_config

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to a dictionary (relayer token redacted)."""
        data = asdict(self)
        if data["transport"].get("relayer_token"):
            data["transport"]["relayer_token"] = "***"
        return data


# Global default configuration
_default_config: Optional[RuntimeConfig] = None


def get_default_config() -> RuntimeConfig:
    """Get the default runtime configuration."""
    global _default_config
    if _default_config is None:
        _default_config = RuntimeConfig.from_env()
    return _default_config


def set_default_config(config: RuntimeConfig) -> None:
    """Set the default runtime configuration."""
    global _default_config
    _default_config = config

"""
Configuration schema validation using Pydantic
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator
from web3 import Web3

LogLevel = Literal["error", "warn", "info", "debug"]

DEFAULT_RPC_URL = "https://eth-mainnet.g.alchemy.com/v2/demo"


class PoolSettings(BaseModel):
    """A V2 pair to watch"""

    address: str = Field(description="Pair contract address")
    exchange: str = Field(default="unknown", description="Venue label")

    @field_validator("address")
    @classmethod
    def validate_address(cls, v):
        if not Web3.is_address(v):
            raise ValueError(f"Invalid pool address: {v}")
        return Web3.to_checksum_address(v)


class MonitorSettings(BaseModel):
    """Everything the monitor core needs, independent of where it came from"""

    # Network
    rpc_url: str = Field(default=DEFAULT_RPC_URL, description="HTTP(S) RPC endpoint")
    chain_id: int = Field(default=1, ge=1)
    rpc_timeout_sec: float = Field(default=10.0, gt=0, le=120)

    # Profit and risk thresholds
    min_profit_eth: float = Field(
        default=0.01, ge=0, description="Minimum profit (ETH fraction; x100 = percent)"
    )
    max_gas_price_gwei: float = Field(default=50, gt=0, le=10000)
    slippage_tolerance_pct: float = Field(default=0.5, ge=0, le=100)
    max_slippage_pct: float = Field(default=3.0, ge=0, le=100)
    max_trade_size_eth: float = Field(default=1.0, gt=0)
    daily_loss_limit_eth: float = Field(default=0.5, ge=0)
    suspicious_profit_pct: float = Field(default=10.0, gt=0)

    # Simulated execution
    trade_size_eth: float = Field(default=0.1, gt=0)
    gas_limit: int = Field(default=300_000, ge=21_000, le=30_000_000)

    # Scan loop
    scan_interval_sec: float = Field(default=5.0, gt=0, le=3600)
    max_opportunities_per_cycle: int = Field(default=3, ge=1, le=100)

    # Observability
    log_level: LogLevel = "info"
    event_log_file: Optional[str] = None
    metrics_port: Optional[int] = Field(default=None, ge=1, le=65535)

    pools: List[PoolSettings] = Field(default_factory=list)

    @field_validator("rpc_url")
    @classmethod
    def validate_rpc_url(cls, v):
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Invalid RPC URL format: {v}")
        return v

    @model_validator(mode="after")
    def validate_unique_pools(self):
        seen = set()
        for pool in self.pools:
            if pool.address in seen:
                raise ValueError(f"Duplicate pool address: {pool.address}")
            seen.add(pool.address)
        return self

    @property
    def min_profit_pct(self) -> float:
        return self.min_profit_eth * 100

"""Monitor configuration: environment variables, overridden by CLI options.

``PROVIDER_URL`` is the only required setting; everything else has the
defaults the updater monitor has always run with.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Mapping

from eth_utils import is_address, to_checksum_address

from .domain.value_types import Address

DEFAULT_CONTRACT = "0xF990f9CB1A0aa6B51c0720a6f4cAe577d7AbD86A"
# [0, 17031168) was served by the v0 contract and is never reported for the default contract
DEFAULT_CONTRACT_ACCEPTED_GAPS = frozenset({17031168})

ENV_PREFIX = "SYNCMON_"


class ConfigError(ValueError):
    """Invalid or missing configuration; fatal before monitoring starts."""


@dataclass(slots=True, frozen=True)
class MonitorConfig:
    provider_url: str
    contract: Address = Address(DEFAULT_CONTRACT)
    start_block: int = 0
    gap_tolerance: int = 192
    finality_offset: int = 6
    interval_s: float = 20.0
    retries: int = 3
    log_chunk_size: int = 10_000
    concurrency: int = 4
    accepted_gaps: frozenset[int] = field(default_factory=frozenset)
    inclusive_boundary: bool = True
    log_level: str = "INFO"

    def validate(self) -> "MonitorConfig":
        if not self.provider_url or not self.provider_url.strip():
            raise ConfigError(
                "Please set PROVIDER_URL env variable (or --rpc), you can get it from infura or alchemy"
            )
        if not is_address(str(self.contract).lower()):
            raise ConfigError(f"invalid contract address: {self.contract!r}")
        for name in ("start_block", "gap_tolerance", "finality_offset"):
            if getattr(self, name) < 0:
                raise ConfigError(f"{name} must be >= 0, got {getattr(self, name)}")
        for name in ("retries", "log_chunk_size", "concurrency"):
            if getattr(self, name) < 1:
                raise ConfigError(f"{name} must be >= 1, got {getattr(self, name)}")
        if self.interval_s <= 0:
            raise ConfigError(f"interval_s must be > 0, got {self.interval_s}")
        return self


def _int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(ENV_PREFIX + key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{ENV_PREFIX}{key} must be an integer, got {raw!r}") from None


def _float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(ENV_PREFIX + key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{ENV_PREFIX}{key} must be a number, got {raw!r}") from None


def _bool(env: Mapping[str, str], key: str) -> bool:
    return env.get(ENV_PREFIX + key, "").strip().lower() in ("1", "true", "yes", "on")


def parse_gaps(raw: str) -> frozenset[int]:
    """Parse a comma separated list of origin heights ("17031168, 42")."""
    try:
        return frozenset(int(p) for p in raw.split(",") if p.strip())
    except ValueError:
        raise ConfigError(f"accepted gaps must be comma separated integers, got {raw!r}") from None


def load_config(env: Mapping[str, str], **overrides: Any) -> MonitorConfig:
    """Build a validated config from `env`; non-None `overrides` win."""
    contract = env.get(ENV_PREFIX + "CONTRACT") or DEFAULT_CONTRACT
    cfg = MonitorConfig(
        provider_url=env.get("PROVIDER_URL", ""),
        contract=Address(contract),
        start_block=_int(env, "START_BLOCK", 0),
        gap_tolerance=_int(env, "GAP_TOLERANCE", 192),
        finality_offset=_int(env, "FINALITY_OFFSET", 6),
        interval_s=_float(env, "INTERVAL", 20.0),
        retries=_int(env, "RETRIES", 3),
        log_chunk_size=_int(env, "CHUNK_SIZE", 10_000),
        concurrency=_int(env, "CONCURRENCY", 4),
        inclusive_boundary=not _bool(env, "EXCLUSIVE_BOUNDARY"),
        log_level=env.get(ENV_PREFIX + "LOG_LEVEL", "INFO"),
    )
    cfg = replace(cfg, **{k: v for k, v in overrides.items() if v is not None})

    if "accepted_gaps" not in overrides or overrides["accepted_gaps"] is None:
        raw = env.get(ENV_PREFIX + "ACCEPTED_GAPS")
        if raw is not None:
            gaps = parse_gaps(raw)
        elif cfg.contract.lower() == DEFAULT_CONTRACT.lower():
            gaps = DEFAULT_CONTRACT_ACCEPTED_GAPS
        else:
            gaps = frozenset()
        cfg = replace(cfg, accepted_gaps=gaps)

    cfg = cfg.validate()
    return replace(cfg, contract=Address(to_checksum_address(cfg.contract)),
                   accepted_gaps=frozenset(cfg.accepted_gaps))

"""
Coin-toss game configuration.

Immutable per game instance. Provides:
- a frozen dataclass with validation
- loading from environment variables (prefix configurable)
- loading from a JSON or YAML file
- `devnet()` for deterministic local setups (CLI simulation, tests)

Addresses are 32-byte values and appear hex-encoded ("0x…") in files and the
environment; the resolver public key is a 64-byte affine BN254 point, also
hex-encoded.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping

import yaml

from .constants import (
    DEFAULT_BET_AMOUNT,
    DEFAULT_ORACLE_FEE,
    DEFAULT_PHASE_LENGTH_S,
    DEFAULT_TIMESTAMP_JITTER_S,
)
from .elgamal import is_valid_point
from .errors import ConfigError
from .types.core import Address, Point, address_hex, parse_address
from .utils.hash import address_from_label


@dataclass(frozen=True)
class CoinTossConfig:
    """
    Identities:
      - resolver: party that decrypts the round randomness
      - resolver_public_key: key the revealed private key must match
      - token: token ledger the game escrows through
      - oracle: the only caller allowed to deliver results

    Economics / timing:
      - bet_amount: stake per bet (base units)
      - phase_length: seconds each timed phase stays open
      - oracle_fee: paid by the roller to the oracle
      - timestamp_jitter: accepted skew of caller-provided timestamps (seconds)

    Topology:
      - reveal_phase: False → winners reveal during CLAIM (default);
                      True  → dedicated REVEAL phase closed by end_reveal_phase
    """

    resolver: Address
    resolver_public_key: Point
    token: Address
    oracle: Address
    bet_amount: int = DEFAULT_BET_AMOUNT
    phase_length: int = DEFAULT_PHASE_LENGTH_S
    oracle_fee: int = DEFAULT_ORACLE_FEE
    timestamp_jitter: int = DEFAULT_TIMESTAMP_JITTER_S
    reveal_phase: bool = False

    def validate(self) -> None:
        for name in ("resolver", "token", "oracle"):
            v = getattr(self, name)
            if not isinstance(v, (bytes, bytearray)) or len(v) != 32:
                raise ConfigError(f"{name} must be a 32-byte address")
        if not isinstance(self.resolver_public_key, Point):
            raise ConfigError("resolver_public_key must be a Point")
        if self.resolver_public_key.is_infinity or not is_valid_point(self.resolver_public_key):
            raise ConfigError("resolver_public_key is not a valid BN254 G1 point")
        if self.bet_amount <= 0:
            raise ConfigError("bet_amount must be > 0")
        if self.phase_length <= 0:
            raise ConfigError("phase_length must be > 0")
        if self.oracle_fee < 0:
            raise ConfigError("oracle_fee must be >= 0")
        if self.timestamp_jitter < 0:
            raise ConfigError("timestamp_jitter must be >= 0")

    def with_overrides(self, **changes: Any) -> "CoinTossConfig":
        cfg = replace(self, **changes)
        cfg.validate()
        return cfg

    # -------------------------
    # Serialization helpers
    # -------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "resolver": address_hex(self.resolver),
            "resolver_public_key": self.resolver_public_key.to_hex(),
            "token": address_hex(self.token),
            "oracle": address_hex(self.oracle),
            "bet_amount": self.bet_amount,
            "phase_length": self.phase_length,
            "oracle_fee": self.oracle_fee,
            "timestamp_jitter": self.timestamp_jitter,
            "reveal_phase": self.reveal_phase,
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True)

    # -------------------------
    # Loaders
    # -------------------------

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "CoinTossConfig":
        d = dict(data)
        try:
            cfg = CoinTossConfig(
                resolver=parse_address(_hex(d.pop("resolver"), 32)),
                resolver_public_key=Point.from_hex(_hex(d.pop("resolver_public_key"), 64)),
                token=parse_address(_hex(d.pop("token"), 32)),
                oracle=parse_address(_hex(d.pop("oracle"), 32)),
                bet_amount=int(d.pop("bet_amount", DEFAULT_BET_AMOUNT)),
                phase_length=int(d.pop("phase_length", DEFAULT_PHASE_LENGTH_S)),
                oracle_fee=int(d.pop("oracle_fee", DEFAULT_ORACLE_FEE)),
                timestamp_jitter=int(d.pop("timestamp_jitter", DEFAULT_TIMESTAMP_JITTER_S)),
                reveal_phase=_as_bool(d.pop("reveal_phase", False)),
            )
        except KeyError as e:
            raise ConfigError(f"missing config key {e.args[0]!r}") from None
        except (TypeError, ValueError, OverflowError) as e:
            raise ConfigError(f"invalid config value: {e}") from e
        if d:
            raise ConfigError(f"unknown config keys: {sorted(d)}")
        cfg.validate()
        return cfg

    @staticmethod
    def from_env(prefix: str = "COINTOSS_") -> "CoinTossConfig":
        """
        Load configuration from environment variables.

        Required:
          - COINTOSS_RESOLVER=0x…            (32 bytes)
          - COINTOSS_RESOLVER_PUBLIC_KEY=0x… (64 bytes, x||y)
          - COINTOSS_TOKEN=0x…
          - COINTOSS_ORACLE=0x…

        Optional:
          - COINTOSS_BET_AMOUNT=1337
          - COINTOSS_PHASE_LENGTH=600
          - COINTOSS_ORACLE_FEE=100
          - COINTOSS_TIMESTAMP_JITTER=600
          - COINTOSS_REVEAL_PHASE=false
        """
        keys = (
            "resolver",
            "resolver_public_key",
            "token",
            "oracle",
            "bet_amount",
            "phase_length",
            "oracle_fee",
            "timestamp_jitter",
            "reveal_phase",
        )
        data: Dict[str, Any] = {}
        for k in keys:
            raw = os.getenv(prefix + k.upper())
            if raw is not None:
                data[k] = raw
        return CoinTossConfig.from_dict(data)

    @staticmethod
    def from_file(path: str) -> "CoinTossConfig":
        """
        Load configuration from a JSON or YAML file. Example (YAML):

            resolver: "0x…"
            resolver_public_key: "0x…"
            token: "0x…"
            oracle: "0x…"
            bet_amount: 1337
            phase_length: 600
            reveal_phase: false
        """
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
        data = _parse_json_or_yaml(text, path)
        return CoinTossConfig.from_dict(data)

    @staticmethod
    def devnet(resolver_public_key: Point, **overrides: Any) -> "CoinTossConfig":
        """Config with label-derived addresses ("resolver", "token", "oracle")."""
        cfg = CoinTossConfig(
            resolver=address_from_label("resolver"),
            resolver_public_key=resolver_public_key,
            token=address_from_label("token"),
            oracle=address_from_label("oracle"),
        )
        return cfg.with_overrides(**overrides) if overrides else _validated(cfg)


# -------------------------
# Utilities
# -------------------------


def _validated(cfg: CoinTossConfig) -> CoinTossConfig:
    cfg.validate()
    return cfg


def _hex(v: Any, width: int) -> str:
    # Unquoted 0x… scalars come back from YAML as ints.
    if isinstance(v, int) and not isinstance(v, bool):
        return v.to_bytes(width, "big").hex()
    return str(v)


def _as_bool(v: Any) -> bool:
    if isinstance(v, bool):
        return v
    return str(v).strip().lower() in {"1", "true", "yes", "on"}


def _parse_json_or_yaml(text: str, path_hint: str) -> Dict[str, Any]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigError(f"{path_hint}: neither valid JSON nor YAML ({e})") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path_hint}: top-level config must be a mapping")
    return data


__all__ = ["CoinTossConfig"]

import json

import pytest
import yaml

from cointoss.config import CoinTossConfig
from cointoss.elgamal import keygen
from cointoss.errors import ConfigError
from cointoss.types.core import Point

from .conftest import RESOLVER_SK


@pytest.fixture()
def cfg() -> CoinTossConfig:
    _, pk = keygen(RESOLVER_SK)
    return CoinTossConfig.devnet(pk)


def test_devnet_defaults(cfg):
    assert (cfg.bet_amount, cfg.phase_length, cfg.oracle_fee, cfg.timestamp_jitter) == (1337, 600, 100, 600)
    assert cfg.reveal_phase is False
    assert len({cfg.resolver, cfg.token, cfg.oracle}) == 3


def test_dict_round_trip(cfg):
    assert CoinTossConfig.from_dict(cfg.to_dict()) == cfg
    assert json.loads(cfg.to_json())["bet_amount"] == 1337


def test_from_env(cfg, monkeypatch):
    for k, v in cfg.to_dict().items():
        monkeypatch.setenv("COINTOSS_" + k.upper(), str(v).lower() if isinstance(v, bool) else str(v))
    monkeypatch.setenv("COINTOSS_PHASE_LENGTH", "30")
    monkeypatch.setenv("COINTOSS_REVEAL_PHASE", "yes")
    loaded = CoinTossConfig.from_env()
    assert loaded.phase_length == 30
    assert loaded.reveal_phase is True
    assert loaded.resolver_public_key == cfg.resolver_public_key


def test_from_env_missing_required():
    with pytest.raises(ConfigError):
        CoinTossConfig.from_env(prefix="COINTOSS_TEST_UNSET_")


def test_from_json_file(cfg, tmp_path):
    p = tmp_path / "cointoss.json"
    p.write_text(cfg.to_json())
    assert CoinTossConfig.from_file(str(p)) == cfg


def test_from_yaml_file(cfg, tmp_path):
    d = cfg.to_dict()
    d["reveal_phase"] = True
    p = tmp_path / "cointoss.yaml"
    p.write_text(yaml.safe_dump(d))
    loaded = CoinTossConfig.from_file(str(p))
    assert loaded.reveal_phase is True
    assert loaded.oracle == cfg.oracle


def test_yaml_with_unquoted_hex(cfg, tmp_path):
    d = cfg.to_dict()
    lines = [f"{k}: {v}" for k, v in d.items() if isinstance(v, str)]
    lines.append("bet_amount: 10")
    p = tmp_path / "cointoss.yml"
    p.write_text("\n".join(lines) + "\n")
    loaded = CoinTossConfig.from_file(str(p))
    assert loaded.bet_amount == 10
    assert loaded.resolver == cfg.resolver
    assert loaded.resolver_public_key == cfg.resolver_public_key


def test_unknown_and_missing_keys(cfg):
    d = cfg.to_dict()
    d["house_edge"] = 1
    with pytest.raises(ConfigError, match="unknown"):
        CoinTossConfig.from_dict(d)
    d = cfg.to_dict()
    del d["oracle"]
    with pytest.raises(ConfigError, match="oracle"):
        CoinTossConfig.from_dict(d)


@pytest.mark.parametrize(
    "key,value",
    [
        ("resolver", "0x1234"),
        ("token", "not-hex"),
        ("bet_amount", 0),
        ("bet_amount", "many"),
        ("phase_length", -5),
        ("oracle_fee", -1),
        ("timestamp_jitter", -1),
        ("resolver_public_key", Point(1, 1).to_hex()),
        ("resolver_public_key", Point(0, 0).to_hex()),
    ],
)
def test_invalid_values(cfg, key, value):
    d = cfg.to_dict()
    d[key] = value
    with pytest.raises(ConfigError):
        CoinTossConfig.from_dict(d)


def test_with_overrides_validates(cfg):
    assert cfg.with_overrides(bet_amount=5).bet_amount == 5
    with pytest.raises(ConfigError):
        cfg.with_overrides(phase_length=0)


def test_config_error_is_a_value_error():
    assert issubclass(ConfigError, ValueError)


@pytest.mark.parametrize("text", ["- 1\n- 2\n", "key: [unclosed\n"])
def test_bad_files(tmp_path, text):
    p = tmp_path / "bad.yaml"
    p.write_text(text)
    with pytest.raises(ConfigError):
        CoinTossConfig.from_file(str(p))

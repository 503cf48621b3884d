from __future__ import annotations

from pathlib import Path

import pytest

from hashlab.config import AppConfig, DatasetPolicy, OpenTablePolicy, load_app_config
from hashlab.contracts.error import BadInputError, InvalidConfigurationError


def test_default_config_validates() -> None:
    cfg = load_app_config(None)
    assert cfg.open_table.max_load_factor == pytest.approx(0.7)
    assert cfg.open_table.max_occupancy == pytest.approx(0.5)
    assert cfg.benchmark.table_sizes == [29, 97, 251, 499, 911]
    assert cfg.benchmark.dataset_sizes == [100, 500, 1000, 5000, 10000, 50000]
    assert cfg.benchmark.search_count == 1000
    assert cfg.benchmark.hash_kinds == ["division", "multiplication"]
    assert cfg.datasets.directory == "data"
    assert (cfg.datasets.min_value, cfg.datasets.max_value) == (1, 1_000_000)


def test_load_from_toml(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    cfg_path = tmp_path / "hashlab.toml"
    cfg_path.write_text(
        """
[open_table]
max_load_factor = 0.9
max_occupancy = 0.8

[benchmark]
table_sizes = [11, 13]
hash_kinds = ["div", "MUL"]
search_count = 50

[datasets]
directory = "keys"
seed = 7
""",
        encoding="utf-8",
    )
    cfg = load_app_config(str(cfg_path))
    assert cfg.open_table.max_load_factor == pytest.approx(0.9)
    assert cfg.benchmark.table_sizes == [11, 13]
    assert cfg.benchmark.hash_kinds == ["division", "multiplication"]
    assert cfg.benchmark.search_count == 50
    assert cfg.datasets.directory == "keys"
    assert cfg.datasets.seed == 7

    # env override takes precedence
    monkeypatch.setenv("HASHLAB_MAX_OCCUPANCY", "0.6")
    monkeypatch.setenv("HASHLAB_TABLE_SIZES", "29, 97")
    monkeypatch.setenv("HASHLAB_SEED", "99")
    cfg_env = AppConfig.load(cfg_path)
    assert cfg_env.open_table.max_occupancy == pytest.approx(0.6)
    assert cfg_env.benchmark.table_sizes == [29, 97]
    assert cfg_env.datasets.seed == 99


def test_invalid_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HASHLAB_SEARCH_COUNT", "many")
    with pytest.raises(BadInputError):
        load_app_config(None)


def test_missing_and_malformed_files(tmp_path: Path) -> None:
    with pytest.raises(BadInputError):
        load_app_config(str(tmp_path / "missing.toml"))
    bad = tmp_path / "bad.toml"
    bad.write_text("[open_table\n", encoding="utf-8")
    with pytest.raises(BadInputError):
        load_app_config(str(bad))


def test_unknown_key_rejected(tmp_path: Path) -> None:
    cfg_path = tmp_path / "cfg.toml"
    cfg_path.write_text("[benchmark]\nwarp_speed = 9\n", encoding="utf-8")
    with pytest.raises(BadInputError):
        load_app_config(str(cfg_path))


def test_unknown_hash_kind_rejected(tmp_path: Path) -> None:
    cfg_path = tmp_path / "cfg.toml"
    cfg_path.write_text('[benchmark]\nhash_kinds = ["sha1"]\n', encoding="utf-8")
    with pytest.raises(BadInputError):
        load_app_config(str(cfg_path))


def test_non_positive_sizes_rejected(tmp_path: Path) -> None:
    cfg_path = tmp_path / "cfg.toml"
    cfg_path.write_text("[benchmark]\ntable_sizes = [0, 7]\n", encoding="utf-8")
    with pytest.raises(BadInputError):
        load_app_config(str(cfg_path))


def test_threshold_outside_unit_interval() -> None:
    with pytest.raises(InvalidConfigurationError):
        OpenTablePolicy(max_load_factor=1.2).validate()
    with pytest.raises(InvalidConfigurationError):
        OpenTablePolicy(max_occupancy=0.0).validate()


def test_dataset_range_must_ascend(monkeypatch: pytest.MonkeyPatch) -> None:
    with pytest.raises(InvalidConfigurationError):
        DatasetPolicy(min_value=10, max_value=10).validate()
    monkeypatch.setenv("HASHLAB_MIN_VALUE", "500")
    monkeypatch.setenv("HASHLAB_MAX_VALUE", "100")
    with pytest.raises(InvalidConfigurationError):
        load_app_config(None)

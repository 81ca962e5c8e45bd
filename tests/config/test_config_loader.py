# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for config loader, the entry point for all config loading in GenModels.

We test:
  1. Valid YAML loads into a frozen, correct config object
  2. Missing required fields raise ConfigValidationError
  3. Unknown fields raise ConfigValidationError (extra="forbid")
  4. Broken YAML raises ConfigLoadError
  5. Loaded config is truly immutable
"""

import textwrap
from pathlib import Path

import pytest

from genmodels.config.exceptions import ConfigError, ConfigLoadError, ConfigValidationError
from genmodels.config.loader import apply_overrides, load_config, parse_overrides


class TestLoadValidConfig:
    def test_loads_minimal_valid_config(self, tmp_config_file: Path) -> None:
        config = load_config(tmp_config_file)
        assert config.global_config.project_name == "genmodels-test"
        assert config.global_config.seed == 42
        assert config.global_config.config_version == "1.0.0"

    def test_optional_sections_default_to_none(self, tmp_config_file: Path) -> None:
        config = load_config(tmp_config_file)
        assert config.model is None
        assert config.train is None

    def test_loads_model_and_train_sections(self, train_config_file: Path) -> None:
        config = load_config(train_config_file)
        assert config.model is not None
        assert config.model.kind == "ae"
        assert config.model.hdim == 8
        assert config.train is not None
        assert config.train.batch_size == 4
        assert config.train.n_epochs == 3
        assert config.train.verbose is False

    def test_train_defaults_are_populated(self, train_config_file: Path) -> None:
        config = load_config(train_config_file)
        assert config.train is not None
        assert config.train.runtype == "experimental"
        assert config.train.clip_grad is False
        assert config.train.grad_clip_bound == 1e4
        assert config.train.memory_efficient is False
        assert config.train.device == "cpu"

    def test_accepts_string_path(self, tmp_config_file: Path) -> None:
        config = load_config(str(tmp_config_file))  # type: ignore[arg-type]
        assert config.global_config.seed == 42


class TestLoadInvalidConfig:
    def test_missing_required_field_raises_validation_error(
        self, invalid_config_file: Path
    ) -> None:
        with pytest.raises(ConfigValidationError):
            load_config(invalid_config_file)

    def test_unknown_field_raises_validation_error(self, tmp_path: Path) -> None:
        content = textwrap.dedent("""\
            global:
              config_version: "1.0.0"
              some_nonsense_field: true
        """)
        config_file = tmp_path / "unknown_field.yaml"
        config_file.write_text(content, encoding="utf-8")

        with pytest.raises(ConfigValidationError):
            load_config(config_file)

    def test_unknown_runtype_raises_validation_error(self, tmp_path: Path) -> None:
        content = textwrap.dedent("""\
            global:
              config_version: "1.0.0"
            train:
              config_version: "1.0.0"
              runtype: "turbo"
        """)
        config_file = tmp_path / "bad_runtype.yaml"
        config_file.write_text(content, encoding="utf-8")

        with pytest.raises(ConfigValidationError):
            load_config(config_file)

    def test_broken_yaml_raises_load_error(self, broken_yaml_file: Path) -> None:
        with pytest.raises(ConfigLoadError):
            load_config(broken_yaml_file)

    def test_non_mapping_yaml_raises_load_error(self, tmp_path: Path) -> None:
        config_file = tmp_path / "list.yaml"
        config_file.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigLoadError, match="mapping"):
            load_config(config_file)

    def test_nonexistent_file_raises_load_error(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigLoadError):
            load_config(tmp_path / "does_not_exist.yaml")

    def test_directory_path_raises_load_error(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigLoadError):
            load_config(tmp_path)

    def test_errors_share_a_base_class(self, broken_yaml_file: Path) -> None:
        with pytest.raises(ConfigError):
            load_config(broken_yaml_file)


class TestConfigImmutability:
    def test_cannot_mutate_frozen_config(self, tmp_config_file: Path) -> None:
        config = load_config(tmp_config_file)
        with pytest.raises(Exception):
            config.global_config.seed = 999  # type: ignore[misc]

    def test_cannot_mutate_train_section(self, train_config_file: Path) -> None:
        config = load_config(train_config_file)
        assert config.train is not None
        with pytest.raises(Exception):
            config.train.batch_size = 1  # type: ignore[misc]


class TestOverrides:
    def test_override_replaces_file_value(self, train_config_file: Path) -> None:
        config = load_config(train_config_file, overrides={"train.n_epochs": 12})
        assert config.train is not None
        assert config.train.n_epochs == 12
        assert config.train.batch_size == 4

    def test_override_can_add_a_section(self, tmp_config_file: Path) -> None:
        overrides = {"model.config_version": "1.0.0", "model.xdim": 4, "model.zdim": 2}
        config = load_config(tmp_config_file, overrides=overrides)
        assert config.model is not None
        assert (config.model.xdim, config.model.zdim) == (4, 2)

    def test_overridden_value_is_validated(self, train_config_file: Path) -> None:
        with pytest.raises(ConfigValidationError):
            load_config(train_config_file, overrides={"train.batch_size": 0})

    def test_unknown_override_key_is_rejected(self, train_config_file: Path) -> None:
        with pytest.raises(ConfigValidationError):
            load_config(train_config_file, overrides={"train.epochs": 3})

    def test_override_through_a_value_is_rejected(self) -> None:
        with pytest.raises(ConfigValidationError, match="not a section"):
            apply_overrides({"global": {"seed": 1}}, {"global.seed.low": 2})

    def test_source_mapping_is_not_modified(self) -> None:
        raw = {"train": {"n_epochs": 1}}
        merged = apply_overrides(raw, {"train.n_epochs": 2})
        assert raw == {"train": {"n_epochs": 1}}
        assert merged == {"train": {"n_epochs": 2}}

    def test_parse_overrides_types_values(self) -> None:
        parsed = parse_overrides(
            ["train.n_epochs=5", "train.verbose=false", "model.hdim=null", "model.beta = 0.5"]
        )
        assert parsed == {
            "train.n_epochs": 5,
            "train.verbose": False,
            "model.hdim": None,
            "model.beta": 0.5,
        }

    @pytest.mark.parametrize("item", ["train.n_epochs", "=5"])
    def test_parse_overrides_rejects_malformed_items(self, item: str) -> None:
        with pytest.raises(ConfigLoadError):
            parse_overrides([item])

    def test_parsed_overrides_load(self, train_config_file: Path) -> None:
        config = load_config(train_config_file, overrides=parse_overrides(["global.seed=99"]))
        assert config.global_config.seed == 99

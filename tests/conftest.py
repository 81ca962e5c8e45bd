# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Shared pytest fixtures for GenModels tests.

Fixtures here are available to every test file automatically.
Only what several test modules need lives here.
"""

import logging
import textwrap
from pathlib import Path
from typing import Iterator

import pytest
import torch


class _ListHandler(logging.Handler):
    """Keeps every record it receives."""

    def __init__(self) -> None:
        super().__init__(level=logging.DEBUG)
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


@pytest.fixture()
def log_records() -> Iterator[list[logging.LogRecord]]:
    """
    Records emitted by any genmodels logger during the test.

    Library loggers don't propagate and their stdout handler is bound at
    import time, so capsys/caplog can't see them; a handler is attached to
    each of them instead, with the logger opened up to DEBUG for the test.
    """
    handler = _ListHandler()
    loggers = [
        logging.getLogger(name)
        for name in list(logging.Logger.manager.loggerDict)
        if name.startswith("genmodels.") and not name.startswith("genmodels.test")
    ]
    levels = {logger.name: logger.level for logger in loggers}
    for logger in loggers:
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG)
    yield handler.records
    for logger in loggers:
        logger.removeHandler(handler)
        logger.setLevel(levels[logger.name])


@pytest.fixture()
def two_clusters() -> torch.Tensor:
    """
    Ten 3-dimensional samples, sample axis last: five all-ones columns
    followed by five all-zeros columns.
    """
    return torch.cat([torch.ones(3, 5), torch.zeros(3, 5)], dim=1)


@pytest.fixture()
def tmp_config_file(tmp_path: Path) -> Path:
    """
    Create a minimal valid config YAML file in a temp directory.

    This is the smallest config that passes schema validation.
    Tests that need specific config values should write their own files.
    """
    config_content = textwrap.dedent("""\
        global:
          config_version: "1.0.0"
          project_name: "genmodels-test"
          seed: 42
          log_level: "DEBUG"
    """)
    config_file = tmp_path / "test_config.yaml"
    config_file.write_text(config_content, encoding="utf-8")
    return config_file


@pytest.fixture()
def train_config_file(tmp_path: Path) -> Path:
    """A complete config with model and train sections for a tiny AE run."""
    config_content = textwrap.dedent("""\
        global:
          config_version: "1.0.0"
          project_name: "genmodels-test"
          seed: 7
          log_level: "WARNING"
        model:
          config_version: "1.0.0"
          kind: "ae"
          xdim: 3
          zdim: 2
          n_layers: 2
          hdim: 8
        train:
          config_version: "1.0.0"
          batch_size: 4
          n_epochs: 3
          learning_rate: 0.01
          verbose: false
    """)
    config_file = tmp_path / "train_config.yaml"
    config_file.write_text(config_content, encoding="utf-8")
    return config_file


@pytest.fixture()
def invalid_config_file(tmp_path: Path) -> Path:
    """A config file that's valid YAML but fails schema validation (missing required field)."""
    config_content = textwrap.dedent("""\
        global:
          project_name: "genmodels-test"
          seed: 42
    """)
    config_file = tmp_path / "invalid_config.yaml"
    config_file.write_text(config_content, encoding="utf-8")
    return config_file


@pytest.fixture()
def broken_yaml_file(tmp_path: Path) -> Path:
    """A file that isn't valid YAML at all."""
    config_file = tmp_path / "broken.yaml"
    config_file.write_text("{{not: yaml: at: all:::", encoding="utf-8")
    return config_file

from __future__ import annotations

from pathlib import Path

import pytest

from tfcanvas.config import DEFAULT_OUTPUT_NAME, DEFAULT_REGION, RunConfig, load_run_config
from tfcanvas.util.errors import ConfigError

_ENV_KEYS = (
    "TFCANVAS_DESIGN",
    "TFCANVAS_OUTDIR",
    "TFCANVAS_OUTPUT_NAME",
    "TFCANVAS_REGION",
    "TFCANVAS_STRICT",
    "TFCANVAS_JSON_LOGS",
    "TFCANVAS_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults() -> None:
    command, cfg = load_run_config(argv=["generate", "design.yaml"])
    assert command == "generate"
    assert isinstance(cfg, RunConfig)
    assert cfg.design == Path("design.yaml")
    assert cfg.region == DEFAULT_REGION
    assert cfg.output_name == DEFAULT_OUTPUT_NAME
    assert cfg.outdir == Path.cwd()
    assert cfg.stdout is False
    assert cfg.strict is False
    assert cfg.log_level == "INFO"


def test_env_overrides_defaults(monkeypatch) -> None:
    monkeypatch.setenv("TFCANVAS_REGION", "eu-central-1")
    monkeypatch.setenv("TFCANVAS_DESIGN", "from-env.yaml")
    monkeypatch.setenv("TFCANVAS_STRICT", "yes")
    _, cfg = load_run_config(argv=["validate"])
    assert cfg.region == "eu-central-1"
    assert cfg.design == Path("from-env.yaml")
    assert cfg.strict is True


def test_cli_overrides_env(monkeypatch) -> None:
    monkeypatch.setenv("TFCANVAS_REGION", "eu-central-1")
    _, cfg = load_run_config(argv=["generate", "d.yaml", "--region", "us-east-2", "--stdout"])
    assert cfg.region == "us-east-2"
    assert cfg.stdout is True


def test_config_file_then_env_then_cli(tmp_path, monkeypatch) -> None:
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text("region: from-config\noutput_name: infra.tf\nlog_level: debug\n", encoding="utf-8")

    _, cfg = load_run_config(argv=["generate", "--config", str(cfg_path)])
    assert cfg.region == "from-config"
    assert cfg.output_name == "infra.tf"
    assert cfg.log_level == "DEBUG"

    monkeypatch.setenv("TFCANVAS_REGION", "from-env")
    _, cfg = load_run_config(argv=["generate", "--config", str(cfg_path)])
    assert cfg.region == "from-env"

    _, cfg = load_run_config(argv=["generate", "--config", str(cfg_path), "--region", "from-cli"])
    assert cfg.region == "from-cli"


def test_repo_example_config_loads() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    _, cfg = load_run_config(argv=["validate", "--config", str(repo_root / "config" / "example.yaml")])
    assert cfg.design == Path("designs/web_stack.yaml")
    assert cfg.region == "us-east-1"
    assert cfg.strict is True


def test_unknown_config_keys_warn(tmp_path) -> None:
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text("region: us-east-1\nworkers: 4\n", encoding="utf-8")
    with pytest.warns(UserWarning, match="workers"):
        _, cfg = load_run_config(argv=["types", "--config", str(cfg_path)])
    assert cfg.region == "us-east-1"


def test_invalid_config_values(tmp_path) -> None:
    cfg_path = tmp_path / "config.json"
    cfg_path.write_text('{"strict": "maybe"}', encoding="utf-8")
    with pytest.raises(ValueError):
        load_run_config(argv=["validate", "--config", str(cfg_path)])

    with pytest.raises(ValueError):
        load_run_config(argv=["generate", "--output-name", "../escape.tf"])

    with pytest.raises(ConfigError):
        load_run_config(argv=["types", "--config", str(tmp_path / "missing.yaml")])

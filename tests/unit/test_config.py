import json
import os
import pytest
from claimcheck.config import (
    ANALYZE_TIMEOUT,
    DEFAULT_RULES_PATH,
    MAX_CONCURRENT_ANALYZE,
    MAX_TEXT_LENGTH,
    SERVICE_VERSION,
)
from claimcheck.engine_config import EngineConfig


def test_default_rules_file_ships_with_package():
    assert os.path.exists(DEFAULT_RULES_PATH)


def test_limits_positive():
    assert ANALYZE_TIMEOUT > 0
    assert MAX_CONCURRENT_ANALYZE > 0
    assert MAX_TEXT_LENGTH > 0


def test_service_version():
    assert isinstance(SERVICE_VERSION, str)
    assert len(SERVICE_VERSION) >= 1


def test_engine_config_defaults():
    config = EngineConfig.load("")
    assert config.matcher.base_confidence == 0.8
    assert config.matcher.context_window == 30
    assert config.recommendations.max_risk_score == 10
    assert config.alignment.base_confidence == 95
    assert config.alignment.min_confidence == 60
    assert config.alignment.platform_duration_limits["TIKTOK"].max_seconds == 60


def test_engine_config_partial_override(tmp_path):
    path = tmp_path / "engine.json"
    path.write_text(json.dumps({
        "matcher": {"context_window": 5},
        "alignment": {"platform_duration_limits": {"TIKTOK": {"max_seconds": 30, "recommended": "15-30 seconds"}}},
    }), encoding="utf-8")
    config = EngineConfig.load(str(path))
    assert config.matcher.context_window == 5
    assert config.matcher.base_confidence == 0.8
    assert config.alignment.platform_duration_limits["TIKTOK"].max_seconds == 30
    assert "INSTAGRAM_REEL" not in config.alignment.platform_duration_limits
    assert config.recommendations.default_product_category == "cosmetics"


def test_engine_config_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        EngineConfig.load(str(tmp_path / "missing.json"))


def test_package_metadata_ships_rule_data():
    root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
    with open(os.path.join(root, "pyproject.toml"), "r", encoding="utf-8") as f:
        pyproject = f.read()
    assert 'claimcheck = ["data/*.json"]' in pyproject
    assert "SPEC_FULL.md" not in pyproject

from pathlib import Path

import pytest
import yaml

from sightguard.configuration.app_configuration import AppConfig


@pytest.fixture()
def config_path(tmp_path: Path) -> Path:
    return tmp_path / "app_config.yml"


def test_app_config_reload_parses_yaml(config_path: Path) -> None:
    config_payload = {
        "database": {"backend": "memory", "path": "./elsewhere.db"},
        "permissions": {"file_path": "./perms.json", "owner_id": " 1234 "},
        "sightengine": {"models": "genai", "timeout_seconds": 12},
        "bot": {"footer_text": "Custom footer"},
        "presence": {"activity": "the gallery"},
    }
    config_path.write_text(yaml.safe_dump(config_payload), encoding="utf-8")

    config = AppConfig(config_path)

    assert config.database_backend == "memory"
    assert config.database_path.name == "elsewhere.db"
    assert config.permissions_file_path.name == "perms.json"
    assert config.owner_id == "1234"
    assert config.sightengine_models == "genai"
    assert config.sightengine_timeout == pytest.approx(12.0)
    assert config.footer_text == "Custom footer"
    assert config.presence_activity == "the gallery"


def test_app_config_missing_file_returns_defaults(tmp_path: Path) -> None:
    config = AppConfig(tmp_path / "does_not_exist.yml")

    assert config.data == {}
    assert config.database_backend == "sqlite"
    assert config.sightengine_endpoint == "https://api.sightengine.com/1.0/check.json"
    assert config.sightengine_models == "nudity-2.1,offensive-2.0,genai"
    assert config.sightengine_ai_models == "genai"
    assert config.sightengine_timeout == pytest.approx(30.0)
    assert config.reverse_search_timeout == pytest.approx(30.0)
    assert config.permissions_file_path is None
    assert config.owner_id == ""


def test_unknown_backend_falls_back_to_sqlite(config_path: Path) -> None:
    config_path.write_text(yaml.safe_dump({"database": {"backend": "postgres"}}), encoding="utf-8")

    assert AppConfig(config_path).database_backend == "sqlite"


def test_malformed_sections_are_ignored(config_path: Path) -> None:
    config_path.write_text(yaml.safe_dump({"database": ["not", "a", "mapping"], "bot": None}), encoding="utf-8")

    config = AppConfig(config_path)

    assert config.database_backend == "sqlite"
    assert config.footer_text == "SightGuard image moderation"


def test_reload_picks_up_changes(config_path: Path) -> None:
    config_path.write_text(yaml.safe_dump({"database": {"backend": "none"}}), encoding="utf-8")
    config = AppConfig(config_path)
    assert config.database_backend == "none"

    config_path.write_text(yaml.safe_dump({"database": {"backend": "memory"}}), encoding="utf-8")
    config.reload()

    assert config.database_backend == "memory"

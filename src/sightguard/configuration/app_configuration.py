from __future__ import annotations
from pathlib import Path
import fcntl
from typing import Any, Dict
import yaml

from sightguard.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path("./config/app_config.yml").resolve()

DEFAULT_SIGHTENGINE_ENDPOINT = "https://api.sightengine.com/1.0/check.json"
DEFAULT_SIGHTENGINE_MODELS = "nudity-2.1,offensive-2.0,genai"
DEFAULT_SIGHTENGINE_AI_MODELS = "genai"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_FOOTER_TEXT = "SightGuard image moderation"
VALID_BACKENDS = ("sqlite", "memory", "none")


class AppConfig:
    """File-lock based accessor around the YAML application configuration.

    Caches the contents of ``./config/app_config.yml`` and exposes typed
    shortcuts with defaults, so a missing or partial file still yields a
    runnable configuration. Secrets (tokens, API keys) are not read from
    here; they come from the environment.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                data = yaml.safe_load(f)
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
                return data if isinstance(data, dict) else {}
        except FileNotFoundError:
            logger.error("[APP CONFIGURATION] Config file %s not found.", self.config_path)
        except Exception as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
        return {}

    def _section(self, key: str) -> Dict[str, Any]:
        value = self._data.get(key, {})
        return value if isinstance(value, dict) else {}

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Re-read the YAML file and replace the in-memory cache.

        Returns the loaded mapping, an empty dict on error.
        """
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """Return the cached configuration mapping. Callers should not mutate it."""
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Safe lookup for top-level configuration keys."""
        return self._data.get(key, default)

    # --------------------------
    # Storage
    # --------------------------
    @property
    def database_backend(self) -> str:
        """Threshold storage backend: ``sqlite`` (default), ``memory`` or ``none``."""
        value = str(self._section("database").get("backend", "sqlite")).strip().lower()
        if value not in VALID_BACKENDS:
            logger.warning("[APP CONFIGURATION] Unknown database backend %r, using sqlite", value)
            return "sqlite"
        return value

    @property
    def database_path(self) -> Path:
        return Path(str(self._section("database").get("path", "./data/sightguard.db"))).resolve()

    @property
    def permissions_file_path(self) -> Path | None:
        """JSON file for the role whitelist when no database is used."""
        value = self._section("permissions").get("file_path")
        return Path(str(value)).resolve() if value else None

    @property
    def owner_id(self) -> str:
        return str(self._section("permissions").get("owner_id", "") or "").strip()

    # --------------------------
    # External APIs
    # --------------------------
    @property
    def sightengine_endpoint(self) -> str:
        return str(self._section("sightengine").get("endpoint", DEFAULT_SIGHTENGINE_ENDPOINT))

    @property
    def sightengine_models(self) -> str:
        return str(self._section("sightengine").get("models", DEFAULT_SIGHTENGINE_MODELS))

    @property
    def sightengine_ai_models(self) -> str:
        return str(self._section("sightengine").get("ai_models", DEFAULT_SIGHTENGINE_AI_MODELS))

    @property
    def sightengine_timeout(self) -> float:
        return float(self._section("sightengine").get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS))

    @property
    def reverse_search_timeout(self) -> float:
        return float(self._section("reverse_search").get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS))

    # --------------------------
    # Presentation
    # --------------------------
    @property
    def footer_text(self) -> str:
        return str(self._section("bot").get("footer_text", DEFAULT_FOOTER_TEXT))

    @property
    def presence_activity(self) -> str:
        return str(self._section("presence").get("activity", "") or "")


# Shared application-wide configuration instance
app_config = AppConfig(CONFIG_PATH)

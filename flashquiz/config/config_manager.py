"""Settings shared by the study view and the generation layer, persisted as JSON."""

import json
import os
from pathlib import Path
from threading import Lock
from typing import Any, Dict, Optional, TYPE_CHECKING

from ..utils.logger import setup_logger
from .settings import Config

if TYPE_CHECKING:
    from ..services.ai_service import AIConfig

logger = setup_logger(__name__)

_TRUE_VALUES = ("true", "1", "yes", "on")


class SettingsManager:
    """
    Process-wide settings store.

    Precedence, lowest first: DEFAULTS, the settings file, environment
    variables of the same name. The merged result is written back so the
    file always lists every known key. API keys never pass through here;
    api_key() reads them straight from the environment.

    Usage:
        settings = SettingsManager()
        provider = settings.get("AI_PROVIDER")
        settings.set("FLIP_DURATION_MS", 300)
    """

    _instance: Optional["SettingsManager"] = None
    _lock: Lock = Lock()

    DEFAULT_SETTINGS_FILE: str = Config.SETTINGS_FILE

    # Environment variables consulted for the provider API key, in order
    API_KEY_VARS: Dict[str, tuple] = {
        "openai": ("OPENAI_API_KEY",),
        "anthropic": ("ANTHROPIC_API_KEY",),
        "groq": ("GROQ_API_KEY",),
        "ollama": (),
    }

    MODEL_DEFAULTS: Dict[str, str] = {
        "openai": "gpt-4o-mini",
        "anthropic": "claude-3-haiku-20240307",
        "ollama": "llama3.2",
        "groq": "llama-3.1-8b-instant",
    }

    DEFAULTS: Dict[str, Any] = {
        # Generation provider; empty model/base URL mean provider defaults
        "AI_PROVIDER": "openai",
        "AI_MODEL": "",
        "AI_BASE_URL": "",
        "AI_TEMPERATURE": 0.7,
        "AI_MAX_TOKENS": 300,
        "AI_TIMEOUT": Config.AI_TIMEOUT,
        "GENERATION_TIMEOUT": Config.GENERATION_TIMEOUT,

        "FLIP_DURATION_MS": Config.FLIP_DURATION_MS,
        "DB_FILE": Config.DB_FILE,

        "LOG_LEVEL": "INFO",
        "LOG_FORMAT": "text",
    }

    def __new__(cls, settings_file: Optional[str] = None) -> "SettingsManager":
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    instance = super().__new__(cls)
                    instance._initialized = False
                    cls._instance = instance
        return cls._instance

    def __init__(self, settings_file: Optional[str] = None) -> None:
        """
        Args:
            settings_file: JSON file to use. Only honoured on first
                           construction; defaults to DEFAULT_SETTINGS_FILE.
        """
        if getattr(self, "_initialized", False):
            return

        self._path: Path = Path(settings_file or self.DEFAULT_SETTINGS_FILE)
        self._values: Dict[str, Any] = {}
        self._write_lock: Lock = Lock()

        self._load_settings()
        self._initialized = True

    # ------------------------------------------------------------------
    # Loading and saving
    # ------------------------------------------------------------------

    def _read_file(self) -> Dict[str, Any]:
        """Known keys from the settings file; empty if missing or unreadable."""
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Ignoring unreadable settings file %s: %s", self._path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring settings file %s: top level is not an object", self._path)
            return {}
        return {key: value for key, value in data.items() if key in self.DEFAULTS}

    def _load_settings(self) -> None:
        values = dict(self.DEFAULTS)
        values.update(self._read_file())
        for key in self.DEFAULTS:
            raw = os.environ.get(key)
            if raw is not None:
                values[key] = self._parse_env_value(raw, key)

        self._values = values
        self._save_settings()

    def _parse_env_value(self, value: str, key: str) -> Any:
        """
        Convert an environment string to the type of the key's default.

        Unparseable numbers fall back to the default.
        """
        default = self.DEFAULTS.get(key)
        if isinstance(default, bool):
            return value.strip().lower() in _TRUE_VALUES
        if isinstance(default, (int, float)):
            try:
                return type(default)(value)
            except ValueError:
                logger.warning("Ignoring %s=%r: expected %s", key, value, type(default).__name__)
                return default
        return value

    def _save_settings(self) -> None:
        with self._write_lock:
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                self._path.write_text(json.dumps(self._values, indent=2, ensure_ascii=False), encoding="utf-8")
            except OSError as e:
                logger.warning("Could not write settings file %s: %s", self._path, e)

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any, persist: bool = True) -> None:
        """
        Change a setting.

        Args:
            key: Setting name
            value: New value
            persist: Write the file now; pass False when setting several
                     keys and let the last call write
        """
        self._values[key] = value
        if persist:
            self._save_settings()

    def get_all(self) -> Dict[str, Any]:
        return dict(self._values)

    def reset(self, key: Optional[str] = None) -> None:
        """Restore one key, or every key when key is None, to its default."""
        if key is None:
            self._values = dict(self.DEFAULTS)
        elif key in self.DEFAULTS:
            self._values[key] = self.DEFAULTS[key]
        self._save_settings()

    def reload(self) -> None:
        """Re-read the file and environment."""
        self._load_settings()

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    def api_key(self, provider: Optional[str] = None) -> Optional[str]:
        """Look up the API key for a provider in the environment."""
        provider = (provider or self.get("AI_PROVIDER", "openai")).lower()
        for var in self.API_KEY_VARS.get(provider, ()):
            value = os.environ.get(var)
            if value:
                return value
        return None

    def ai_config(self) -> "AIConfig":
        """Build the generation provider configuration from current settings."""
        from ..services.ai_service import AIConfig, AIProvider

        provider_name = str(self.get("AI_PROVIDER", "openai")).lower()
        try:
            provider = AIProvider(provider_name)
        except ValueError:
            logger.warning("Unknown AI_PROVIDER %r, falling back to openai", provider_name)
            provider = AIProvider.OPENAI

        return AIConfig(
            provider=provider,
            model=self.get("AI_MODEL") or self.MODEL_DEFAULTS[provider.value],
            api_key=self.api_key(provider.value),
            base_url=self.get("AI_BASE_URL") or None,
            temperature=float(self.get("AI_TEMPERATURE", 0.7)),
            max_tokens=int(self.get("AI_MAX_TOKENS", 300)),
            timeout=int(self.get("AI_TIMEOUT", Config.AI_TIMEOUT)),
        )

    def generation_timeout(self) -> Optional[float]:
        """Per-request generation timeout in seconds, or None when disabled."""
        value = float(self.get("GENERATION_TIMEOUT", 0) or 0)
        return value if value > 0 else None

    @classmethod
    def reset_instance(cls) -> None:
        """Drop the singleton so the next construction reloads. Used by tests."""
        with cls._lock:
            cls._instance = None

from __future__ import annotations

import dataclasses
import logging
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_ASSET_BASE_URL = "https://raw.githubusercontent.com/mmaaseide23/ChordCrack_Assets/main/"
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _as_bool(value: Any) -> bool:
    """Interpret common truthy/falsey values into a bool.

    Accepts: True/False, 1/0, "true"/"false", "yes"/"no", "on"/"off" (case-insensitive).
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        v = value.strip().lower()
        if v in {"1", "true", "yes", "y", "on"}:
            return True
        if v in {"0", "false", "no", "n", "off"}:
            return False
        return True
    return bool(value)


def _clamp(value: float, min_value: float, max_value: float) -> float:
    return max(min_value, min(max_value, value))


@dataclass
class Settings:
    """Runtime settings for the backend, audio assets and game pacing.

    Built from (lowest to highest precedence):
    - dataclass defaults
    - a TOML file (env CC_SETTINGS_FILE, or configs/settings.toml if present)
    - environment variables (prefix: CC_)

    TOML keys may sit at top level or under [backend], [audio], [game],
    [telemetry] and [logging] sections.
    """

    # Backend
    supabase_url: str = ""
    supabase_anon_key: str = ""

    # Audio assets
    asset_base_url: str = DEFAULT_ASSET_BASE_URL

    # Game pacing (seconds before advancing to the next round)
    correct_advance_delay: float = 2.0
    incorrect_advance_delay: float = 3.0

    # Local data / telemetry
    data_dir: Optional[str] = None
    telemetry_enabled: bool = False

    # Root log level for the app shell (see logging_config.configure_logging)
    log_level: str = "INFO"

    @property
    def backend_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key)

    def validate(self) -> None:
        """Validate and normalize settings to safe values."""
        self.supabase_url = str(self.supabase_url or "").strip().rstrip("/")
        self.supabase_anon_key = str(self.supabase_anon_key or "").strip()
        base = str(self.asset_base_url or DEFAULT_ASSET_BASE_URL).strip()
        self.asset_base_url = base if base.endswith("/") else base + "/"
        self.correct_advance_delay = _clamp(float(self.correct_advance_delay), 0.0, 30.0)
        self.incorrect_advance_delay = _clamp(float(self.incorrect_advance_delay), 0.0, 30.0)
        self.telemetry_enabled = _as_bool(self.telemetry_enabled)
        level = str(self.log_level or "INFO").strip().upper()
        if level not in _LOG_LEVELS:
            logger.warning("Unknown log_level %r; using INFO", self.log_level)
            level = "INFO"
        self.log_level = level
        if self.data_dir is not None:
            self.data_dir = str(self.data_dir)
        if self.supabase_url and not self.supabase_anon_key:
            logger.warning("supabase_url set without supabase_anon_key; backend calls will be disabled")

    def as_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Settings":
        allowed = {f.name for f in dataclasses.fields(cls)}
        filtered = {k: v for k, v in data.items() if k in allowed}
        unknown = set(data) - allowed
        if unknown:
            logger.debug("Ignoring unknown settings keys: %s", sorted(unknown))
        obj = cls(**filtered)
        obj.validate()
        return obj

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
        env = os.environ if env is None else env
        mapping = {
            "CC_SUPABASE_URL": ("supabase_url", str),
            "CC_SUPABASE_ANON_KEY": ("supabase_anon_key", str),
            "CC_ASSET_BASE_URL": ("asset_base_url", str),
            "CC_CORRECT_ADVANCE_DELAY": ("correct_advance_delay", float),
            "CC_INCORRECT_ADVANCE_DELAY": ("incorrect_advance_delay", float),
            "CC_DATA_DIR": ("data_dir", str),
            "CC_TELEMETRY": ("telemetry_enabled", _as_bool),
            "CC_LOG_LEVEL": ("log_level", str),
        }
        out: Dict[str, Any] = {}
        for env_key, (field_name, caster) in mapping.items():
            if env.get(env_key, "") != "":
                try:
                    out[field_name] = caster(env[env_key])
                except ValueError as exc:
                    logger.error("Invalid env for %s=%r: %s", env_key, env[env_key], exc)
        return out

    @classmethod
    def from_toml_file(cls, path: Path) -> Dict[str, Any]:
        if not path.exists():
            logger.debug("Settings file not found: %s", path)
            return {}
        try:
            with path.open("rb") as f:
                doc = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as exc:
            logger.error("Failed to read settings TOML %s: %s", path, exc)
            return {}
        flat: Dict[str, Any] = {}
        for section in ("backend", "audio", "game", "telemetry", "logging"):
            if isinstance(doc.get(section), dict):
                flat.update(doc[section])
        for k, v in doc.items():
            if not isinstance(v, dict):
                flat[k] = v
        return flat

    @classmethod
    def discover_config_path(cls, env: Optional[Mapping[str, str]] = None) -> Optional[Path]:
        env = os.environ if env is None else env
        env_path = env.get("CC_SETTINGS_FILE")
        if env_path:
            return Path(env_path).expanduser().resolve()
        # <repo>/src/chordcrack/settings.py -> <repo>
        repo_root = Path(__file__).resolve().parents[2]
        default_path = repo_root / "configs" / "settings.toml"
        if default_path.exists():
            return default_path
        return None

    @classmethod
    def from_sources(
        cls,
        *,
        env: Optional[Mapping[str, str]] = None,
        file_path: Optional[Path | str] = None,
    ) -> "Settings":
        data: Dict[str, Any] = {}
        if file_path is not None:
            chosen_path: Optional[Path] = Path(file_path).expanduser().resolve()
        else:
            chosen_path = cls.discover_config_path(env)
        if chosen_path is not None:
            data.update(cls.from_toml_file(chosen_path))
        data.update(cls.from_env(env))
        settings = cls.from_dict(data)
        logger.debug("Settings loaded (file=%s, backend=%s)", chosen_path, settings.backend_configured)
        return settings

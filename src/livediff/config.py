import os
from pathlib import Path
from typing import TypedDict

from msgspec import Struct, field, structs
from pydantic import TypeAdapter, ValidationError

from livediff.exceptions import ConfigurationError
from livediff.models import DiagnosticSeverity


class ConfigFile(TypedDict, total=False):
    workspace_root: str
    small_change_threshold: int
    animation_step_delay: float
    severity_filter: list[DiagnosticSeverity]


class Settings(Struct, frozen=True):
    workspace_root: Path = field(default_factory=Path.cwd)
    # Updates revealing at most this many lines jump straight to the last one
    small_change_threshold: int = 5
    animation_step_delay: float = 0.0
    severity_filter: list[DiagnosticSeverity] = field(default_factory=lambda: [DiagnosticSeverity.ERROR])


# Use XDG_CONFIG_HOME or default to ~/.config/livediff
def _get_config_dir() -> Path:
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg_config) if xdg_config else Path.home() / ".config"
    return base / "livediff"


def get_config_file() -> Path:
    return _get_config_dir() / "config.json"


def _load_config_file(config_file: Path) -> ConfigFile:
    if not config_file.is_file():
        return {}

    try:
        return TypeAdapter(ConfigFile).validate_json(config_file.read_text(encoding="utf-8"))
    except ValidationError as e:
        raise ConfigurationError(f"Invalid config file '{config_file}': {e}") from None
    except OSError as e:
        raise ConfigurationError(f"Could not read config file '{config_file}': {e}") from None


def _env_number[T: (int, float)](var_name: str, kind: type[T]) -> T | None:
    val = os.getenv(var_name)
    if val is None:
        return None
    try:
        parsed = kind(val)
    except ValueError:
        raise ConfigurationError(f"{var_name} must be a number, got '{val}'") from None
    if parsed < 0:
        raise ConfigurationError(f"{var_name} must not be negative")
    return parsed


def load_settings(config_file: Path | None = None) -> Settings:
    """
    Builds the effective settings.

    Precedence, lowest first: built-in defaults, the JSON config file, then
    LIVEDIFF_* environment variables.
    """
    data = _load_config_file(config_file or get_config_file())
    settings = Settings()

    if root := data.get("workspace_root"):
        settings = structs.replace(settings, workspace_root=Path(root).expanduser())
    if (threshold := data.get("small_change_threshold")) is not None:
        settings = structs.replace(settings, small_change_threshold=threshold)
    if (delay := data.get("animation_step_delay")) is not None:
        settings = structs.replace(settings, animation_step_delay=delay)
    if (severities := data.get("severity_filter")) is not None:
        settings = structs.replace(settings, severity_filter=list(severities))

    if env_root := os.environ.get("LIVEDIFF_WORKSPACE_ROOT"):
        path = Path(env_root)
        if not path.is_absolute():
            raise ConfigurationError("LIVEDIFF_WORKSPACE_ROOT must be an absolute path")
        settings = structs.replace(settings, workspace_root=path)
    if (threshold := _env_number("LIVEDIFF_SMALL_CHANGE_THRESHOLD", int)) is not None:
        settings = structs.replace(settings, small_change_threshold=threshold)
    if (delay := _env_number("LIVEDIFF_ANIMATION_DELAY", float)) is not None:
        settings = structs.replace(settings, animation_step_delay=delay)

    return settings

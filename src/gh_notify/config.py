"""Configuration management for gh-notify."""

import sys
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


def get_config_path() -> Path:
    """Get the path to the gh-notify config file."""
    xdg_config = Path.home() / ".config"
    return xdg_config / "gh-notify" / "config.toml"


def get_default_config() -> str:
    """Return the default config file contents."""
    return """\
# gh-notify configuration

# Key names are passed straight to fzf, see `man fzf` (AVAILABLE KEYS).
[keys]
comment = "ctrl-x"
mark_all_read = "ctrl-a"
open_browser = "ctrl-b"
view_diff = "ctrl-d"
view_patch = "ctrl-p"
reload = "ctrl-r"
mark_read = "ctrl-t"
select = "ctrl-y"
resize_preview = "btab"
view = "enter"
toggle_preview = "tab"
toggle_help = "?"

[preview]
size = "60%"
position = "right"

[api]
# Number of concurrent release/discussion lookups per page (1 = sequential)
lookup_workers = 1
"""


@dataclass
class KeysConfig:
    """fzf key bindings.

    `view` and `comment` close the selector; every other key acts while it
    stays open.
    """

    comment: str = "ctrl-x"
    mark_all_read: str = "ctrl-a"
    open_browser: str = "ctrl-b"
    view_diff: str = "ctrl-d"
    view_patch: str = "ctrl-p"
    reload: str = "ctrl-r"
    mark_read: str = "ctrl-t"
    select: str = "ctrl-y"
    resize_preview: str = "btab"
    view: str = "enter"
    toggle_preview: str = "tab"
    toggle_help: str = "?"


@dataclass
class PreviewConfig:
    """Layout of the fzf preview window."""

    size: str = "60%"
    position: str = "right"  # "right" or "down"


@dataclass
class ApiConfig:
    """Configuration for GitHub lookups."""

    lookup_workers: int = 1


@dataclass
class Config:
    """gh-notify configuration."""

    keys: KeysConfig = field(default_factory=KeysConfig)
    preview: PreviewConfig = field(default_factory=PreviewConfig)
    api: ApiConfig = field(default_factory=ApiConfig)


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from file, or return defaults."""
    if config_path is None:
        config_path = get_config_path()

    if not config_path.exists():
        return Config()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        print(f"Warning: Could not load config from {config_path}: {e}", file=sys.stderr)
        return Config()

    return _parse_config(data)


def _positive_int(section: dict[str, Any], name: str, default: int) -> int:
    """Read a whole number of at least 1, warning and using the default otherwise."""
    value = section.get(name, default)
    try:
        return max(1, int(value))
    except (TypeError, ValueError):
        print(f"Warning: invalid {name} {value!r} in config, using {default}", file=sys.stderr)
        return default


def _parse_config(data: dict[str, Any]) -> Config:
    """Parse config dict into Config object."""
    keys_data = data.get("keys", {})
    # Use dataclass defaults for any unspecified keys
    defaults = KeysConfig()
    keys = KeysConfig(
        **{
            name: keys_data.get(name, getattr(defaults, name))
            for name in defaults.__dataclass_fields__
        }
    )

    preview_data = data.get("preview", {})
    preview = PreviewConfig(
        size=preview_data.get("size", "60%"),
        position=preview_data.get("position", "right"),
    )

    api_data = data.get("api", {})
    api = ApiConfig(lookup_workers=_positive_int(api_data, "lookup_workers", 1))

    return Config(keys=keys, preview=preview, api=api)


def ensure_config_exists() -> Path:
    """Ensure the config file exists, creating with defaults if needed."""
    config_path = get_config_path()

    if not config_path.exists():
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(get_default_config())

    return config_path

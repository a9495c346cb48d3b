import copy
import os
from pathlib import Path
from typing import Any

import tomli
import tomli_w


def get_cache_dir() -> Path:
    xdg = os.environ.get("XDG_CACHE_HOME")
    if xdg:
        base = Path(xdg)
    else:
        base = Path.home() / ".cache"
    return base / "colortoken"


def get_config_dir() -> Path:
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        base = Path(xdg)
    else:
        base = Path.home() / ".config"
    return base / "colortoken"


def get_config_path() -> Path:
    return get_config_dir() / "config.toml"


def get_log_dir() -> Path:
    return get_cache_dir() / "log"


# The "settings" table mirrors the client-side `jsonColorToken` section and is
# used when the client cannot answer `workspace/configuration`.
DEFAULT_CONFIG: dict[str, Any] = {
    "server": {
        "log_level": "info",
    },
    "cache": {
        "on_parse_failure": "keep-stale",
    },
    "settings": {
        "maxNumberOfColorTokens": 1000,
        "colorTokenCasing": "Uppercase",
        "languages": ["json", "jsonc", "cpp", "c++"],
        "cssLanguages": ["css", "less"],
    },
}


def load_config(path: Path | None = None) -> dict[str, Any]:
    config_path = path or get_config_path()
    config = copy.deepcopy(DEFAULT_CONFIG)

    if config_path.exists():
        with open(config_path, "rb") as f:
            user_config = tomli.load(f)
            _merge_config(config, user_config)

    return config


def save_config(config: dict[str, Any], path: Path | None = None) -> Path:
    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "wb") as f:
        tomli_w.dump(config, f)

    return config_path


def _merge_config(base: dict, override: dict) -> None:
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _merge_config(base[key], value)
        else:
            base[key] = value

import json
import os
from pathlib import Path

CONFIG_PATH = Path.home() / ".config" / "tracklog" / "tracklog.json"
LOCAL_CONFIG_PATH = Path("tracklog.json")

DEFAULT_STORE_DIR = Path.home() / ".local" / "share" / "tracklog"
DEFAULT_WORKERS = 4


def load_config() -> dict:
    """Load configuration from config files.

    Merges config from global and local files:
    1. ~/.config/tracklog/tracklog.json (global, loaded first)
    2. ./tracklog.json (local, overrides global)

    Recognized keys: noise_threshold, stillness_threshold, store_dir, workers.

    Returns:
        Dict with merged config values, empty dict if no files exist.
    """
    config = {}
    for config_path in [CONFIG_PATH, LOCAL_CONFIG_PATH]:
        if config_path.exists():
            try:
                with config_path.open() as f:
                    config.update(json.load(f))
            except (json.JSONDecodeError, OSError):
                continue
    return config


def get_store_dir(config: dict) -> Path:
    """TRACKLOG_STORE_DIR, then the config file, then the default."""
    store_dir = os.environ.get("TRACKLOG_STORE_DIR") or config.get("store_dir")
    return Path(store_dir).expanduser() if store_dir else DEFAULT_STORE_DIR

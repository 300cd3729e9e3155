import os
from pathlib import Path

import toml
from dotenv import load_dotenv

CONFIG_DIR = Path(__file__).resolve().parent
DEFAULT_CONFIG_FILE = CONFIG_DIR / "raywatch.toml"


def load_config(path=None) -> dict:
    """Load ``.env`` into the environment and return the TOML config.

    A missing file yields an empty config so every lookup falls back to
    its environment variable or default.
    """
    load_dotenv()
    path = Path(path or os.getenv("RAYWATCH_CONFIG", DEFAULT_CONFIG_FILE))
    if not path.exists():
        return {}
    return toml.load(path)


def config_value(config: dict, section: str, key: str, env: str = None, default=None):
    if env and os.getenv(env):
        return os.getenv(env)
    return config.get(section, {}).get(key, default)

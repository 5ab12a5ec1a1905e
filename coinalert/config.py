"""Configuration loading for CoinAlert.

Configuration lives in a TOML file, by default
``~/.config/coinalert/config.toml``.
"""

import logging
from pathlib import Path
from typing import Optional

import toml

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".config" / "coinalert"
DEFAULT_CONFIG_PATH = CONFIG_DIR / "config.toml"
DEFAULT_DB_PATH = CONFIG_DIR / "coinalert.db"

PLACEHOLDER_SECRET = "change-me"


def load_config(path: Optional[Path] = None) -> Optional[dict]:
    """Load the configuration file.

    Args:
        path: Config file path (defaults to DEFAULT_CONFIG_PATH).

    Returns:
        Config dict or None if the file is missing or unreadable.
    """
    config_path = Path(path) if path else DEFAULT_CONFIG_PATH

    if not config_path.exists():
        return None

    try:
        return toml.load(config_path)
    except (OSError, toml.TomlDecodeError) as e:
        logger.warning("Could not read config %s: %s", config_path, e)
        return None


def create_template_config(path: Optional[Path] = None) -> Path:
    """Write a template configuration file and return its path."""
    config_path = Path(path) if path else DEFAULT_CONFIG_PATH
    config_path.parent.mkdir(parents=True, exist_ok=True)

    template = {
        "user": {
            "id": "",
            "secret": PLACEHOLDER_SECRET,
        },
        "storage": {
            "path": str(DEFAULT_DB_PATH),
        },
        "market": {
            "prices": {},  # e.g. btc = 64000.0, shown as the current price
        },
    }

    with open(config_path, "w") as f:
        toml.dump(template, f)

    return config_path


def validate_config(config: dict) -> list[str]:
    """Validate configuration and return list of missing keys."""
    missing = []
    user = config.get("user", {})
    if not user.get("id"):
        missing.append("user.id")
    if not user.get("secret") or user.get("secret") == PLACEHOLDER_SECRET:
        missing.append("user.secret")
    return missing


def storage_path(config: dict) -> Path:
    """Database path from config, with ``~`` expanded."""
    raw = config.get("storage", {}).get("path") or str(DEFAULT_DB_PATH)
    return Path(raw).expanduser()


def market_data(config: dict) -> dict:
    """Static market-data table built from ``[market.prices]``."""
    prices = config.get("market", {}).get("prices", {})
    return {
        str(coin).lower(): {"ticker": {"price": float(price)}}
        for coin, price in prices.items()
    }

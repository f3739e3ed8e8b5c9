"""Configuration management for shot.

Handles locating, loading, validating and writing the JSON config file
that holds the Cloudflare credentials and upload limits.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .models import Credentials

BIN_NAME = "shot"

# Cloudflare Images rejects uploads over 10 MB
# See: https://developers.cloudflare.com/images/upload-images/formats-limitations/
DEFAULT_HARD_LIMIT = 10_000_000
DEFAULT_RESIZE_TARGET = 3_000_000
DEFAULT_API_BASE = "https://api.cloudflare.com/client/v4/"
DEFAULT_TIMEOUT = 30.0

CONFIG_ENV = "SHOT_CONFIG"


class ConfigError(Exception):
    """Raised when configuration is invalid or missing."""
    pass


@dataclass
class Limits:
    """Size limits of the image host.

    Attributes:
        hard_limit: Largest payload the host accepts, in bytes
        resize_target: Reference size used to compute the shrink ratio
    """
    hard_limit: int = DEFAULT_HARD_LIMIT
    resize_target: int = DEFAULT_RESIZE_TARGET


@dataclass
class Config:
    """Everything read from the config file."""
    auth: Credentials
    limits: Limits = field(default_factory=Limits)
    api_base: str = DEFAULT_API_BASE
    timeout: float = DEFAULT_TIMEOUT


def get_config_path() -> Path:
    """Get the config file location.

    Returns:
        $SHOT_CONFIG if set, otherwise ~/.config/shot.json
    """
    override = os.environ.get(CONFIG_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "shot.json"


def load_config(config_path: Path | None = None) -> Config:
    """Load and validate the config file.

    Args:
        config_path: Optional explicit path, defaults to get_config_path()

    Returns:
        Parsed Config

    Raises:
        ConfigError: If the file is missing, unreadable or invalid
    """
    path = config_path or get_config_path()

    if not path.exists():
        raise ConfigError(
            "You haven't configured your authentication info yet. "
            f"Use `{BIN_NAME} auth <account_id> <token>` or manually edit `{path}`."
        )

    try:
        with open(path) as f:
            raw = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Unable to read {path}: {e}") from e

    return parse_config(raw)


def parse_config(raw: dict[str, Any]) -> Config:
    """Extract a Config from the decoded JSON document.

    Raises:
        ConfigError: If required fields are missing or malformed
    """
    if not isinstance(raw, dict):
        raise ConfigError("Config must be a JSON object")

    auth = raw.get("auth")
    if not isinstance(auth, dict):
        raise ConfigError("Missing required section: auth")
    for name in ("account_id", "token"):
        if not isinstance(auth.get(name), str) or not auth[name]:
            raise ConfigError(f"Missing required field: auth.{name}")

    limits = raw.get("limits", {})
    try:
        config = Config(
            auth=Credentials(account_id=auth["account_id"], token=auth["token"]),
            limits=Limits(
                hard_limit=int(limits.get("hard_limit", DEFAULT_HARD_LIMIT)),
                resize_target=int(limits.get("resize_target", DEFAULT_RESIZE_TARGET)),
            ),
            api_base=str(raw.get("api_base", DEFAULT_API_BASE)),
            timeout=float(raw.get("timeout", DEFAULT_TIMEOUT)),
        )
    except (AttributeError, TypeError, ValueError) as e:
        raise ConfigError(f"Invalid config value: {e}") from e

    for name, value in (
        ("limits.hard_limit", config.limits.hard_limit),
        ("limits.resize_target", config.limits.resize_target),
        ("timeout", config.timeout),
    ):
        if not value > 0:
            raise ConfigError(f"{name} must be positive, got {value}")

    # urljoin drops the last segment of a base without a trailing slash
    if not config.api_base.endswith("/"):
        config.api_base += "/"

    return config


def write_config(config: Config, config_path: Path | None = None) -> Path:
    """Write config as pretty-printed JSON, readable by the owner only.

    Returns:
        Path the config was written to

    Raises:
        ConfigError: If the file cannot be written
    """
    path = config_path or get_config_path()
    document = {
        "auth": {
            "account_id": config.auth.account_id,
            "token": config.auth.token,
        },
        "limits": {
            "hard_limit": config.limits.hard_limit,
            "resize_target": config.limits.resize_target,
        },
        "api_base": config.api_base,
        "timeout": config.timeout,
    }

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        # an existing file keeps its old mode through os.open
        os.fchmod(fd, 0o600)
        with os.fdopen(fd, "w") as f:
            json.dump(document, f, indent=2)
    except OSError as e:
        raise ConfigError(f"Unable to write config file to {path}: {e}") from e

    return path

"""Startup-time loading and validation of config.yaml and secrets.

Any problem here is fatal: the bot must not start evaluating messages with a
configuration it cannot honor.
"""
import os
from typing import Mapping, Optional

import dacite
import yaml

from shockbot.base import Config, Secrets

INTENSITY_RANGE = (1, 100)
DURATION_RANGE = (1, 15)


class ConfigError(Exception):
    pass


def parse_config(data: Mapping) -> Config:
    if not isinstance(data, Mapping):
        raise ConfigError("config root must be a mapping")
    try:
        config = dacite.from_dict(Config, dict(data), config=dacite.Config(strict=True))
    except dacite.DaciteError as e:
        raise ConfigError(f"invalid config: {e}") from e
    validate_config(config)
    return config


def validate_config(config: Config) -> None:
    if config.cooldown.window_seconds <= 0:
        raise ConfigError(f"cooldown.window_seconds must be > 0, got {config.cooldown.window_seconds}")
    if config.cooldown.max_fires_per_window < 0:
        raise ConfigError(
            f"cooldown.max_fires_per_window must be >= 0, got {config.cooldown.max_fires_per_window}"
        )
    lo, hi = INTENSITY_RANGE
    if not lo <= config.shock.intensity <= hi:
        raise ConfigError(f"shock.intensity must be in {lo}..{hi}, got {config.shock.intensity}")
    lo, hi = DURATION_RANGE
    if not lo <= config.shock.duration_seconds <= hi:
        raise ConfigError(f"shock.duration_seconds must be in {lo}..{hi}, got {config.shock.duration_seconds}")


def load_config(path: str) -> Config:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"could not read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"could not parse {path}: {e}") from e
    return parse_config(data or {})


def _require(environ: Mapping[str, str], key: str) -> str:
    value = environ.get(key, "").strip()
    if not value:
        raise ConfigError(f"environment variable {key} is required")
    return value


def load_secrets(environ: Optional[Mapping[str, str]] = None) -> Secrets:
    if environ is None:
        environ = os.environ

    allowed = set()
    for s in environ.get("ALLOWED_SERVER_IDS", "").split(","):
        s = s.strip()
        if not s:
            continue
        try:
            allowed.add(int(s))
        except ValueError as e:
            raise ConfigError(f"ALLOWED_SERVER_IDS contains a non-numeric id: {s!r}") from e

    return Secrets(
        discord_bot_token=_require(environ, "DISCORD_BOT_TOKEN"),
        pishock_username=_require(environ, "PISHOCK_USERNAME"),
        pishock_api_key=_require(environ, "PISHOCK_API_KEY"),
        pishock_share_code=_require(environ, "PISHOCK_SHARE_CODE"),
        pishock_api_name=environ.get("PISHOCK_API_NAME", "").strip() or "discord-shockbot",
        allowed_server_ids=frozenset(allowed),
    )


__all__ = ["ConfigError", "parse_config", "validate_config", "load_config", "load_secrets"]

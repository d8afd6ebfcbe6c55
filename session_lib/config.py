"""Session configuration.

Configuration is a plain dataclass that can be built in code or loaded
from a YAML file:

    backend: store
    secret_key: "change-me"
    cookie_name: compojure-session
    storage_backend: file
    data_dir: data

The `SESSION_SECRET_KEY` environment variable, when set, takes precedence
over the `secret_key` from the file.
"""
from __future__ import annotations
import logging
import os
import secrets
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Optional, Union

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path('data/config/session_config.yml')
SECRET_KEY_ENV = 'SESSION_SECRET_KEY'


@dataclass
class SessionConfig:
    backend: str = "cookie"
    secret_key: Optional[Union[str, bytes]] = None
    cookie_name: str = "compojure-session"
    cookie_path: str = "/"
    cookie_httponly: bool = True
    cookie_samesite: str = "lax"
    cookie_secure: bool = False
    max_cookie_size: int = 4000
    storage_backend: str = "memory"
    storage_serializer: str = "pickle"
    data_dir: str = "data"
    log_level: str = "WARNING"


def load_config(path: Optional[Path] = None) -> SessionConfig:
    """Load a `SessionConfig` from YAML.

    A missing file yields the defaults. Unknown keys and non-mapping
    documents raise `ValueError` so typos fail at startup.
    """
    cfg_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    data: dict = {}
    if cfg_path.exists():
        with cfg_path.open('r', encoding='utf-8') as f:
            loaded = yaml.safe_load(f)
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ValueError(f"Session config {cfg_path} must be a mapping")
        data = loaded
    else:
        logger.debug("No session config at %s; using defaults", cfg_path)

    known = {f.name for f in fields(SessionConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown session config keys: {', '.join(unknown)}")

    key = data.get('secret_key')
    if key is not None and not isinstance(key, (str, bytes)):
        raise ValueError(f"secret_key in {cfg_path} must be a string, got {type(key).__name__}; quote it in YAML")

    config = SessionConfig(**data)
    env_key = os.environ.get(SECRET_KEY_ENV)
    if env_key:
        config = replace(config, secret_key=env_key)
    return config


def resolve_secret_key(config: SessionConfig) -> bytes:
    """Return the signing key for `config` as bytes.

    When no key is configured a random one is generated. That key lives
    only as long as the process, so every restart invalidates all cookie
    sessions and separate instances cannot verify each other's cookies.
    """
    key = config.secret_key
    if key is None or key == '' or key == b'':
        logger.warning(
            "No session secret_key configured; generated a random key. "
            "Cookie sessions will not survive a restart and are not shared between instances."
        )
        return secrets.token_hex(32).encode('ascii')
    if isinstance(key, str):
        return key.encode('utf-8')
    if isinstance(key, bytes):
        return key
    raise ValueError(f"secret_key must be str or bytes, got {type(key).__name__}")

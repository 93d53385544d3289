from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, Literal, Optional

import yaml
from pydantic import BaseModel

# src/teachclone/utils/config_loader.py -> project root
BASE_DIR = Path(__file__).resolve().parents[3]


def load_config(path: Optional[str]) -> Dict[str, Any]:
    if not path:
        return {}
    config_path = Path(path)
    if not config_path.exists():
        return {}
    with config_path.open('r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        return {}
    return data


def get_config_value(config: Dict[str, Any], keys: Iterable[str], default: Any = None) -> Any:
    cur: Any = config
    for key in keys:
        if not isinstance(cur, dict) or key not in cur:
            return default
        cur = cur[key]
    return cur


def resolve_value(arg_value: Any, config: Dict[str, Any], keys: Iterable[str], default: Any) -> Any:
    if arg_value is not None:
        return arg_value
    cfg_value = get_config_value(config, keys, default=None)
    return default if cfg_value is None else cfg_value


class AppSettings(BaseModel):
    gemini_model: str = "gemini-2.0-flash"
    gemini_api_key: Optional[str] = None
    max_media_bytes: int = 20 * 1024 * 1024
    max_upload_bytes: int = 100 * 1024 * 1024
    history_window: int = 10
    database_url: str
    blob_backend: Literal["local", "r2"] = "local"
    blob_dir: str
    admin_email: str = "admin@teachclone.com"
    admin_password: str = "password"
    admin_name: str = "System Administrator"
    jwt_secret_key: str = "your-secret-key-change-this-in-production"
    access_token_expire_minutes: int = 60 * 24
    redis_url: str = "redis://localhost:6379/0"


# field -> (environment variable, YAML key path, default)
_SETTING_SOURCES = {
    "gemini_model": ("GEMINI_MODEL", ("gemini", "model"), "gemini-2.0-flash"),
    "gemini_api_key": ("GEMINI_API_KEY", ("gemini", "api_key"), None),
    "max_media_bytes": ("MAX_MEDIA_BYTES", ("limits", "max_media_bytes"), 20 * 1024 * 1024),
    "max_upload_bytes": ("MAX_UPLOAD_BYTES", ("limits", "max_upload_bytes"), 100 * 1024 * 1024),
    "history_window": ("CHAT_HISTORY_WINDOW", ("limits", "history_window"), 10),
    "database_url": ("DATABASE_URL", ("database", "url"), f"sqlite:///{(BASE_DIR / 'teachclone.db').as_posix()}"),
    "blob_backend": ("BLOB_BACKEND", ("storage", "backend"), "local"),
    "blob_dir": ("BLOB_DIR", ("storage", "dir"), (BASE_DIR / "media").as_posix()),
    "admin_email": ("ADMIN_EMAIL", ("admin", "email"), "admin@teachclone.com"),
    "admin_password": ("ADMIN_PASSWORD", ("admin", "password"), "password"),
    "admin_name": ("ADMIN_NAME", ("admin", "name"), "System Administrator"),
    "jwt_secret_key": ("JWT_SECRET_KEY", ("auth", "secret_key"), "your-secret-key-change-this-in-production"),
    "access_token_expire_minutes": ("ACCESS_TOKEN_EXPIRE_MINUTES", ("auth", "token_expire_minutes"), 60 * 24),
    "redis_url": ("REDIS_URL", ("queue", "redis_url"), "redis://localhost:6379/0"),
}


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Environment first, then the YAML file named by TEACHCLONE_CONFIG, then defaults"""
    config = load_config(os.getenv("TEACHCLONE_CONFIG"))
    values = {
        field: resolve_value(os.getenv(env_name) or None, config, keys, default)
        for field, (env_name, keys, default) in _SETTING_SOURCES.items()
    }
    return AppSettings(**values)

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from chatmate.completion import (
    DEFAULT_BASE_URL,
    DEFAULT_FREQUENCY_PENALTY,
    DEFAULT_MAX_TOKENS,
    DEFAULT_MODEL,
    DEFAULT_PRESENCE_PENALTY,
    DEFAULT_TEMPERATURE,
    DEFAULT_TIMEOUT_SEC,
    CompletionConfig,
)
from chatmate.errors import ConfigError
from chatmate.security import ChatAllowList

DEFAULT_DATABASE_PATH = "./chatmate.sqlite3"
DEFAULT_WEBHOOK_PORT = 8080


@dataclass(frozen=True)
class AppConfig:
    telegram_bot_token: str
    completion: CompletionConfig
    allowed_chats: ChatAllowList
    database_path: str
    webhook_url: str
    webhook_secret: str
    webhook_port: int

    @property
    def webhook_mode(self) -> bool:
        return bool(self.webhook_url)


def load_dotenv(path: str | Path) -> dict[str, str]:
    env_path = Path(path)
    if not env_path.exists():
        return {}
    result: dict[str, str] = {}
    for raw_line in env_path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        if not key:
            continue
        value = value.strip()
        if len(value) >= 2 and ((value.startswith('"') and value.endswith('"')) or (value.startswith("'") and value.endswith("'"))):
            value = value[1:-1]
        result[key] = value
    return result


def load_environment(dotenv_path: str | Path) -> dict[str, str]:
    """Process environment wins over values from the .env file."""
    values = load_dotenv(dotenv_path)
    values.update(os.environ)
    return values


def _float(value: str | None, fallback: float) -> float:
    if not value:
        return fallback
    try:
        parsed = float(value)
    except ValueError:
        return fallback
    return parsed if math.isfinite(parsed) else fallback


def _int(value: str | None, fallback: int) -> int:
    if not value:
        return fallback
    try:
        return int(float(value))
    except (ValueError, OverflowError):
        return fallback


def load_config(env: Mapping[str, str]) -> AppConfig:
    token = env.get("TELEGRAM_BOT_TOKEN", "").strip()
    api_key = env.get("OPENAI_API_KEY", "").strip()
    missing = [name for name, value in (("TELEGRAM_BOT_TOKEN", token), ("OPENAI_API_KEY", api_key)) if not value]
    if missing:
        raise ConfigError(f"Missing {', '.join(missing)} in environment.")

    completion = CompletionConfig(
        api_key=api_key,
        base_url=env.get("OPENAI_BASE_URL", "").strip() or DEFAULT_BASE_URL,
        model=env.get("OPENAI_MODEL", "").strip() or DEFAULT_MODEL,
        temperature=_float(env.get("OPENAI_TEMPERATURE"), DEFAULT_TEMPERATURE),
        max_tokens=_int(env.get("OPENAI_MAX_TOKENS"), DEFAULT_MAX_TOKENS),
        presence_penalty=_float(env.get("OPENAI_PRESENCE_PENALTY"), DEFAULT_PRESENCE_PENALTY),
        frequency_penalty=_float(env.get("OPENAI_FREQUENCY_PENALTY"), DEFAULT_FREQUENCY_PENALTY),
        timeout_sec=_float(env.get("OPENAI_TIMEOUT_SEC"), DEFAULT_TIMEOUT_SEC),
    )
    return AppConfig(
        telegram_bot_token=token,
        completion=completion,
        allowed_chats=ChatAllowList.from_csv(env.get("ALLOWED_CHAT_IDS")),
        database_path=env.get("DATABASE_PATH", "").strip() or DEFAULT_DATABASE_PATH,
        webhook_url=env.get("WEBHOOK_URL", "").strip(),
        webhook_secret=env.get("WEBHOOK_SECRET", "").strip(),
        webhook_port=_int(env.get("PORT"), DEFAULT_WEBHOOK_PORT),
    )

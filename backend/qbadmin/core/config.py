from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

ACCESS_TOKEN_KEY = "wx_admin_token"
REFRESH_TOKEN_KEY = "wx_admin_refresh_token"


def _load_dotenv() -> None:
    if os.getenv("QBADMIN_SKIP_DOTENV") == "1":
        return

    env_path = Path(__file__).resolve().parents[2] / ".env"
    if not env_path.exists():
        return

    from dotenv import load_dotenv

    load_dotenv(env_path, override=True)


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_positive_int(value: str | None, default: int) -> int:
    if value is None:
        return default
    raw = value.strip()
    if not raw:
        return default
    try:
        parsed = int(raw)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _parse_positive_float(value: str | None, default: float) -> float:
    if value is None:
        return default
    raw = value.strip()
    if not raw:
        return default
    try:
        parsed = float(raw)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


@dataclass(frozen=True)
class Settings:
    env: str
    app_name: str
    api_base_url: str
    api_timeout_seconds: float
    token_file: Path
    cors_origins: list[str]
    default_page_size: int
    log_level: str


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    _load_dotenv()

    env = os.getenv("QBADMIN_ENV", "development")
    base_url = os.getenv("QBADMIN_API_BASE_URL", "http://localhost:3001/api").strip().rstrip("/")
    cors = os.getenv("QBADMIN_CORS_ORIGINS", "http://localhost:3000")
    token_file = Path(os.getenv("QBADMIN_TOKEN_FILE", "backend/.qbadmin_tokens.json"))

    return Settings(
        env=env,
        app_name="Question Bank Admin Console",
        api_base_url=base_url or "http://localhost:3001/api",
        api_timeout_seconds=_parse_positive_float(os.getenv("QBADMIN_API_TIMEOUT_SECONDS"), default=10.0),
        token_file=token_file,
        cors_origins=_split_csv(cors),
        default_page_size=_parse_positive_int(os.getenv("QBADMIN_DEFAULT_PAGE_SIZE"), default=10),
        log_level=(os.getenv("QBADMIN_LOG_LEVEL") or "INFO").strip().upper() or "INFO",
    )

from __future__ import annotations

from dataclasses import dataclass, replace
import os
from pathlib import Path
from typing import Any, Mapping

from .db import default_db_path
from .settings import parse_bool

ENV_DB = "POMOLOG_DB"
ENV_USER_ID = "POMOLOG_USER_ID"
ENV_LOG_LEVEL = "POMOLOG_LOG_LEVEL"
ENV_NOTIFY = "POMOLOG_NOTIFY"
ENV_JOURNAL_MODE = "POMOLOG_JOURNAL_MODE"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class AppConfig:
    db_path: Path
    user_id: int = 1
    log_level: str = "WARNING"
    notify: bool = False
    journal_mode: str | None = None

    def with_overrides(self, **overrides: Any) -> AppConfig:
        clean = {key: value for key, value in overrides.items() if value is not None}
        if "db_path" in clean:
            clean["db_path"] = Path(clean["db_path"])
        if "log_level" in clean:
            clean["log_level"] = _normalize_level(str(clean["log_level"]))
        return replace(self, **clean)


def _normalize_level(raw: str) -> str:
    level = raw.strip().upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"unknown log level: {raw}")
    return level


def load_config(env: Mapping[str, str] | None = None) -> AppConfig:
    source = os.environ if env is None else env

    raw_db = source.get(ENV_DB, "").strip()
    raw_user = source.get(ENV_USER_ID, "").strip()
    raw_level = source.get(ENV_LOG_LEVEL, "").strip()
    raw_journal = source.get(ENV_JOURNAL_MODE, "").strip()

    try:
        user_id = int(raw_user) if raw_user else 1
    except ValueError as exc:
        raise ValueError(f"{ENV_USER_ID} must be an integer: {raw_user}") from exc

    return AppConfig(
        db_path=Path(raw_db) if raw_db else default_db_path(),
        user_id=user_id,
        log_level=_normalize_level(raw_level) if raw_level else "WARNING",
        notify=parse_bool(source.get(ENV_NOTIFY, ""), False),
        journal_mode=raw_journal or None,
    )

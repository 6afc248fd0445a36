import os
from typing import Literal, get_args

from pydantic import BaseModel, ConfigDict, Field

ExecutorKind = Literal["thread", "process"]

LogLevel = Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]

LOG_LEVELS: tuple[str, ...] = get_args(LogLevel)


class ExtractionSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_workers: int = Field(default_factory=lambda: os.cpu_count() or 1, ge=1)
    executor: ExecutorKind = "thread"
    log_level: LogLevel = "WARNING"


def get_settings() -> ExtractionSettings:
    """Build settings from ``CODE_FACTS_*`` environment variables."""
    raw_workers = os.getenv("CODE_FACTS_MAX_WORKERS")
    if raw_workers is None:
        max_workers = os.cpu_count() or 1
    else:
        try:
            max_workers = int(raw_workers)
        except ValueError:
            raise ValueError(f"CODE_FACTS_MAX_WORKERS must be an integer, got {raw_workers!r}") from None
        if max_workers < 1:
            raise ValueError(f"CODE_FACTS_MAX_WORKERS must be positive, got {max_workers}")

    executor = os.getenv("CODE_FACTS_EXECUTOR", "thread").lower()
    if executor not in ("thread", "process"):
        raise ValueError(f"CODE_FACTS_EXECUTOR must be 'thread' or 'process', got {executor!r}")

    log_level = os.getenv("CODE_FACTS_LOG_LEVEL", "WARNING").upper()
    if log_level not in LOG_LEVELS:
        raise ValueError(f"CODE_FACTS_LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {log_level!r}")

    return ExtractionSettings(max_workers=max_workers, executor=executor, log_level=log_level)

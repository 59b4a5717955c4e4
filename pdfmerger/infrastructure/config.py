from __future__ import annotations

import os
from dataclasses import dataclass


def _get_int_env(name: str, default: int, minimum: int = 1) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError:
        return default
    return parsed if parsed >= minimum else default


def _get_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


@dataclass(frozen=True)
class AppConfig:
    min_merge_files: int = 2
    step_delay_ms: int = 100
    output_name: str = "merged-document.pdf"
    log_level: str = "INFO"

    @property
    def step_delay_seconds(self) -> float:
        return self.step_delay_ms / 1000

    @classmethod
    def from_env(cls) -> AppConfig:
        return cls(
            min_merge_files=_get_int_env("PDF_MERGER_MIN_FILES", cls.min_merge_files),
            step_delay_ms=_get_int_env("PDF_MERGER_STEP_DELAY_MS", cls.step_delay_ms, minimum=0),
            output_name=_get_str_env("PDF_MERGER_OUTPUT_NAME", cls.output_name),
            log_level=_get_str_env("PDF_MERGER_LOG_LEVEL", cls.log_level).upper(),
        )

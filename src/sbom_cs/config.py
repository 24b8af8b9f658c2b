from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()

REPORT_FORMATS = ("json", "detailed", "basic")


@dataclass(slots=True)
class Settings:
    log_level: str
    report_format: str
    tool_vendor: str


@lru_cache
def get_settings() -> Settings:
    report_format = os.getenv("REPORT_FORMAT", "detailed").strip().lower()
    if report_format not in REPORT_FORMATS:
        report_format = "detailed"

    return Settings(
        log_level=os.getenv("LOG_LEVEL", "WARNING").strip().upper(),
        report_format=report_format,
        tool_vendor=os.getenv("SBOM_CS_TOOL_VENDOR", "sbom-cs"),
    )

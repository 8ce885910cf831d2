import os
from datetime import timedelta, timezone

from dotenv import load_dotenv

load_dotenv()

# Japan Standard Time (UTC+9)
JST = timezone(timedelta(hours=9))


class Settings:
    EDINET_API_KEY: str = os.getenv("EDINET_API_KEY", "")
    EDINET_API_BASE: str = os.getenv(
        "EDINET_API_BASE", "https://api.edinet-fsa.go.jp/api/v2"
    )
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    # Per-logger overrides, e.g. "edinet_engine.edinet=DEBUG,edinet_engine.pipeline=WARNING"
    LOG_LEVELS: str = os.getenv("LOG_LEVELS", "")

    # Per-request HTTP timeout in seconds (httpx)
    HTTP_TIMEOUT: float = float(os.getenv("HTTP_TIMEOUT", "30"))

    # Discovery window: number of business days scanned backwards from today.
    # 有報 is filed once a year, so ~400 business days always covers the
    # latest one.
    SEARCH_DAYS: int = int(os.getenv("SEARCH_DAYS", "400"))

    # documents.json calls issued concurrently per chunk
    DISCOVERY_CONCURRENCY: int = int(os.getenv("DISCOVERY_CONCURRENCY", "5"))

    # Blanket pause (seconds) after every discovery chunk and before a download
    REQUEST_DELAY: float = float(os.getenv("REQUEST_DELAY", "0.5"))

    # Pause (seconds) around ZIP downloads in batch runs
    DOWNLOAD_DELAY: float = float(os.getenv("DOWNLOAD_DELAY", "1.0"))

    # Parallel ZIP download workers for batch runs (3-5 recommended)
    DOWNLOAD_CONCURRENCY: int = int(os.getenv("DOWNLOAD_CONCURRENCY", "3"))

    # Annual report docTypeCodes
    # 120: 有価証券報告書 (Annual Securities Report)
    # 130: 訂正有価証券報告書 (Amended Annual Report)
    ANNUAL_REPORT_DOC_TYPES: list[str] = ["120", "130"]


settings = Settings()

import logging
import logging.config

from edinet_engine.config import settings

# Loggers of the engine itself; discovery and the batch pipeline log scan progress
ENGINE_LOGGER = "edinet_engine"

# Third-party loggers whose per-request lines drown out the scan progress logs
QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


def parse_level_overrides(text: str) -> dict[str, str]:
    """Parse "name=LEVEL,name=LEVEL" into a logger -> level mapping.

    Malformed pairs are ignored.
    """
    overrides: dict[str, str] = {}
    for pair in text.split(","):
        name, sep, level = pair.partition("=")
        name, level = name.strip(), level.strip().upper()
        if sep and name and isinstance(logging.getLevelName(level), int):
            overrides[name] = level
    return overrides


def setup_logging(level: str | None = None, overrides: str | None = None) -> None:
    """Configure console logging for the engine and the API server.

    *level* applies to the root and the ``edinet_engine`` loggers,
    *overrides* to individual modules (see ``LOG_LEVELS``).
    """
    log_level = (level or settings.LOG_LEVEL).upper()

    loggers: dict[str, dict] = {ENGINE_LOGGER: {"level": log_level}}
    for name in QUIET_LOGGERS:
        loggers[name] = {"level": "WARNING", "handlers": ["console"], "propagate": False}
    for name, module_level in parse_level_overrides(
        settings.LOG_LEVELS if overrides is None else overrides
    ).items():
        loggers.setdefault(name, {})["level"] = module_level

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "plain": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "plain",
                "stream": "ext://sys.stdout",
            },
        },
        "root": {
            "level": log_level,
            "handlers": ["console"],
        },
        "loggers": loggers,
    })

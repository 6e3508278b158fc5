"""Logging setup.

Call ``setup_logging()`` once at startup.  Library loggers that are noisy
at INFO (SQLAlchemy statement echo, httpx request lines) get their own
levels so they can be silenced independently of the application.
"""
import logging
import sys

from cms_api.config import settings

_CATEGORY_LEVELS: dict[str, list[str]] = {
    "LOG_LEVEL_SQL": ["sqlalchemy.engine", "sqlalchemy.pool", "aiosqlite"],
    "LOG_LEVEL_HTTP": ["httpx", "httpcore"],
}


def _parse_level(value: str) -> int:
    level = logging.getLevelName(value.upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging() -> None:
    root = logging.getLogger()
    root.setLevel(_parse_level(settings.LOG_LEVEL))

    # uvicorn normally installs a handler; scripts and tests may not.
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)-8s %(name)s: %(message)s")
        )
        root.addHandler(handler)

    for field, names in _CATEGORY_LEVELS.items():
        level = _parse_level(getattr(settings, field))
        for name in names:
            logging.getLogger(name).setLevel(level)

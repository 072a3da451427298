"""
db/config.py

Database URL resolution and ``.env`` loading shared by the API process,
the scheduler and Alembic.
"""

from __future__ import annotations

import os
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
ENV_FILES = (".env", ".env.local")

# Checked in order after an explicit override.
DATABASE_URL_VARIABLES = ("DATABASE_URL", "CLOUD_DATABASE_URL")


def _parse_env_line(raw_line: str) -> tuple[str, str] | None:
    line = raw_line.strip()
    if line.startswith("export "):
        line = line[len("export ") :].lstrip()
    if not line or line.startswith("#") or "=" not in line:
        return None
    key, value = (part.strip() for part in line.split("=", 1))
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
        value = value[1:-1]
    return (key, value) if key else None


def load_env_files(root: Path | None = None) -> None:
    """
    Copy ``KEY=VALUE`` pairs from ``.env`` then ``.env.local`` into the
    process environment. Variables that are already set win.
    """

    base = root or PROJECT_ROOT
    for filename in ENV_FILES:
        path = base / filename
        if not path.is_file():
            continue
        for raw_line in path.read_text(encoding="utf-8").splitlines():
            parsed = _parse_env_line(raw_line)
            if parsed is not None:
                os.environ.setdefault(*parsed)


def normalize_postgres_url(url: str) -> str:
    """
    Rewrite bare ``postgres://`` / ``postgresql://`` URLs to the psycopg 3
    driver. URLs that already name a driver are returned unchanged.
    """

    url = url.strip()
    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return "postgresql+psycopg://" + url[len(prefix) :]
    return url


def configured_database_url() -> str | None:
    """First non-blank URL variable, un-normalized, or None."""
    load_env_files()
    for name in DATABASE_URL_VARIABLES:
        value = os.getenv(name, "").strip()
        if value:
            return value
    return None


def resolve_database_url(override: str | None = None) -> str:
    """
    Return the normalized database URL: ``override`` when given, else the
    first of ``DATABASE_URL`` / ``CLOUD_DATABASE_URL`` that is set.
    """

    url = (override or "").strip() or configured_database_url()
    if not url:
        raise RuntimeError(
            "No database URL configured. Set " + " or ".join(DATABASE_URL_VARIABLES) + "."
        )
    return normalize_postgres_url(url)

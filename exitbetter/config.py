"""
Engine configuration.

Values come from the environment (optionally seeded from a `.env` file at
the project root) and fall back to the defaults used by the hosted product.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[1]
KNOWLEDGE_DIR = Path(__file__).resolve().parent / "knowledge"
DEFAULT_SNAPSHOT = KNOWLEDGE_DIR / "demo_snapshot.json"

EXCLUSIVE_OPTION = "None of the above"
UNSURE_VALUE = "Unsure"
NO_PROJECT_SENTINEL = "__none__"
DEFAULT_DEADLINE_DAYS = 7
BIRTH_YEAR_FIELD = "birthYear"


def load_env_file(path: Optional[Path] = None) -> None:
    """Seed os.environ from a KEY=VALUE file without overriding real env vars."""
    env_path = path or PROJECT_ROOT / ".env"
    if not env_path.exists():
        return
    for line in env_path.read_text().splitlines():
        line = line.strip()
        if line and not line.startswith("#") and "=" in line:
            key, _, value = line.partition("=")
            os.environ.setdefault(key.strip(), value.strip())


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r, using %d", name, raw, default)
        return default


@dataclass
class EngineConfig:
    """Configuration shared by the resolver, evaluators and entry points."""
    # Checkbox option that cancels every other choice ("NOT_NONE" triggers)
    exclusive_option: str = EXCLUSIVE_OPTION

    # Stored answer that counts as unanswered for completion
    unsure_value: str = UNSURE_VALUE

    # project_ids entry that targets viewers without a project
    no_project_sentinel: str = NO_PROJECT_SENTINEL

    # Used for the "Within N days" timeline when a task has no deadline
    default_deadline_days: int = DEFAULT_DEADLINE_DAYS

    # Profile field holding the user's birth year (age rules)
    birth_year_field: str = BIRTH_YEAR_FIELD

    snapshot_path: str = str(DEFAULT_SNAPSHOT)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "EngineConfig":
        load_env_file(env_file)
        return cls(
            exclusive_option=os.environ.get("EXITBETTER_EXCLUSIVE_OPTION", EXCLUSIVE_OPTION),
            unsure_value=os.environ.get("EXITBETTER_UNSURE_VALUE", UNSURE_VALUE),
            no_project_sentinel=os.environ.get("EXITBETTER_NO_PROJECT_SENTINEL", NO_PROJECT_SENTINEL),
            default_deadline_days=_env_int("EXITBETTER_DEFAULT_DEADLINE_DAYS", DEFAULT_DEADLINE_DAYS),
            birth_year_field=os.environ.get("EXITBETTER_BIRTH_YEAR_FIELD", BIRTH_YEAR_FIELD),
            snapshot_path=os.environ.get("EXITBETTER_SNAPSHOT", str(DEFAULT_SNAPSHOT)),
            log_level=os.environ.get("EXITBETTER_LOG_LEVEL", "INFO").upper(),
        )


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the CLI and web entry points."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

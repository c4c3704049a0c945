"""Environment-driven settings for the OTC tools.

Values come from the process environment; a `.env` file in the working
directory is loaded first when present.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_BATCH_SIZE = 100
DEFAULT_BATCH_PAUSE = 0.05
DEFAULT_HTTP_TIMEOUT = 30.0


@dataclass(frozen=True)
class Settings:
    db_url: str | None
    api_key: str | None
    batch_size: int = DEFAULT_BATCH_SIZE
    batch_pause: float = DEFAULT_BATCH_PAUSE
    timeout: float = DEFAULT_HTTP_TIMEOUT


def load_settings() -> Settings:
    """Read settings from `.env` and the environment.

    OTC_DB_URL takes precedence over SUPABASE_URL so a local sqlite store can
    be selected without touching the hosted project's variables.
    """
    load_dotenv()
    return Settings(
        db_url=os.environ.get("OTC_DB_URL") or os.environ.get("SUPABASE_URL"),
        api_key=os.environ.get("SUPABASE_KEY"),
        batch_size=int(os.environ.get("OTC_BATCH_SIZE", DEFAULT_BATCH_SIZE)),
        batch_pause=float(os.environ.get("OTC_BATCH_PAUSE", DEFAULT_BATCH_PAUSE)),
        timeout=float(os.environ.get("OTC_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT)),
    )

import os
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional


@dataclass(frozen=True)
class Settings:
    bot_token: str
    database_url: str
    payment_delay: float = 1.5
    persistence_file: Optional[str] = None
    recent_orders_limit: int = 5
    session_ttl: timedelta = timedelta(hours=168)
    log_level: str = 'INFO'


def _number(name: str, default, cast):
    raw = os.getenv(name, '').strip()
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def load_settings() -> Settings:
    """Read settings from the environment (call load_dotenv() first)."""
    bot_token = os.getenv('BOT_TOKEN')
    if not bot_token:
        raise ValueError("BOT_TOKEN environment variable is not set")
    database_url = os.getenv('DATABASE_URL')
    if not database_url:
        raise ValueError("DATABASE_URL environment variable is not set")

    return Settings(
        bot_token=bot_token,
        database_url=database_url,
        payment_delay=_number('PAYMENT_DELAY_SECONDS', 1.5, float),
        persistence_file=os.getenv('PERSISTENCE_FILE', '').strip() or None,
        recent_orders_limit=_number('RECENT_ORDERS_LIMIT', 5, int),
        session_ttl=timedelta(hours=_number('SESSION_TTL_HOURS', 168, int)),
        log_level=os.getenv('LOG_LEVEL', 'INFO').strip().upper() or 'INFO',
    )

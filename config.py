"""Configuration and constants for the Movie Shelf Bot."""

import os
import logging
from dotenv import load_dotenv

load_dotenv()

# Logging configuration
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=logging.INFO
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger("movie_shelf_bot")

# Telegram Bot configuration
TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN")
if not TELEGRAM_BOT_TOKEN:
    raise ValueError("TELEGRAM_BOT_TOKEN not set in environment variables")

_admin_chat_id = os.getenv("ADMIN_CHAT_ID")
if not _admin_chat_id:
    raise ValueError("ADMIN_CHAT_ID not set in environment variables")
try:
    ADMIN_CHAT_ID = int(_admin_chat_id)
except ValueError:
    raise ValueError(f"ADMIN_CHAT_ID must be an integer, got {_admin_chat_id!r}")

# Movie backend configuration
BACKEND_API_URL = os.getenv("BACKEND_API_URL", "").rstrip("/")
if not BACKEND_API_URL:
    raise ValueError("BACKEND_API_URL not set in environment variables")

TMDB_IMAGE_BASE_URL = "https://image.tmdb.org/t/p/w500"

# Listing behaviour
SEARCH_PAGE_SIZE = int(os.getenv("SEARCH_PAGE_SIZE", "3"))
TOP_SAVED_LIMIT = 5

# Reminders
REMINDER_INTERVAL_HOURS = float(os.getenv("REMINDER_INTERVAL_HOURS", "10"))
REMINDER_MESSAGE = "🔔 Reminder: take a look at your saved movies!"

# Cache configuration (unset means unbounded)
_max_cached = os.getenv("MAX_CACHED_MOVIES")
MAX_CACHED_MOVIES = int(_max_cached) if _max_cached else None

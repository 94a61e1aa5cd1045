import os
from dotenv import load_dotenv

load_dotenv()

PORTAL_API_BASE_URL = os.environ.get("PORTAL_API_BASE_URL", "http://localhost:3001/api").rstrip("/")
PORTAL_API_TIMEOUT_SEC = float(os.environ.get("PORTAL_API_TIMEOUT_SEC", "30"))
PORTAL_TIMEZONE = os.environ.get("PORTAL_TIMEZONE", "UTC")

REDIS_URL = os.environ.get("REDIS_URL", "redis://localhost:6379/0")
SESSION_TTL_SEC = int(os.environ.get("SESSION_TTL_SEC", "604800"))

POLL_INTERVAL_SEC = int(os.environ.get("POLL_INTERVAL_SEC", "60"))
ELAPSED_TICK_SEC = float(os.environ.get("ELAPSED_TICK_SEC", "1"))

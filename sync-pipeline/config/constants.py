"""Pure constants for the sync pipeline. No side effects at import time."""

from pathlib import Path

# === Directories ===
# Use absolute path relative to project root (parent of sync-pipeline/)
_PROJECT_ROOT = Path(__file__).parent.parent.parent
DATA_DIR = _PROJECT_ROOT / "data"
CURSOR_FILE_NAME = "sync-cursors.json"

# === Remote API ===
PRODUCT_HUNT_API_ENDPOINT = "https://api.producthunt.com/v2/api/graphql"
DEFAULT_USER_AGENT = "hunt-sync/0.1 (Personal Use)"
DEFAULT_REQUEST_TIMEOUT = 30.0  # seconds

# === Rate Limit ===
# Product Hunt allows roughly 50 requests per 15 minutes (50 / 900s)
DEFAULT_REQUESTS_PER_SECOND = 0.056
DEFAULT_BURST_LIMIT = 3

# === Retry ===
DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_RETRY_BASE_DELAY = 5.0  # seconds
DEFAULT_RETRY_MAX_DELAY = 60.0  # seconds
DEFAULT_BACKOFF_MULTIPLIER = 2.0

# === Batching ===
DEFAULT_BATCH_SIZE = 5
DEFAULT_MAX_ITEMS = 100

# === Storage ===
SUPABASE_CHUNK_SIZE = 500

from dotenv import load_dotenv
import os

# ✅ Load environment variables from .env file
load_dotenv()

# ✅ Upstream recruitment API (opaque REST service)
API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:3001/api").rstrip("/")

REQUEST_TIMEOUT_SECONDS = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "30.0"))

# ✅ Comparison screen holds at most this many candidates side by side
MAX_COMPARISON_CANDIDATES = int(os.getenv("MAX_COMPARISON_CANDIDATES", "4"))

if not 3 <= MAX_COMPARISON_CANDIDATES <= 4:
    raise ValueError(
        f"❌ MAX_COMPARISON_CANDIDATES must be 3 or 4, got {MAX_COMPARISON_CANDIDATES}. Please fix your .env."
    )

# Seconds a cached upstream read stays valid before it is fetched again
CACHE_TTL_SECONDS = float(os.getenv("CACHE_TTL_SECONDS", "30"))

ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("ALLOWED_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

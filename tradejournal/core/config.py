import os

# Database
DATABASE_URL = os.environ.get("DATABASE_URL", "postgresql://localhost:5432/tradejournal")
DB_POOL_MIN_SIZE = int(os.environ.get("DB_POOL_MIN_SIZE", "1"))
DB_POOL_MAX_SIZE = int(os.environ.get("DB_POOL_MAX_SIZE", "10"))
DB_POOL_TIMEOUT_SECONDS = float(os.environ.get("DB_POOL_TIMEOUT_SECONDS", "10"))

# Price oracle
JUPITER_PRICE_API = os.environ.get("JUPITER_PRICE_API", "https://api.jup.ag/price/v2")
HTTP_TIMEOUT_SECONDS = float(os.environ.get("HTTP_TIMEOUT_SECONDS", "15"))

# Wallet trade cache (minutes)
WALLET_CACHE_TTL_MINUTES = float(os.environ.get("WALLET_CACHE_TTL_MINUTES", "5"))

# History pagination
HISTORY_PAGE_SIZE = int(os.environ.get("HISTORY_PAGE_SIZE", "50"))

# Legacy per-token notes (JSON file). Empty = in-memory only.
LEGACY_NOTES_PATH = os.environ.get("LEGACY_NOTES_PATH", "")

from decimal import Decimal

# ==============================================================================
# NUMERIC
# ==============================================================================
ZERO = Decimal(0)
EPSILON = Decimal("0.000001")

# ==============================================================================
# TIME
# ==============================================================================
MS_PER_MINUTE = 60 * 1000
# Timestamps below this are treated as epoch seconds, not milliseconds
EPOCH_SECONDS_CUTOFF = 10 ** 11

# ==============================================================================
# NOTES
# ==============================================================================
LEGACY_NOTE_KEY_FORMAT = "{wallet_id}:{token_address}"

# ==============================================================================
# USER-FACING LOAD ERROR MESSAGES
# ==============================================================================
LOAD_ERROR_MESSAGES = {
    "rate_limited": "Rate limit reached. Please wait a moment before trying again.",
    "upstream_unavailable": "The trade history service is currently unavailable. Please try again later.",
    "authentication": "Authentication issue with the trade history provider. Please try again later.",
    "timeout": "Request timeout. The network may be experiencing high traffic.",
    "unknown": "Failed to load trades. Please try again.",
}

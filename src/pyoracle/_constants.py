"""Internal constants shared across the library."""

RPC_URL = "https://alfajores-forno.celo-testnet.org"
EXPLORER_TX_URL = "https://explorer.celo.org/alfajores/tx/"
WEATHER_URL = "https://api.open-meteo.com/v1/forecast"
USER_AGENT = "pyoracle/1"

# ------------------------------------------------------------------
# Geographic envelope (whole degrees, as stored on-chain)
# ------------------------------------------------------------------

LAT_MIN = -90
LAT_MAX = 90
LON_MIN = -180
LON_MAX = 180

# ------------------------------------------------------------------
# Relay defaults
# ------------------------------------------------------------------

MAX_ATTEMPTS = 3
RETRY_DELAY = 1.0
FETCH_TIMEOUT = 10.0
POLL_INTERVAL = 2.0

#: Result submitted when every fetch attempt failed.  Consumers treat
#: ``"0"`` as "no data" by convention.
SENTINEL_RESULT = "0"

UINT256_MAX = 2**256 - 1


def is_valid_location(lat: int, lon: int) -> bool:
    """Return ``True`` when ``(lat, lon)`` lies inside the legal envelope."""
    return LAT_MIN <= lat <= LAT_MAX and LON_MIN <= lon <= LON_MAX

"""Internal constants shared across the library."""

JSONP_CALLBACK = "hotPushJSONP"
DEFAULT_TRANSFER_ID = "assets"

# Seconds the local manifest read may take before it counts as absent.
LOCAL_MANIFEST_TIMEOUT = 0.1
# Seconds between the start of two consecutive asset waves.
WAVE_INTERVAL = 0.1
REQUEST_TIMEOUT = 30.0

USER_AGENT = "hotpush/1"

import os

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
DEFAULT_RULES_PATH = os.path.join(BASE_DIR, "data", "restricted_claims.json")

RULES_PATH = os.environ.get("RULES_PATH", "") or DEFAULT_RULES_PATH
ENGINE_CONFIG_PATH = os.environ.get("ENGINE_CONFIG_PATH", "")

ANALYZE_TIMEOUT = float(os.environ.get("ANALYZE_TIMEOUT_SEC", "10"))
MAX_CONCURRENT_ANALYZE = int(os.environ.get("MAX_CONCURRENT_ANALYZE", "4"))
MAX_TEXT_LENGTH = int(os.environ.get("MAX_TEXT_LENGTH", "20000"))

_origins = os.environ.get("ALLOWED_ORIGINS", "*")
ALLOWED_ORIGINS = [o.strip() for o in _origins.split(",")] if _origins else ["*"]

ENABLE_METRICS = os.environ.get("ENABLE_METRICS", "true").lower() in ("1", "true", "yes")
SERVICE_VERSION = os.environ.get("SERVICE_VERSION", "1.0.0")

import os
import logging
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

SUCCESS = "success"
ERROR = "error"

# Streaming proxy settings
UPSTREAM_TIMEOUT_SECONDS = float(os.getenv("UPSTREAM_TIMEOUT_SECONDS", "8.0"))
STREAM_CHUNK_SIZE = int(os.getenv("STREAM_CHUNK_SIZE", "65536"))
STREAM_FORCE_BUFFERING = os.getenv("STREAM_FORCE_BUFFERING", "false").lower() in ("1", "true", "yes")
ERROR_DETAIL_LIMIT = 500
DEFAULT_CONTENT_TYPE = "application/octet-stream"

FAILURE_POLICY_REDIRECT = "redirect"
FAILURE_POLICY_ERROR = "error"


def get_failure_policy(value: str = None) -> str:
    policy = (value if value is not None else os.getenv("STREAM_FAILURE_POLICY", FAILURE_POLICY_REDIRECT)).strip().lower()
    if policy not in (FAILURE_POLICY_REDIRECT, FAILURE_POLICY_ERROR):
        logger.warning(f"Unknown STREAM_FAILURE_POLICY '{policy}', using '{FAILURE_POLICY_REDIRECT}'")
        return FAILURE_POLICY_REDIRECT
    return policy


CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",") if origin.strip()]

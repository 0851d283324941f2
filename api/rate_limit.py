# api/rate_limit.py
import os
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from fastapi import FastAPI
from dotenv import load_dotenv

load_dotenv()
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() != "false"
RATE_LIMIT_STORAGE_URI = os.getenv("RATE_LIMIT_STORAGE_URI", "memory://")

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=RATE_LIMIT_STORAGE_URI,
    enabled=RATE_LIMIT_ENABLED,
)


def register_rate_limit(app: FastAPI):
    """
    Attach the slowapi limiter to the app and answer limit breaches with 429.

    Per-route limits are declared on the handlers with @limiter.limit().
    Limits are tracked per client address in RATE_LIMIT_STORAGE_URI
    (in-process memory unless configured otherwise).
    """
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core import config

# Callers are not authenticated individually, so limits are per client address
limiter = Limiter(key_func=get_remote_address, enabled=config.RATE_LIMIT_ENABLED)

"""
Web API configuration.
"""
from core.config import config, VERSION

# Web server settings
WEB_HOST = config.web.host
WEB_PORT = config.web.port

# Rate limits (slowapi syntax)
QUERY_RATE_LIMIT = f"{config.web.rate_limit_per_minute}/minute"
EXPORT_RATE_LIMIT = f"{config.web.export_rate_limit_per_minute}/minute"

# Request timeouts (seconds)
REQUEST_TIMEOUT = config.web.request_timeout
EXPORT_REQUEST_TIMEOUT = config.web.export_request_timeout

ADMIN_TOKEN = config.web.admin_token

__all__ = [
    "VERSION", "WEB_HOST", "WEB_PORT", "QUERY_RATE_LIMIT", "EXPORT_RATE_LIMIT",
    "REQUEST_TIMEOUT", "EXPORT_REQUEST_TIMEOUT", "ADMIN_TOKEN",
]

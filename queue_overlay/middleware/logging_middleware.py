"""Log redaction for outbound Spotify requests."""

import re

# Sensitive parameters to redact from URLs
SENSITIVE_PARAMS = [
    "code",
    "state",
    "token",
    "secret",
    "refresh_token",
    "access_token",
    "client_secret",
    "authorization",
]


def redact_sensitive_data(url: str) -> str:
    """Redact sensitive query parameters from URL."""
    redacted = url
    for param in SENSITIVE_PARAMS:
        pattern = rf"([?&]){param}=([^&\s\"]+)"
        redacted = re.sub(pattern, rf"\g<1>{param}=***REDACTED***", redacted)
    return redacted

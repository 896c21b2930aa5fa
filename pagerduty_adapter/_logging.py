import hashlib
import logging

# Create the library logger
logger = logging.getLogger("pagerduty_adapter")

# Add NullHandler to prevent "No handlers could be found" warnings
# if the application doesn't configure logging.
logger.addHandler(logging.NullHandler())


def redact_token(token: str | None) -> str:
    """
    Redacts an authorization token for logging.
    Hashes the value to allow correlation without revealing the credential.
    """
    if not token:
        return "<empty>"
    return hashlib.sha256(token.encode("utf-8")).hexdigest()[:8]

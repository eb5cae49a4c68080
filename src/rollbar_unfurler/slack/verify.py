import hmac
from ..config import get_settings
from ..errors import AuthMismatch
from ..log import get_logger

logger = get_logger("verify")

def verify_token(token: str, endpoint: str = ""):
    """
    Compares the verification token Slack sends with every request against
    the configured one. Raises AuthMismatch if they differ.
    """
    expected = get_settings().VERIFICATION_TOKEN
    if not token or not hmac.compare_digest(token.encode("utf-8"), expected.encode("utf-8")):
        logger.warning(f"Verification token mismatch at {endpoint or 'unknown endpoint'}")
        raise AuthMismatch("Token mismatch")

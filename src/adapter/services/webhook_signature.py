"""Gateway webhook signature verification (HMAC-SHA256 over the raw body)"""

import hashlib
import hmac
import logging
from typing import Optional, Union

logger = logging.getLogger(__name__)


def compute_signature(secret: str, payload: Union[bytes, str]) -> str:
    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def verify_signature(secret: Optional[str], payload: bytes, signature: Optional[str]) -> bool:
    """
    Check a webhook signature

    Verification is skipped (always True) when no secret is configured.
    An optional "sha256=" prefix on the header value is accepted.
    """
    if not secret:
        return True

    if not signature:
        logger.warning("Webhook signature missing")
        return False

    provided = signature.strip()
    if provided.lower().startswith("sha256="):
        provided = provided[len("sha256="):]

    is_valid = hmac.compare_digest(compute_signature(secret, payload), provided.lower())
    if not is_valid:
        logger.warning("Webhook signature verification FAILED")
    return is_valid

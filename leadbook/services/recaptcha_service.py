import logging
from typing import Optional

import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from leadbook.core.config import settings
from leadbook.core.errors import UpstreamServiceError, ValidationError

logger = logging.getLogger(__name__)


# Transport hiccups are retried; HTTP error statuses are not
@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.5, min=0.5, max=2),
    retry=retry_if_exception_type((requests.exceptions.ConnectionError, requests.exceptions.Timeout)),
    reraise=True,
)
def _post_siteverify(url: str, payload: dict) -> dict:
    response = requests.post(url, data=payload, timeout=10)
    response.raise_for_status()
    return response.json()


class RecaptchaVerifier:
    """Checks reCAPTCHA tokens against Google's siteverify endpoint.

    The gate is disabled when no secret key is configured; ``verify`` then
    accepts everything.
    """

    def __init__(self, secret_key: Optional[str] = None, verify_url: str = None, min_score: float = None):
        self.secret_key = secret_key
        self.verify_url = verify_url or settings.RECAPTCHA_VERIFY_URL
        self.min_score = settings.RECAPTCHA_MIN_SCORE if min_score is None else min_score

    @property
    def enabled(self) -> bool:
        return bool(self.secret_key)

    def verify(self, token: Optional[str], remote_ip: Optional[str] = None) -> None:
        if not self.enabled:
            return

        if not token:
            raise ValidationError("reCAPTCHA token is required")

        payload = {"secret": self.secret_key, "response": token}
        if remote_ip:
            payload["remoteip"] = remote_ip

        try:
            result = _post_siteverify(self.verify_url, payload)
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.error(f"🔌 reCAPTCHA verification unavailable: {e}")
            raise UpstreamServiceError("Unable to verify reCAPTCHA. Please try again.")

        score = result.get("score")
        if not result.get("success") or (score is not None and score < self.min_score):
            logger.warning(f"🤖 reCAPTCHA rejected: success={result.get('success')} score={score}")
            raise ValidationError("reCAPTCHA verification failed")


def get_recaptcha_verifier() -> RecaptchaVerifier:
    return RecaptchaVerifier(secret_key=settings.RECAPTCHA_SECRET_KEY)

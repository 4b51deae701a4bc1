"""Identity gate backed by a stored Google ID token."""

import base64
import json
import logging
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

from wordloop.domain.constants import TOKEN_MAX_SKEW_SEC, TOKEN_SAFETY_BUFFER_SEC
from wordloop.domain.errors import NotAuthorized
from wordloop.domain.ports import IdentityGate

logger = logging.getLogger(__name__)


def decode_jwt_payload(token: str) -> dict[str, Any]:
    """Decode the payload segment of a JWT. The signature is not verified here."""
    try:
        _, payload, _ = token.split(".")
        padded = payload + "=" * (-len(payload) % 4)
        data = json.loads(base64.urlsafe_b64decode(padded))
    except (ValueError, TypeError) as e:
        raise NotAuthorized(f"malformed ID token: {e}") from e
    if not isinstance(data, dict):
        raise NotAuthorized("malformed ID token: payload is not an object")
    return data


class TokenIdentityGate(IdentityGate):
    """
    Keeps one ID token on disk and reports whether it is still usable.

    A token is usable while now + safety_buffer + max_skew < exp, so a write
    is never attempted with a token about to expire.
    """

    def __init__(
        self,
        token_path: Path,
        allowed_emails: list[str] | None = None,
        safety_buffer: int = TOKEN_SAFETY_BUFFER_SEC,
        max_skew: int = TOKEN_MAX_SKEW_SEC,
        clock: Callable[[], float] = time.time,
    ):
        self.token_path = Path(token_path)
        self.allowed_emails = [e.lower() for e in (allowed_emails or [])]
        self.safety_buffer = safety_buffer
        self.max_skew = max_skew
        self._clock = clock

    def _load(self) -> tuple[str | None, int]:
        if not self.token_path.exists():
            return None, 0
        try:
            data = json.loads(self.token_path.read_text(encoding="utf-8"))
            return data.get("token"), int(data.get("exp") or 0)
        except (OSError, ValueError, AttributeError) as e:
            logger.warning(f"Ignoring unreadable token file {self.token_path}: {e}")
            return None, 0

    def _still_valid(self, exp: int) -> bool:
        return int(self._clock()) + self.safety_buffer + self.max_skew < exp

    def save_token(self, token: str) -> dict[str, Any]:
        """
        Validate and store a freshly issued ID token.

        Returns:
            The decoded payload.

        Raises:
            NotAuthorized: Unverified email, email not on the whitelist (an empty
                whitelist admits nobody), or no expiry.
        """
        payload = decode_jwt_payload(token)

        email = payload.get("email")
        if not email or not payload.get("email_verified"):
            raise NotAuthorized("sign-in failed: email not verified")
        if email.lower() not in self.allowed_emails:
            raise NotAuthorized("sign-in failed: email not in whitelist")
        if not payload.get("exp"):
            raise NotAuthorized("sign-in failed: no exp in token")

        self.token_path.parent.mkdir(parents=True, exist_ok=True)
        self.token_path.write_text(
            json.dumps({"token": token, "exp": int(payload["exp"])}), encoding="utf-8"
        )
        try:
            self.token_path.chmod(0o600)
        except OSError:
            pass
        logger.info(f"Signed in as {email}")
        return payload

    def clear_token(self) -> None:
        self.token_path.unlink(missing_ok=True)
        logger.info("Signed out")

    def is_authorized(self) -> bool:
        token, exp = self._load()
        if not token or not exp:
            return False
        return self._still_valid(exp)

    def get_token(self) -> str:
        token, exp = self._load()
        if not token or not exp:
            raise NotAuthorized("not signed in")
        if not self._still_valid(exp):
            raise NotAuthorized("ID token expired; sign in again")
        return token

    def get_profile(self) -> dict[str, Any] | None:
        if not self.is_authorized():
            return None
        token, _ = self._load()
        try:
            return decode_jwt_payload(token)
        except NotAuthorized:
            return None

"""Request signing for authenticated webservice calls.

A login hands out a token and a secret. Every request made while logged in
carries the token, a rolling sequence number and an MD5 signature of
``"<sequence>:<secret>"``. The sequence starts at 1 and grows by one per
signed request.
"""

import hashlib
from typing import Any

from decktutor.utils.errors import ResponseFormatError

AUTH_TOKEN_HEADER = "x-dt-Auth-Token"
SEQUENCE_HEADER = "x-dt-Sequence"
SIGNATURE_HEADER = "x-dt-Signature"


def compute_signature(sequence: int, secret: str) -> str:
    """Compute the request signature for a sequence number.

    Args:
        sequence: Sequence number of the request being signed
        secret: Secret obtained at login

    Returns:
        Lowercase hexadecimal MD5 digest

    Example:
        >>> compute_signature(1, "secret")
        '7272f097d55e24f93fa1f20ed60d47ac'
    """
    payload = f"{sequence}:{secret}"
    return hashlib.md5(payload.encode("utf-8")).hexdigest()


class AuthSession:
    """Credentials of a logged in client and its sequence counter."""

    def __init__(
        self,
        token: str,
        secret: str,
        expiration: Any = None,
        sequence: int = 1,
    ) -> None:
        self.token = token
        self.secret = secret
        self.expiration = expiration
        self.sequence = sequence

    @classmethod
    def from_login_response(cls, response: Any) -> "AuthSession":
        """Build a session from the body of a successful login.

        Args:
            response: Decoded login response

        Returns:
            New session with the sequence reset to 1

        Raises:
            ResponseFormatError: If token or secret are missing
        """
        if not isinstance(response, dict):
            raise ResponseFormatError(
                "login", ["auth_token", "auth_token_secret"], response
            )

        missing = [
            field
            for field in ("auth_token", "auth_token_secret")
            if response.get(field) is None
        ]
        if missing:
            raise ResponseFormatError("login", missing, response)

        return cls(
            token=response["auth_token"],
            secret=response["auth_token_secret"],
            expiration=response.get("auth_token_expiration"),
        )

    def next_headers(self) -> dict[str, str]:
        """Return the auth headers for the next request and advance the sequence."""
        sequence = self.sequence
        headers = {
            AUTH_TOKEN_HEADER: self.token,
            SEQUENCE_HEADER: str(sequence),
            SIGNATURE_HEADER: compute_signature(sequence, self.secret),
        }
        self.sequence = sequence + 1
        return headers

    def __repr__(self) -> str:
        # Secret stays out of reprs and tracebacks
        return (
            f"AuthSession(token={self.token!r}, sequence={self.sequence}, "
            f"expiration={self.expiration!r})"
        )

# src/infrastructure/integrations/auth.py

import logging
from datetime import datetime, timedelta, timezone

import jwt
from jwt import PyJWTError

from src.domain.exceptions import UnauthenticatedError
from src.domain.identity import Principal, Role

logger = logging.getLogger(__name__)


class JwtAuthVerifier:
    """
    Verifies bearer tokens and turns them into a (subject, role) principal.
    Issuing is only here so tooling and tests can mint tokens with the
    same secret.
    """

    def __init__(
        self,
        secret: str | None,
        algorithm: str = "HS256",
        ttl: timedelta = timedelta(hours=12),
    ):
        self.secret = secret
        self.algorithm = algorithm
        self.ttl = ttl

    def _require_secret(self) -> str:
        if not self.secret:
            raise UnauthenticatedError("Authentication is not configured. Set JWT_SECRET.")
        return self.secret

    def issue(self, subject_id: str, role: Role) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": subject_id,
            "role": Role(role).value,
            "iat": now,
            "exp": now + self.ttl,
        }
        return jwt.encode(payload, self._require_secret(), algorithm=self.algorithm)

    def verify(self, token: str | None) -> Principal:
        if not token:
            raise UnauthenticatedError("Missing bearer token")

        try:
            claims = jwt.decode(
                token,
                self._require_secret(),
                algorithms=[self.algorithm],
                options={"require": ["sub", "exp"]},
            )
        except PyJWTError as exc:
            logger.info("Rejected bearer token: %s", type(exc).__name__)
            raise UnauthenticatedError("Invalid or expired token") from exc

        try:
            role = Role(claims.get("role"))
        except ValueError as exc:
            raise UnauthenticatedError("Token carries an unknown role") from exc

        return Principal(subject_id=str(claims["sub"]), role=role)

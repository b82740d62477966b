# submitdesk/auth.py
import datetime
import logging
from dataclasses import dataclass
from typing import Any, Dict, Union

from fastapi import Request
from jose import jwt, JWTError

from submitdesk.config import Config
from submitdesk.errors import AuthError, Unauthorized

logger = logging.getLogger(__name__)

STUDENT = "student"
FACULTY = "faculty"
ADMIN = "admin"
ROLES = (STUDENT, FACULTY, ADMIN)


@dataclass(frozen=True)
class Principal:
    """The authenticated actor. Students are identified by roll number."""
    identity: Union[int, str]
    role: str


class AuthTokenService:
    def __init__(self, config: Config):
        self.secret = config.secret_key
        self.algorithm = config.algorithm
        self.access_minutes = config.access_minutes

    def issue(self, principal: Principal) -> str:
        claims: Dict[str, Any] = {"sub": str(principal.identity), "role": principal.role}
        if self.access_minutes > 0:
            claims["exp"] = datetime.datetime.now(datetime.timezone.utc) + datetime.timedelta(minutes=self.access_minutes)
        return jwt.encode(claims, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> Principal:
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError as e:
            raise AuthError(str(e) or "invalid token")
        role = payload.get("role")
        sub = payload.get("sub")
        if role not in ROLES or not sub:
            raise AuthError("invalid token claims")
        if role == STUDENT:
            try:
                return Principal(int(sub), role)
            except ValueError:
                raise AuthError("invalid token claims")
        return Principal(sub, role)


class PlaintextCredentialVerifier:
    """Stored passwords are compared as-is; swap this class to change the scheme."""

    def verify(self, supplied: str, stored: str) -> bool:
        return supplied is not None and supplied == stored


def bearer_token(request: Request) -> str:
    # format: Bearer <token>
    header = request.headers.get("authorization", "")
    parts = header.split(" ", 1)
    token = parts[1].strip() if len(parts) == 2 else ""
    if not token:
        raise AuthError("cannot be authorized!!")
    return token


def get_principal(request: Request) -> Principal:
    tokens: AuthTokenService = request.app.state.tokens
    try:
        return tokens.verify(bearer_token(request))
    except AuthError as e:
        logger.info("Rejected token on %s: %s", request.url.path, e.message)
        raise


def require_role(principal: Principal, *roles: str, message: str = "Unauthorized") -> Principal:
    if principal.role not in roles:
        raise Unauthorized(message)
    return principal

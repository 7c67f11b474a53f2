"""
JWT session tokens (PyJWT, HS256).

Access and refresh tokens share one payload shape. They are told apart two
ways: access tokens carry the audience ["user"] and refresh tokens carry none,
and every token states its kind explicitly in the "kind" claim.
"""
from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List, Tuple

import jwt

MIN_SECRET_KEY_SIZE = 32
ALGORITHM = "HS256"
ACCESS_AUDIENCE = "user"


class TokenKind(str, enum.Enum):
    ACCESS = "access"
    REFRESH = "refresh"


class TokenError(Exception):
    """Base class for every token verification failure."""


class TokenExpired(TokenError):
    def __init__(self, message: str = "token has expired"):
        super().__init__(message)


class TokenUnverifiable(TokenError):
    def __init__(self, message: str = "token is unverifiable"):
        super().__init__(message)


class InvalidToken(TokenError):
    def __init__(self, message: str = "token is invalid"):
        super().__init__(message)


@dataclass
class TokenPayload:
    id: str
    username: str
    issued_at: datetime
    expires_at: datetime
    kind: TokenKind
    audience: List[str] = field(default_factory=list)

    @classmethod
    def new(cls, username: str, duration: timedelta, kind: TokenKind) -> "TokenPayload":
        # JWT NumericDate has whole-second resolution
        now = datetime.now(timezone.utc).replace(microsecond=0)
        return cls(
            id=str(uuid.uuid4()),
            username=username,
            issued_at=now,
            expires_at=now + duration,
            kind=kind,
            audience=[ACCESS_AUDIENCE] if kind is TokenKind.ACCESS else [],
        )

    def to_claims(self) -> dict:
        claims = {
            "jti": self.id,
            "username": self.username,
            "iat": self.issued_at,
            "exp": self.expires_at,
            "kind": self.kind.value,
        }
        if self.audience:
            claims["aud"] = list(self.audience)
        return claims

    @classmethod
    def from_claims(cls, claims: dict) -> "TokenPayload":
        try:
            audience = claims.get("aud") or []
            if isinstance(audience, str):
                audience = [audience]
            return cls(
                id=str(uuid.UUID(str(claims["jti"]))),
                username=claims["username"],
                issued_at=datetime.fromtimestamp(claims["iat"], tz=timezone.utc),
                expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
                kind=TokenKind(claims["kind"]),
                audience=list(audience),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidToken(f"invalid token: cannot convert payload ({exc})") from exc

    def is_access_token(self) -> bool:
        """A token without audience must never authorize resource access."""
        return bool(self.audience) and self.kind is TokenKind.ACCESS

    def is_refresh_token(self) -> bool:
        return not self.audience and self.kind is TokenKind.REFRESH


class JWTBuilder:
    """Creates and verifies HS256 tokens signed with a symmetric secret."""

    def __init__(self, secret_key: str):
        if not secret_key or len(secret_key) < MIN_SECRET_KEY_SIZE:
            raise ValueError(f"invalid secret key size: must be at least {MIN_SECRET_KEY_SIZE} characters")
        self._secret_key = secret_key

    def create_token(
        self, username: str, duration: timedelta, kind: TokenKind = TokenKind.ACCESS
    ) -> Tuple[str, TokenPayload]:
        payload = TokenPayload.new(username, duration, kind)
        token = jwt.encode(payload.to_claims(), self._secret_key, algorithm=ALGORITHM)
        return token, payload

    def verify_token(self, token: str) -> TokenPayload:
        """
        Decode and validate a token.
        The header algorithm is checked before the signature so a token that
        names "none" or an asymmetric algorithm never reaches the HMAC check.
        """
        try:
            header = jwt.get_unverified_header(token)
        except jwt.InvalidTokenError as exc:
            raise InvalidToken(f"invalid token: {exc}") from exc

        alg = str(header.get("alg", ""))
        if not alg.upper().startswith("HS"):
            raise TokenUnverifiable()

        try:
            claims = jwt.decode(
                token,
                self._secret_key,
                algorithms=[ALGORITHM],
                options={"require": ["jti", "iat", "exp"], "verify_aud": False},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpired() from exc
        except jwt.InvalidTokenError as exc:
            raise InvalidToken(f"invalid token: {exc}") from exc

        return TokenPayload.from_claims(claims)

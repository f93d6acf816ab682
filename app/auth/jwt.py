"""Access tokens for planner users.

Tokens are HS256 JWTs whose ``sub`` is the user's UUID.  There is no
refresh flow: clients log in again once ``exp`` passes.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from jose import ExpiredSignatureError, JWTError, jwt

from app.config import get_settings

ACCESS_TOKEN_TYPE = "access"


@dataclass(slots=True)
class AuthError(Exception):
	"""Carries the ``error`` code and message rendered in 401 bodies."""

	code: str
	detail: str
	status_code: int = 401


@dataclass(frozen=True, slots=True)
class AccessClaims:
	user_id: uuid.UUID
	issued_at: datetime
	expires_at: datetime


def create_access_token(user_id: uuid.UUID, expires_minutes: int | None = None) -> str:
	settings = get_settings()
	issued = datetime.now(UTC)
	expires = issued + timedelta(minutes=expires_minutes or settings.jwt_access_token_expire_minutes)
	claims = {
		"sub": str(user_id),
		"typ": ACCESS_TOKEN_TYPE,
		"iat": int(issued.timestamp()),
		"exp": int(expires.timestamp()),
	}
	return jwt.encode(claims, settings.jwt_secret.get_secret_value(), algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> AccessClaims:
	"""Verify signature, type and expiry; return the parsed claims."""
	settings = get_settings()
	try:
		payload = jwt.decode(token, settings.jwt_secret.get_secret_value(), algorithms=[settings.jwt_algorithm])
	except ExpiredSignatureError as exc:
		raise AuthError(code="token_expired", detail="Authentication token has expired") from exc
	except JWTError as exc:
		raise AuthError(code="token_invalid", detail="Invalid authentication token") from exc

	if payload.get("typ") != ACCESS_TOKEN_TYPE:
		raise AuthError(code="token_type_invalid", detail="Expected access token")

	try:
		user_id = uuid.UUID(str(payload["sub"]))
		issued_at = datetime.fromtimestamp(int(payload["iat"]), UTC)
		expires_at = datetime.fromtimestamp(int(payload["exp"]), UTC)
	except (KeyError, TypeError, ValueError) as exc:
		raise AuthError(code="token_invalid", detail="Token claims are malformed") from exc

	return AccessClaims(user_id=user_id, issued_at=issued_at, expires_at=expires_at)


def peek_subject(token: str) -> str | None:
	"""Unverified ``sub`` claim, for keying rate limits before auth runs."""
	try:
		subject = jwt.get_unverified_claims(token).get("sub")
	except JWTError:
		return None
	return subject if isinstance(subject, str) and subject else None

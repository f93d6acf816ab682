"""Authentication dependencies — get_current_user, password hashing, request hints."""

from __future__ import annotations

import re
import uuid

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.jwt import AuthError, decode_access_token, peek_subject
from app.database import get_db
from app.models.user import User

bearer_scheme = HTTPBearer(auto_error=False)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

_FIELD_PATH = re.compile(r"/api/v1/fields/([0-9a-fA-F\-]{36})(?:/|$)")


def hash_password(plaintext: str) -> str:
	return pwd_context.hash(plaintext)


def verify_password(plaintext: str, hashed: str) -> bool:
	try:
		return pwd_context.verify(plaintext, hashed)
	except ValueError:
		return False


def raise_auth(exc: AuthError) -> HTTPException:
	return HTTPException(
		status_code=exc.status_code,
		detail={"error": exc.code, "message": exc.detail},
	)


def extract_request_field_id(request: Request) -> uuid.UUID | None:
	token = request.path_params.get("field_id")
	if token is None:
		match = _FIELD_PATH.search(request.url.path)
		if match is None:
			return None
		token = match.group(1)
	try:
		return uuid.UUID(str(token))
	except ValueError:
		return None


def extract_identity_hint(request: Request) -> str:
	"""User id from the bearer token when one is present, else the client address."""
	scheme, _, token = request.headers.get("authorization", "").partition(" ")
	if scheme.lower() == "bearer" and token:
		subject = peek_subject(token.strip())
		if subject is not None:
			return f"user:{subject}"
	client = request.client.host if request.client else "unknown"
	return f"ip:{client}"


async def _resolve_user_from_token(
	db: AsyncSession,
	credentials: HTTPAuthorizationCredentials | None,
) -> User:
	if credentials is None or credentials.scheme.lower() != "bearer":
		raise raise_auth(AuthError(code="auth_required", detail="Bearer token is required"))

	try:
		claims = decode_access_token(credentials.credentials)
	except AuthError as exc:
		raise raise_auth(exc) from exc

	row = await db.execute(select(User).where(User.id == claims.user_id))
	user = row.scalar_one_or_none()
	if user is None or not user.is_active:
		raise raise_auth(AuthError(code="user_invalid", detail="User is not active"))
	return user


async def get_current_user(
	request: Request,
	db: AsyncSession = Depends(get_db),
) -> User:
	credentials = await bearer_scheme(request)
	return await _resolve_user_from_token(db, credentials)

"""Registration and login."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import hash_password, verify_password
from app.auth.jwt import AuthError, create_access_token
from app.models.user import User
from app.schemas.auth import LoginRequest, RegisterRequest, TokenResponse


class AuthService:
	def __init__(self, db: AsyncSession):
		self.db = db

	async def register(self, payload: RegisterRequest) -> TokenResponse:
		email = payload.email.strip().lower()
		row = await self.db.execute(select(User).where(User.email == email))
		if row.scalar_one_or_none() is not None:
			raise ValueError("email is already registered")

		user = User(
			email=email,
			hashed_password=hash_password(payload.password),
			name=payload.name.strip(),
		)
		self.db.add(user)
		await self.db.flush()
		await self.db.refresh(user)
		return TokenResponse(access_token=create_access_token(user.id), user_id=user.id)

	async def login(self, payload: LoginRequest) -> TokenResponse:
		row = await self.db.execute(select(User).where(User.email == payload.email.strip().lower()))
		user = row.scalar_one_or_none()
		if user is None or not user.is_active or not verify_password(payload.password, user.hashed_password):
			raise AuthError(code="credentials_invalid", detail="Invalid email or password")
		return TokenResponse(access_token=create_access_token(user.id), user_id=user.id)

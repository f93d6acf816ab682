"""Pydantic schemas for registration and login."""

from __future__ import annotations

import uuid

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
	email: str = Field(min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$")
	password: str = Field(min_length=8, max_length=128)
	name: str = Field(min_length=1, max_length=255)


class LoginRequest(BaseModel):
	email: str = Field(min_length=3, max_length=320)
	password: str = Field(min_length=1, max_length=128)


class TokenResponse(BaseModel):
	access_token: str
	token_type: str = "bearer"
	user_id: uuid.UUID

"""Pydantic v2 schemas for admin login."""

from __future__ import annotations

from pydantic import BaseModel


class LoginRequest(BaseModel):
    """Body of POST /api/auth/login. Blank values are rejected in the router."""

    username: str = ""
    password: str = ""


class UserOut(BaseModel):
    id: int
    username: str


class LoginResponse(BaseModel):
    token: str
    user: UserOut

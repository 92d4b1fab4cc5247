# app/auth/auth_utils.py
from jose import jwt, JWTError
from fastapi import Header, HTTPException
from typing import Optional
import os

SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-secret-change-me")  # Shared with the auth service
ALGORITHM = "HS256"


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")


def _bearer(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    return authorization.split(" ", 1)[1].strip() or None


def verify_token(authorization: str = Header(None)) -> dict:
    token = _bearer(authorization)
    if not token:
        raise HTTPException(status_code=401, detail="Token is required")

    payload = decode_token(token)
    if not payload.get("id"):
        raise HTTPException(status_code=401, detail="Invalid token")
    return payload  # Contains id, username and role


def verify_optional_token(authorization: str = Header(None)) -> Optional[dict]:
    """Like verify_token, but anonymous callers get None instead of a 401"""
    if not authorization:
        return None
    return verify_token(authorization)


def create_token(user_id: str, username: Optional[str] = None, role: str = "user") -> str:
    """Issue a token in the auth service's format (used by tooling and tests)"""
    return jwt.encode({"id": user_id, "username": username, "role": role}, SECRET_KEY, algorithm=ALGORITHM)

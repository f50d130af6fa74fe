"""
JWT Authentication utilities for the task manager.

Provides token generation and validation for stateless bearer
authentication compatible with AWS Lambda. The user id carried in
`sub` is an opaque string issued by the identity provider.
"""
import os
import jwt
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
from django.conf import settings


JWT_ALGORITHM = 'HS256'
ACCESS_TOKEN_EXPIRE_MINUTES = 60


def get_jwt_secret() -> str:
    return os.getenv('JWT_SECRET') or settings.SECRET_KEY


@dataclass(frozen=True)
class RequestIdentity:
    """The authenticated caller, as seen by the task endpoints."""
    user_id: str
    name: str


def create_access_token(
    user_id: str,
    name: str = "",
    expires_in: timedelta = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
) -> str:
    """
    Create an access token.

    Contains user_id and display name. Used by local tooling and tests;
    production tokens come from the identity provider.
    """
    now = datetime.now(timezone.utc)
    payload = {
        'sub': user_id,
        'name': name,
        'exp': now + expires_in,
        'iat': now,
        'type': 'access'
    }
    return jwt.encode(payload, get_jwt_secret(), algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """
    Decode and validate a JWT token.

    Returns:
        Decoded payload if valid, None if invalid/expired.
    """
    try:
        return jwt.decode(token, get_jwt_secret(), algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


def get_identity_from_token(token: str) -> Optional[RequestIdentity]:
    """
    Extract the caller identity from a valid access token.

    Returns:
        RequestIdentity if token valid, None otherwise.
    """
    payload = decode_token(token)
    if not payload or payload.get('type') != 'access':
        return None

    user_id = payload.get('sub')
    if not user_id or not isinstance(user_id, str):
        return None

    return RequestIdentity(user_id=user_id, name=payload.get('name') or user_id)

# app/api/deps.py
from functools import lru_cache

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.data.database import get_db
from app.data.models.user import UserModel
from app.domain.errors import AuthenticationFailed
from app.services.lock_service import LockService
from app.services.user_service import UserService
from app.utils.security import decode_access_token

#auto_error off: we raise our own error so the envelope stays the same
bearer_scheme = HTTPBearer(auto_error=False)


@lru_cache
def get_lock_service() -> LockService:
    return LockService()


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> UserModel:
    if credentials is None:
        raise AuthenticationFailed("No token provided")

    try:
        payload = decode_access_token(credentials.credentials)
    except jwt.PyJWTError:
        raise AuthenticationFailed("Invalid token")

    email = payload.get("email")
    if not email:
        raise AuthenticationFailed("Invalid token payload")

    return UserService(db).get_user_by_email(email)

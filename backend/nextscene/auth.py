import os
import re
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Request, Response
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from .database import get_db
from .errors import Forbidden, Unauthorized
from . import models

SECURE_COOKIES = os.getenv("SECURE_COOKIES", "false").lower() == "true"
SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev_secret_key_change_me")
ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("JWT_ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))
ENFORCE_PASSWORD_POLICY = os.getenv("ENFORCE_PASSWORD_POLICY", "false").lower() == "true"
ADMIN_AUTH_REQUIRED = os.getenv("ADMIN_AUTH_REQUIRED", "false").lower() == "true"

COOKIE_NAME = "access_token"

pwd_context = CryptContext(
    schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS
)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def password_policy_error(password: str) -> Optional[str]:
    """Return why ``password`` fails the policy, or None when it passes."""
    if len(password) < 8:
        return "Password must be at least 8 characters"
    if not re.match(r"^[A-Z]", password):
        return "Password must begin with an uppercase letter"
    if not re.search(r"[^A-Za-z0-9]", password):
        return "Password must include at least one special character"
    return None


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def set_auth_cookie(response: Response, token: str) -> None:
    max_age = ACCESS_TOKEN_EXPIRE_MINUTES * 60
    response.set_cookie(
        key=COOKIE_NAME,
        value=token,
        httponly=True,
        max_age=max_age,
        expires=max_age,
        samesite="lax",
        secure=SECURE_COOKIES,
        path="/",
    )


def clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(key=COOKIE_NAME, path="/")


def issue_session(response: Response, user: models.User) -> None:
    token = create_access_token({"sub": user.id, "role": user.role})
    set_auth_cookie(response, token)


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
) -> models.User:
    token = request.cookies.get(COOKIE_NAME)
    if not token:
        raise Unauthorized("Not authenticated")

    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        user_id = payload.get("sub")
        if user_id is None:
            raise JWTError()
    except JWTError:
        raise Unauthorized("Invalid or expired token")

    user = db.get(models.User, user_id)
    if not user:
        raise Unauthorized("User not found")
    return user


def require_admin(
    request: Request,
    db: Session = Depends(get_db),
) -> Optional[models.User]:
    """Gate for the admin routes.

    The admin API has historically been open and relies on the client hiding
    admin screens. Setting ``ADMIN_AUTH_REQUIRED=true`` makes it check the
    session cookie and the stored role instead.
    """
    if not ADMIN_AUTH_REQUIRED:
        return None
    user = get_current_user(request, db)
    if user.role != "admin":
        raise Forbidden("Admin access required")
    return user

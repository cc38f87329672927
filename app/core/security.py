# app/core/security.py
from datetime import datetime, timedelta, timezone
from typing import Optional
import logging

from fastapi import Depends, HTTPException, status, Request
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES
from app.models.enum import UserRole

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token")


# --- Password Functions ---
def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


# --- Token Function ---
def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


# --- Current user ---
async def get_current_user(
    request: Request,
    token: str = Depends(oauth2_scheme)
):
    """
    Resolves the account for the bearer token. Uses the user id stored on the
    request state by AuthMiddleware and falls back to decoding the token.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    user_id: Optional[str] = getattr(request.state, "user_id", None)

    if not user_id:
        logger.debug("User id not found in request state, decoding token in dependency.")
        try:
            payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
            user_id = payload.get("sub")
        except JWTError:
            logger.warning("Token decode failed in get_current_user dependency.")
            raise credentials_exception

    if not user_id:
        raise credentials_exception

    account = request.app.state.repository.get_account(user_id)
    if account is None:
        logger.warning(f"Account '{user_id}' not found.")
        raise credentials_exception
    return account


# --- Role Checking Dependencies ---
def require_role(required_role: UserRole):
    """Factory for a dependency that checks the current account's role tag."""
    async def role_checker(current_user=Depends(get_current_user)):
        if current_user.role != required_role:
            logger.warning(
                f"Forbidden: '{current_user.user_id}' with role '{current_user.role.value}' "
                f"attempted action requiring role '{required_role.value}'."
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Operation not permitted. Required role: {required_role.value}"
            )
        return current_user
    return role_checker

require_admin = require_role(UserRole.ADMIN)
require_student = require_role(UserRole.STUDENT)

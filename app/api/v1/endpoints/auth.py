# app/api/v1/endpoints/auth.py
from datetime import timedelta
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from loguru import logger

from app.api.deps import get_account_service
from app.core.config import ACCESS_TOKEN_EXPIRE_MINUTES
from app.core.rate_limiter import limiter
from app.core.security import create_access_token, get_current_user
from app.models.token import Token
from app.models.user import AccountResponse, StudentRegister
from app.services.accounts import AccountService

router = APIRouter(tags=["Authentication"])


# --- Endpoint /token ---
@router.post("/token", response_model=Token)
@limiter.limit("20/minute")
async def login_for_access_token(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    accounts: AccountService = Depends(get_account_service),
):
    """Log in with ID / card ID and password."""
    account = accounts.find_account(form_data.username, form_data.password)
    if account is None:
        logger.warning(f"Login failed for '{form_data.username}'.")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid Credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = create_access_token(
        data={"sub": account.user_id, "role": account.role.value},
        expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    logger.info(f"'{account.user_id}' logged in as {account.role.value}.")
    return {"access_token": access_token, "token_type": "bearer", "role": account.role.value}


# --- Endpoint /register ---
@router.post("/register", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
async def register_student(
    request: Request,
    user_in: StudentRegister,
    accounts: AccountService = Depends(get_account_service),
):
    student = accounts.register_student(user_in)
    return AccountResponse.model_validate(student)


# --- Endpoint /users/me ---
@router.get("/users/me", response_model=AccountResponse)
async def read_users_me(current_user=Depends(get_current_user)):
    return AccountResponse.model_validate(current_user)

"""Authentication routes."""

import logging

from fastapi import APIRouter, Request, status

from havens.core.rate_limit import limiter
from havens.core.rbac import CurrentUser
from havens.core.security import create_access_token
from havens.schemas.auth import LoginRequest, RegisterRequest, Token
from havens.schemas.user import UserResponse
from havens.services.accounts import AccountService
from havens.services.store import Store

logger = logging.getLogger("auth")

router = APIRouter()


def _token_for(user) -> Token:
    token = create_access_token(
        data={"sub": str(user.id), "email": user.email, "role": user.role.value}
    )
    return Token(access_token=token)


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
@limiter.limit("5/minute")
def register(request: Request, body: RegisterRequest, store: Store):
    """Create a customer account and sign it in."""
    user = AccountService(store).register_customer(
        name=body.name,
        phone=body.phone,
        email=body.email,
        password=body.password,
        address=body.address,
    )
    return _token_for(user)


@router.post("/login", response_model=Token)
@limiter.limit("5/minute")
def login(request: Request, body: LoginRequest, store: Store):
    """Customer login."""
    client_ip = request.client.host if request.client else "unknown"
    user = AccountService(store).authenticate(body.email, body.password, staff=False)
    logger.info(f"Customer login {user.email} from IP: {client_ip}")
    return _token_for(user)


@router.post("/staff/login", response_model=Token)
@limiter.limit("5/minute")
def staff_login(request: Request, body: LoginRequest, store: Store):
    """Back-office login for staff roles."""
    client_ip = request.client.host if request.client else "unknown"
    user = AccountService(store).authenticate(body.email, body.password, staff=True)
    logger.info(f"Staff login {user.email} ({user.role.value}) from IP: {client_ip}")
    return _token_for(user)


@router.get("/me", response_model=UserResponse)
def me(current_user: CurrentUser):
    return current_user

"""Login, token refresh and registration endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from taskify.api.dependencies import get_token_service
from taskify.core.database import get_db
from taskify.schemas.auth import (
    LoginRequest,
    MessageResponse,
    RefreshRequest,
    RegisterRequest,
    TokenPairResponse,
)
from taskify.services.credentials import authenticate_user, register_user
from taskify.services.tokens import TokenPair, TokenService

logger = logging.getLogger(__name__)
router = APIRouter()


def _pair_response(pair: TokenPair) -> TokenPairResponse:
    return TokenPairResponse(
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
        expires_in=pair.expires_in,
    )


@router.post("/register", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Create an account with the default 'user' role. 409 if username or email is taken."""
    register_user(db, body.username.strip(), body.email.strip().lower(), body.password)
    return MessageResponse(message="user created successfully")


@router.post("/login", response_model=TokenPairResponse)
def login(
    body: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
    token_service: Annotated[TokenService, Depends(get_token_service)],
) -> TokenPairResponse:
    """
    Authenticate with username and password; returns an access/refresh token pair.
    Include the access token in the Authorization header as: Bearer <access_token>
    """
    user = authenticate_user(db, body.username.strip(), body.password)
    return _pair_response(token_service.issue_tokens(db, user))


@router.post("/refresh", response_model=TokenPairResponse)
def refresh(
    body: RefreshRequest,
    db: Annotated[Session, Depends(get_db)],
    token_service: Annotated[TokenService, Depends(get_token_service)],
) -> TokenPairResponse:
    """
    Redeem a refresh token for a new pair. The submitted refresh token is
    consumed: presenting it again fails with 401.
    """
    return _pair_response(token_service.refresh_tokens(db, body.refresh_token))

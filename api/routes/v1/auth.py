"""
api/routes/v1/auth.py -- Account registration and login endpoints.

Routes:
  POST /api/v1/register         -- create account; 201 + bearer token
  POST /api/v1/login            -- email/password login; 200 + bearer token
  POST /api/v1/federated-login  -- Google ID-token login; 200 + bearer token
  GET  /api/v1/me               -- current user info (requires auth)

All three token-issuing routes delegate to the AuthGateway on app.state.auth
and return the same projection: {id, username, email, token} (plus avatar
for Google login). Failures are AppError subclasses raised by the gateway;
the handler in api/main.py renders them.

Security:
  [C1] login() never distinguishes unknown email from wrong password.
  [M5] Cache-Control: no-store on every response that carries a token.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from api.models import (
    AuthResponse,
    FederatedAuthResponse,
    FederatedLoginRequest,
    LoginRequest,
    MeResponse,
    RegisterRequest,
)
from auth.dependencies import get_current_user
from auth.models import User
from auth.service import AuthGateway

# Auth policy:
# - POST /api/v1/register:         public
# - POST /api/v1/login:            public
# - POST /api/v1/federated-login:  public
# - GET  /api/v1/me:               requires auth (get_current_user)
router = APIRouter()


def _no_store(response: Response) -> None:
    response.headers["Cache-Control"] = "no-store"  # [M5]


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(request: Request, body: RegisterRequest, response: Response) -> AuthResponse:
    """Create an account and return a bearer token for it."""
    gateway: AuthGateway = request.app.state.auth
    result = gateway.register(body.username, body.email, body.password, body.contact_number)
    _no_store(response)
    return AuthResponse.from_result(result)


@router.post("/login", response_model=AuthResponse)
def login(request: Request, body: LoginRequest, response: Response) -> AuthResponse:
    """Authenticate with email and password.

    Wrong password and unknown email both produce the same 401 body [C1].
    """
    gateway: AuthGateway = request.app.state.auth
    result = gateway.login(body.email, body.password)
    _no_store(response)
    return AuthResponse.from_result(result)


@router.post("/federated-login", response_model=FederatedAuthResponse)
def federated_login(request: Request, body: FederatedLoginRequest, response: Response) -> FederatedAuthResponse:
    """Exchange a Google ID token for a bearer token.

    The first login for a verified email creates the account; later logins
    reuse it.
    """
    gateway: AuthGateway = request.app.state.auth
    result = gateway.federated_login(body.external_token)
    _no_store(response)
    return FederatedAuthResponse.from_result(result)


@router.get("/me", response_model=MeResponse)
def me(current_user: User = Depends(get_current_user)) -> MeResponse:
    """Return identity information for the currently authenticated user."""
    return MeResponse.from_user(current_user)

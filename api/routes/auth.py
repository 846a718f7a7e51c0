"""
api/routes/auth.py -- Registration and login endpoints.

Routes:
  POST /auth/register  -- create a credential record; 200 text/plain
  POST /auth/login     -- verify credentials; 200 {"token": "<jwt>"}

Both are public. Handlers are plain `def` so bcrypt runs in FastAPI's
threadpool instead of blocking the event loop.

Errors (DuplicateUsername, AuthenticationFailed, StorageUnavailable) are not
caught here; the AuthError handler in api/main.py maps them to 409/401/503.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from api.models import AuthRequest, AuthResponse
from auth.service import AuthService

# Auth policy:
# - POST /auth/register: public -- registration creates the credential
# - POST /auth/login:    public -- login endpoint must be unauthenticated
router = APIRouter()

REGISTERED_MESSAGE = "User registered successfully"


@router.post("/auth/register", response_class=PlainTextResponse)
def register(request: Request, body: AuthRequest) -> PlainTextResponse:
    """Register a new username/password pair. Does not log the user in."""
    service: AuthService = request.app.state.auth_service
    service.register(body.username, body.password)
    return PlainTextResponse(REGISTERED_MESSAGE)


@router.post("/auth/login", response_model=AuthResponse)
def login(request: Request, body: AuthRequest) -> JSONResponse:
    """Exchange a username and password for a bearer token.

    Wrong username and wrong password both raise AuthenticationFailed with
    the same message, so the 401 body does not reveal which one it was.
    """
    service: AuthService = request.app.state.auth_service
    token = service.login(body.username, body.password)
    resp = JSONResponse(status_code=200, content=AuthResponse(token=token).model_dump())
    resp.headers["Cache-Control"] = "no-store"
    return resp

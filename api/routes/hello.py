"""
api/routes/hello.py -- Sample protected endpoints.

Both return a static string once get_current_claims() has accepted the
bearer token. They exist to demonstrate the token check end to end.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from auth.dependencies import get_current_claims

# Auth policy:
# - GET /hello, GET /Success: require a valid bearer token.
# Router-level dependency enforces auth; the handlers do not repeat it.
router = APIRouter(dependencies=[Depends(get_current_claims)])


@router.get("/hello", response_class=PlainTextResponse)
async def hello() -> str:
    return "Hello, authenticated user!"


@router.get("/Success", response_class=PlainTextResponse)
async def success() -> str:
    return "Hello, authenticated user Successfully!"

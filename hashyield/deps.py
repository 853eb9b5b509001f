"""Dependency helpers for router modules."""

from typing import Tuple

from fastapi import Cookie, Depends, Header, Query
from starlette.requests import Request

from hashyield.auth import Caller, require_admin, require_miner
from hashyield.errors import AuthenticationError

MAX_PAGE_SIZE = 100


def get_server(request: Request):
    return request.app.state.server


async def get_caller(
    request: Request,
    authorization: str = Header(default=""),
    x_api_key: str = Header(default=""),
    token: str = Cookie(default=""),
) -> Caller:
    srv = get_server(request)
    caller = await srv.auth.resolve_caller(authorization, x_api_key, token)
    if caller is None:
        raise AuthenticationError(
            "Missing or invalid credentials. Pass Authorization: Bearer <jwt>, "
            "the token cookie, or X-API-Key header."
        )
    return caller


async def get_admin(caller: Caller = Depends(get_caller)) -> Caller:
    return require_admin(caller)


async def get_miner(caller: Caller = Depends(get_caller)) -> Caller:
    return require_miner(caller)


def page_params(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=MAX_PAGE_SIZE),
) -> Tuple[int, int]:
    return page, limit

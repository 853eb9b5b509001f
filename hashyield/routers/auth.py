"""Auth router: /api/auth/* signup, login, logout and profile."""

from fastapi import APIRouter, Depends, Header
from starlette.requests import Request

from hashyield.auth import Caller
from hashyield.config import TOKEN_COOKIE
from hashyield.deps import get_caller, get_server
from hashyield.models import AdminSignupRequest, LoginRequest, SignupRequest
from hashyield.responses import created, success

router = APIRouter(prefix="/api/auth")


@router.post("/signup")
async def signup(request: Request, req: SignupRequest):
    srv = get_server(request)
    user, miner = await srv.auth.signup_miner(req.model_dump())
    return created({"user": user, "miner": miner}, "Miner account created")


@router.post("/admin/signup")
async def admin_signup(request: Request, req: AdminSignupRequest,
                       x_api_key: str = Header(default="")):
    srv = get_server(request)
    user = await srv.auth.signup_admin(req.model_dump(), x_api_key)
    return created({"user": user}, "Admin account created")


@router.post("/login")
async def login(request: Request, req: LoginRequest):
    srv = get_server(request)
    user, miner, token = await srv.auth.login(req.email, req.password)
    response = success({"token": token, "user": user, "miner": miner}, "Login successful")
    response.set_cookie(TOKEN_COOKIE, token, **srv.settings.cookie_options())
    return response


@router.post("/logout")
async def logout(request: Request):
    srv = get_server(request)
    options = srv.settings.cookie_options()
    response = success(message="Logged out")
    response.delete_cookie(
        TOKEN_COOKIE, path=options["path"], domain=options["domain"],
        secure=options["secure"], httponly=True, samesite=options["samesite"],
    )
    return response


@router.get("/me")
async def me(request: Request, caller: Caller = Depends(get_caller)):
    srv = get_server(request)
    return success(await srv.auth.profile(caller))

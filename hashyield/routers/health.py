"""Health router: /api/health."""

from fastapi import APIRouter
from starlette.requests import Request

from hashyield import __version__
from hashyield.deps import get_server
from hashyield.responses import success

router = APIRouter()


@router.get("/api/health")
async def health(request: Request):
    srv = get_server(request)
    return success(
        {"status": "ok", "version": __version__, "env": srv.settings.env},
        "Service is healthy",
    )

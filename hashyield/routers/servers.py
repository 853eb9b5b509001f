"""Mining server router: /api/servers/*."""

from fastapi import APIRouter, Depends
from starlette.requests import Request
from starlette.responses import Response

from hashyield.deps import get_admin, get_server
from hashyield.models import ServerCreateRequest, ServerUpdateRequest
from hashyield.responses import created, success

router = APIRouter(prefix="/api/servers")


@router.get("")
async def list_servers(request: Request, active_only: bool = False):
    srv = get_server(request)
    return success(await srv.servers.list(active_only=active_only))


@router.get("/with-contracts")
async def list_servers_with_contracts(request: Request):
    srv = get_server(request)
    return success(await srv.servers.list_with_contracts())


@router.get("/{server_id}")
async def get_server_by_id(request: Request, server_id: int):
    srv = get_server(request)
    return success(await srv.servers.get(server_id))


@router.post("", dependencies=[Depends(get_admin)])
async def create_server(request: Request, req: ServerCreateRequest):
    srv = get_server(request)
    return created(await srv.servers.create(req.model_dump()), "Mining server created")


@router.patch("/{server_id}", dependencies=[Depends(get_admin)])
async def update_server(request: Request, server_id: int, req: ServerUpdateRequest):
    srv = get_server(request)
    server = await srv.servers.update(server_id, req.model_dump(exclude_unset=True))
    return success(server, "Mining server updated")


@router.delete("/{server_id}", dependencies=[Depends(get_admin)])
async def deactivate_server(request: Request, server_id: int):
    srv = get_server(request)
    await srv.servers.deactivate(server_id)
    return Response(status_code=204)

"""Mining contract router: /api/contracts/*."""

from typing import Optional

from fastapi import APIRouter, Depends
from starlette.requests import Request
from starlette.responses import Response

from hashyield.deps import get_admin, get_server
from hashyield.models import ContractCreateRequest, ContractUpdateRequest
from hashyield.responses import created, success

router = APIRouter(prefix="/api/contracts")


@router.get("")
async def list_contracts(request: Request, server_id: Optional[int] = None,
                         period: Optional[str] = None, active_only: bool = False):
    srv = get_server(request)
    return success(await srv.contracts.list(server_id=server_id, period=period,
                                            active_only=active_only))


@router.get("/server/{server_id}")
async def list_contracts_for_server(request: Request, server_id: int):
    srv = get_server(request)
    return success(await srv.contracts.list(server_id=server_id))


@router.get("/period/{period}")
async def list_contracts_for_period(request: Request, period: str):
    srv = get_server(request)
    return success(await srv.contracts.list(period=period))


@router.get("/{contract_id}")
async def get_contract(request: Request, contract_id: int):
    srv = get_server(request)
    return success(await srv.contracts.get(contract_id))


@router.post("", dependencies=[Depends(get_admin)])
async def create_contract(request: Request, req: ContractCreateRequest):
    srv = get_server(request)
    contract = await srv.contracts.create(req.mining_server_id, req.period_return, req.period)
    return created(contract, "Mining contract created")


@router.patch("/{contract_id}", dependencies=[Depends(get_admin)])
async def update_contract(request: Request, contract_id: int, req: ContractUpdateRequest):
    srv = get_server(request)
    contract = await srv.contracts.update(contract_id, req.model_dump(exclude_unset=True))
    return success(contract, "Mining contract updated")


@router.delete("/{contract_id}", dependencies=[Depends(get_admin)])
async def deactivate_contract(request: Request, contract_id: int):
    srv = get_server(request)
    await srv.contracts.deactivate(contract_id)
    return Response(status_code=204)

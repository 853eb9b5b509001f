"""Bank router: /api/banks/*."""

from fastapi import APIRouter, Depends
from starlette.requests import Request
from starlette.responses import Response

from hashyield.deps import get_admin, get_caller, get_server
from hashyield.models import BankCreateRequest, BankUpdateRequest
from hashyield.responses import created, success

router = APIRouter(prefix="/api/banks")


@router.get("", dependencies=[Depends(get_admin)])
async def list_banks(request: Request):
    srv = get_server(request)
    return success(await srv.banks.list())


@router.get("/active", dependencies=[Depends(get_caller)])
async def list_active_banks(request: Request):
    srv = get_server(request)
    return success(await srv.banks.list(active_only=True))


@router.get("/{bank_id}", dependencies=[Depends(get_caller)])
async def get_bank(request: Request, bank_id: int):
    srv = get_server(request)
    return success(await srv.banks.get(bank_id))


@router.post("", dependencies=[Depends(get_admin)])
async def create_bank(request: Request, req: BankCreateRequest):
    srv = get_server(request)
    return created(await srv.banks.create(req.model_dump()), "Bank created")


@router.patch("/{bank_id}", dependencies=[Depends(get_admin)])
async def update_bank(request: Request, bank_id: int, req: BankUpdateRequest):
    srv = get_server(request)
    bank = await srv.banks.update(bank_id, req.model_dump(exclude_unset=True))
    return success(bank, "Bank updated")


@router.delete("/{bank_id}", dependencies=[Depends(get_admin)])
async def delete_bank(request: Request, bank_id: int):
    srv = get_server(request)
    await srv.banks.delete(bank_id)
    return Response(status_code=204)

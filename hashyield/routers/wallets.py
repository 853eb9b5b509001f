"""Admin wallet router: /api/wallets/*."""

from fastapi import APIRouter, Depends
from starlette.requests import Request
from starlette.responses import Response

from hashyield.deps import get_admin, get_caller, get_server
from hashyield.models import WalletCreateRequest, WalletUpdateRequest
from hashyield.responses import created, success

router = APIRouter(prefix="/api/wallets")


@router.get("", dependencies=[Depends(get_admin)])
async def list_wallets(request: Request):
    srv = get_server(request)
    return success(await srv.wallets.list())


@router.get("/active", dependencies=[Depends(get_caller)])
async def list_active_wallets(request: Request):
    srv = get_server(request)
    return success(await srv.wallets.list(active_only=True))


@router.get("/{wallet_id}", dependencies=[Depends(get_caller)])
async def get_wallet(request: Request, wallet_id: int):
    srv = get_server(request)
    return success(await srv.wallets.get(wallet_id))


@router.post("", dependencies=[Depends(get_admin)])
async def create_wallet(request: Request, req: WalletCreateRequest):
    srv = get_server(request)
    return created(await srv.wallets.create(req.model_dump()), "Wallet created")


@router.patch("/{wallet_id}", dependencies=[Depends(get_admin)])
async def update_wallet(request: Request, wallet_id: int, req: WalletUpdateRequest):
    srv = get_server(request)
    wallet = await srv.wallets.update(wallet_id, req.model_dump(exclude_unset=True))
    return success(wallet, "Wallet updated")


@router.delete("/{wallet_id}", dependencies=[Depends(get_admin)])
async def delete_wallet(request: Request, wallet_id: int):
    srv = get_server(request)
    await srv.wallets.delete(wallet_id)
    return Response(status_code=204)

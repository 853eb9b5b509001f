"""KYC fee router: /api/kyc-fees/*."""

from typing import Optional

from fastapi import APIRouter, Depends
from starlette.requests import Request

from hashyield.auth import Caller
from hashyield.deps import get_admin, get_caller, get_server
from hashyield.responses import success

router = APIRouter(prefix="/api/kyc-fees")


@router.get("", dependencies=[Depends(get_admin)])
async def list_fees(request: Request, miner_id: Optional[int] = None,
                    is_paid: Optional[bool] = None):
    srv = get_server(request)
    return success(await srv.kyc.list_fees(miner_id=miner_id, is_paid=is_paid))


@router.get("/paid", dependencies=[Depends(get_admin)])
async def list_paid(request: Request):
    srv = get_server(request)
    return success(await srv.kyc.list_fees(is_paid=True))


@router.get("/unpaid", dependencies=[Depends(get_admin)])
async def list_unpaid(request: Request):
    srv = get_server(request)
    return success(await srv.kyc.list_fees(is_paid=False))


@router.get("/stats", dependencies=[Depends(get_admin)])
async def fee_stats(request: Request):
    srv = get_server(request)
    return success(await srv.kyc.fee_stats())


@router.get("/miner/{miner_id}")
async def fees_for_miner(request: Request, miner_id: int, caller: Caller = Depends(get_caller)):
    srv = get_server(request)
    return success(await srv.kyc.fees_for_miner(caller, miner_id))


@router.get("/{fee_id}")
async def get_fee(request: Request, fee_id: int, caller: Caller = Depends(get_caller)):
    srv = get_server(request)
    return success(await srv.kyc.get_fee(caller, fee_id))


@router.patch("/{fee_id}/pay")
async def mark_paid(request: Request, fee_id: int, caller: Caller = Depends(get_admin)):
    srv = get_server(request)
    return success(await srv.kyc.mark_fee_paid(caller, fee_id), "KYC fee marked paid")

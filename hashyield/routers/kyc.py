"""KYC router: /api/kyc/*."""

from typing import Optional

from fastapi import APIRouter, Depends
from starlette.requests import Request

from hashyield.auth import Caller
from hashyield.deps import get_admin, get_caller, get_miner, get_server
from hashyield.models import KYCReviewRequest, KYCSubmitRequest
from hashyield.responses import created, success

router = APIRouter(prefix="/api/kyc")


@router.post("")
async def submit_kyc(request: Request, req: KYCSubmitRequest, caller: Caller = Depends(get_miner)):
    srv = get_server(request)
    kyc, fee = await srv.kyc.submit(caller, req.id_card)
    return created({"kyc": kyc, "fee": fee}, "KYC submitted")


@router.get("", dependencies=[Depends(get_admin)])
async def list_kyc(request: Request, status: Optional[str] = None):
    srv = get_server(request)
    return success(await srv.kyc.list(status=status))


@router.get("/stats", dependencies=[Depends(get_admin)])
async def kyc_stats(request: Request):
    srv = get_server(request)
    return success(await srv.kyc.stats())


@router.get("/miner/{miner_id}")
async def get_for_miner(request: Request, miner_id: int, caller: Caller = Depends(get_caller)):
    srv = get_server(request)
    return success(await srv.kyc.get_for_miner(caller, miner_id))


@router.get("/{kyc_id}")
async def get_kyc(request: Request, kyc_id: int, caller: Caller = Depends(get_caller)):
    srv = get_server(request)
    return success(await srv.kyc.get(caller, kyc_id))


@router.patch("/{kyc_id}/status")
async def review_kyc(request: Request, kyc_id: int, req: KYCReviewRequest,
                     caller: Caller = Depends(get_admin)):
    srv = get_server(request)
    kyc = await srv.kyc.review(caller, kyc_id, req.status, req.rejection_reason)
    return success(kyc, "KYC status updated")

"""Withdrawal router: /api/withdrawals/*."""

from typing import Optional, Tuple

from fastapi import APIRouter, Depends
from starlette.requests import Request

from hashyield.auth import Caller
from hashyield.deps import get_admin, get_caller, get_server, page_params
from hashyield.models import WithdrawalCreateRequest, WithdrawalStatusRequest
from hashyield.responses import created, paginated, success

router = APIRouter(prefix="/api/withdrawals")


@router.post("")
async def create_withdrawal(request: Request, req: WithdrawalCreateRequest,
                            caller: Caller = Depends(get_caller)):
    srv = get_server(request)
    withdrawal = await srv.withdrawals.create(
        caller, req.subscription_id, req.amount, req.type,
        destination=req.destination, currency=req.currency,
    )
    return created(withdrawal, "Withdrawal request submitted")


@router.get("", dependencies=[Depends(get_admin)])
async def list_withdrawals(request: Request, status: Optional[str] = None,
                           paging: Tuple[int, int] = Depends(page_params)):
    srv = get_server(request)
    page, limit = paging
    items, total = await srv.withdrawals.list(status=status, limit=limit,
                                              offset=(page - 1) * limit)
    return paginated(items, total, page, limit)


@router.get("/stats", dependencies=[Depends(get_admin)])
async def withdrawal_stats(request: Request):
    srv = get_server(request)
    return success(await srv.withdrawals.stats())


@router.get("/miner/{miner_id}")
async def list_for_miner(request: Request, miner_id: int, status: Optional[str] = None,
                         caller: Caller = Depends(get_caller)):
    srv = get_server(request)
    return success(await srv.withdrawals.list_for_miner(caller, miner_id, status))


@router.get("/{withdrawal_id}")
async def get_withdrawal(request: Request, withdrawal_id: int,
                         caller: Caller = Depends(get_caller)):
    srv = get_server(request)
    return success(await srv.withdrawals.get(caller, withdrawal_id))


@router.patch("/admin/{withdrawal_id}/status")
async def update_withdrawal_status(request: Request, withdrawal_id: int,
                                   req: WithdrawalStatusRequest,
                                   caller: Caller = Depends(get_admin)):
    srv = get_server(request)
    withdrawal = await srv.withdrawals.update_status(
        caller, withdrawal_id, req.status,
        rejection_reason=req.rejection_reason, transaction_hash=req.transaction_hash,
    )
    return success(withdrawal, f"Withdrawal {withdrawal.status}")


@router.post("/{withdrawal_id}/cancel")
async def cancel_withdrawal(request: Request, withdrawal_id: int,
                            caller: Caller = Depends(get_caller)):
    srv = get_server(request)
    withdrawal = await srv.withdrawals.cancel(caller, withdrawal_id)
    return success(withdrawal, "Withdrawal cancelled")

"""Subscription router: /api/subscriptions/* including ledger mutations and accrual."""

from typing import Optional, Tuple

from fastapi import APIRouter, Depends, Query
from starlette.requests import Request

from hashyield.auth import Caller
from hashyield.deps import get_admin, get_caller, get_miner, get_server, page_params
from hashyield.ledger import MAX_ACCRUAL_DAYS
from hashyield.models import (
    AccrueRequest,
    DepositUpdateRequest,
    EarningsUpdateRequest,
    SubscribeRequest,
)
from hashyield.responses import created, paginated, success

router = APIRouter(prefix="/api/subscriptions")


@router.post("")
async def subscribe(request: Request, req: SubscribeRequest, caller: Caller = Depends(get_caller)):
    srv = get_server(request)
    sub, transaction_id = await srv.subscriptions.subscribe(
        caller, req.mining_contract_id, req.amount, req.currency,
        auto_accrue=req.auto_accrue, miner_id=req.miner_id,
    )
    return created(
        {"subscription": sub, "transaction_id": transaction_id},
        "Subscription created; awaiting payment confirmation",
    )


@router.get("", dependencies=[Depends(get_admin)])
async def list_subscriptions(request: Request, status: Optional[str] = None,
                             paging: Tuple[int, int] = Depends(page_params)):
    srv = get_server(request)
    page, limit = paging
    items, total = await srv.subscriptions.list(status=status, limit=limit,
                                                offset=(page - 1) * limit)
    return paginated(items, total, page, limit)


@router.get("/dashboard")
async def my_dashboard(request: Request, caller: Caller = Depends(get_miner)):
    srv = get_server(request)
    return success(await srv.subscriptions.dashboard(caller))


@router.post("/process-earnings", dependencies=[Depends(get_admin)])
async def process_earnings(request: Request, req: AccrueRequest):
    srv = get_server(request)
    result = await srv.ledger.process_due_earnings(req.days)
    return success(result, "Earnings processed")


@router.get("/miner/{miner_id}")
async def list_for_miner(request: Request, miner_id: int, caller: Caller = Depends(get_caller)):
    srv = get_server(request)
    return success(await srv.subscriptions.list_for_miner(caller, miner_id))


@router.get("/miner/{miner_id}/dashboard")
async def miner_dashboard(request: Request, miner_id: int, caller: Caller = Depends(get_caller)):
    srv = get_server(request)
    return success(await srv.subscriptions.dashboard(caller, miner_id))


@router.get("/{subscription_id}")
async def get_subscription(request: Request, subscription_id: int,
                           caller: Caller = Depends(get_caller)):
    srv = get_server(request)
    return success(await srv.subscriptions.get(caller, subscription_id))


@router.get("/{subscription_id}/history")
async def subscription_history(request: Request, subscription_id: int,
                               caller: Caller = Depends(get_caller)):
    srv = get_server(request)
    await srv.subscriptions.get(caller, subscription_id)
    return success(await srv.ledger.history(subscription_id))


@router.get("/{subscription_id}/calculate")
async def calculate_earnings(request: Request, subscription_id: int,
                             days: int = Query(default=1, ge=1, le=MAX_ACCRUAL_DAYS),
                             caller: Caller = Depends(get_caller)):
    srv = get_server(request)
    await srv.subscriptions.get(caller, subscription_id)
    return success(await srv.ledger.preview_earnings(subscription_id, days))


@router.post("/{subscription_id}/cancel")
async def cancel_subscription(request: Request, subscription_id: int,
                              caller: Caller = Depends(get_caller)):
    srv = get_server(request)
    sub = await srv.subscriptions.cancel(caller, subscription_id)
    return success(sub, "Subscription cancelled")


@router.post("/{subscription_id}/accrue", dependencies=[Depends(get_admin)])
async def accrue(request: Request, subscription_id: int, req: AccrueRequest):
    srv = get_server(request)
    sub = await srv.ledger.accrue_earnings(subscription_id, req.days)
    return success(sub, "Earnings accrued")


@router.patch("/{subscription_id}/earnings", dependencies=[Depends(get_admin)])
async def update_earnings(request: Request, subscription_id: int, req: EarningsUpdateRequest):
    srv = get_server(request)
    sub = await srv.ledger.adjust_earnings(subscription_id, req.value, req.action_type)
    return success(sub, "Earnings updated")


@router.patch("/{subscription_id}/deposit", dependencies=[Depends(get_admin)])
async def update_deposit(request: Request, subscription_id: int, req: DepositUpdateRequest):
    srv = get_server(request)
    sub = await srv.ledger.adjust_deposit(subscription_id, req.amount, req.action_type)
    return success(sub, "Deposit updated")

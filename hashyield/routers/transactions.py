"""Transaction router: /api/transactions/*."""

from typing import Optional, Tuple

from fastapi import APIRouter, Depends
from starlette.requests import Request

from hashyield.auth import Caller
from hashyield.deps import get_admin, get_caller, get_server, page_params
from hashyield.models import StatusRequest, TransactionCreateRequest
from hashyield.responses import created, paginated, success

router = APIRouter(prefix="/api/transactions")


@router.post("")
async def create_transaction(request: Request, req: TransactionCreateRequest,
                             caller: Caller = Depends(get_caller)):
    srv = get_server(request)
    tx = await srv.transactions.create(caller, req.entity, req.entity_id, req.amount_usd)
    return created(tx, "Transaction created")


@router.get("", dependencies=[Depends(get_admin)])
async def list_transactions(request: Request, status: Optional[str] = None,
                            paging: Tuple[int, int] = Depends(page_params)):
    srv = get_server(request)
    page, limit = paging
    items, total = await srv.transactions.list(status=status, limit=limit,
                                               offset=(page - 1) * limit)
    return paginated(items, total, page, limit)


@router.get("/stats", dependencies=[Depends(get_admin)])
async def transaction_stats(request: Request):
    srv = get_server(request)
    return success(await srv.transactions.stats())


@router.get("/status/{status}", dependencies=[Depends(get_admin)])
async def list_by_status(request: Request, status: str,
                         paging: Tuple[int, int] = Depends(page_params)):
    srv = get_server(request)
    page, limit = paging
    items, total = await srv.transactions.list(status=status, limit=limit,
                                               offset=(page - 1) * limit)
    return paginated(items, total, page, limit)


@router.get("/miner/{miner_id}")
async def list_for_miner(request: Request, miner_id: int, caller: Caller = Depends(get_caller)):
    srv = get_server(request)
    return success(await srv.transactions.list_for_miner(caller, miner_id))


@router.get("/{transaction_id}")
async def get_transaction(request: Request, transaction_id: int,
                          caller: Caller = Depends(get_caller)):
    srv = get_server(request)
    return success(await srv.transactions.get(caller, transaction_id))


@router.patch("/{transaction_id}/status")
async def update_transaction_status(request: Request, transaction_id: int, req: StatusRequest,
                                    caller: Caller = Depends(get_admin)):
    srv = get_server(request)
    tx = await srv.transactions.update_status(caller, transaction_id, req.status)
    return success(tx, f"Transaction {tx.status}")

# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Controller: Finance transactions and budget statistics."""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from secons.core.dependencies import get_finance_service
from secons.core.errors import envelope, service_errors
from secons.core.security import get_current_user
from secons.schemas.finance import FinanceCreateRequest, FinanceUpdateRequest
from secons.services.finance_service import FinanceService

router = APIRouter(prefix="/api/v1/finance", tags=["Finance"])


@router.get("/stats")
def finance_stats(domain: Optional[str] = None,
                  user: Dict[str, Any] = Depends(get_current_user),
                  service: FinanceService = Depends(get_finance_service)):
    with service_errors():
        return envelope(service.stats(user, domain))


@router.get("")
def list_transactions(
    type_: Optional[str] = Query(default=None, alias="type"),
    status: Optional[str] = None,
    domain: Optional[str] = None,
    user: Dict[str, Any] = Depends(get_current_user),
    service: FinanceService = Depends(get_finance_service),
):
    with service_errors():
        return envelope(service.list_for(user, type_, status, domain))


@router.post("", status_code=201)
def submit_transaction(body: FinanceCreateRequest,
                       user: Dict[str, Any] = Depends(get_current_user),
                       service: FinanceService = Depends(get_finance_service)):
    with service_errors():
        return envelope(service.submit(user, body.model_dump()))


@router.patch("/{transaction_id}")
def update_transaction(transaction_id: str, body: FinanceUpdateRequest,
                       user: Dict[str, Any] = Depends(get_current_user),
                       service: FinanceService = Depends(get_finance_service)):
    with service_errors():
        return envelope(service.update(user, transaction_id, body.model_dump(exclude_none=True)))


@router.delete("/{transaction_id}")
def delete_transaction(transaction_id: str,
                       user: Dict[str, Any] = Depends(get_current_user),
                       service: FinanceService = Depends(get_finance_service)):
    with service_errors():
        service.delete(user, transaction_id)
    return envelope(message="Transaction deleted")

# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Finance, budget allocations and expense claims, scoped by domain.
"""

from typing import Any, Dict, List, Optional

from secons.core.logging import get_logger
from secons.metrics.prometheus import FINANCE_SUBMISSIONS
from secons.models.domain import Role
from secons.repositories.finance_repository import FinanceRepository
from secons.services.audit_service import AuditAction, AuditService

logger = get_logger(__name__)

EDITABLE_FIELDS = ("description", "amount", "category", "receipt_url")


class FinanceService:
    def __init__(self, repo: FinanceRepository, audit: AuditService) -> None:
        self._repo = repo
        self._audit = audit

    # ── Queries ──

    def list_for(self, user: Dict[str, Any], type_: Optional[str] = None,
                 status: Optional[str] = None,
                 domain: Optional[str] = None) -> List[Dict[str, Any]]:
        """GA sees all, JGA their domain, everyone else their own submissions."""
        if user["role"] == Role.GA.value:
            return self._repo.list_transactions(type_, status, domain)
        if user["role"] == Role.JGA.value:
            return self._repo.list_transactions(type_, status, self._jga_domain(user))
        return self._repo.list_transactions(type_, status, submitted_by=user["uid"])

    def stats(self, user: Dict[str, Any], domain: Optional[str] = None) -> Dict[str, Any]:
        """Approved budget versus approved spend, plus a per-domain breakdown for the GA."""
        if user["role"] == Role.JGA.value:
            scope = self._jga_domain(user)
        elif user["role"] == Role.GA.value:
            scope = domain
        else:
            raise PermissionError("Admin access required")

        totals = self._repo.totals_by_domain(scope)
        budget = sum(t["budget"] for t in totals.values())
        spent = sum(t["spent"] for t in totals.values())
        result: Dict[str, Any] = {
            "total_budget": budget,
            "total_spent": spent,
            "remaining": budget - spent,
        }
        if user["role"] == Role.GA.value:
            breakdown = self._repo.totals_by_domain() if scope else totals
            result["domain_breakdown"] = [
                {"domain": d, "budget": t["budget"], "spent": t["spent"],
                 "remaining": t["budget"] - t["spent"]}
                for d, t in sorted(breakdown.items())
            ]
        return result

    # ── Commands ──

    def submit(self, user: Dict[str, Any], entry: Dict[str, Any]) -> Dict[str, Any]:
        if user["role"] == Role.STUDENT.value:
            raise PermissionError("Students cannot submit finance requests")
        is_allocation = entry["type"] == "budget_allocation"
        if is_allocation and user["role"] != Role.GA.value:
            raise PermissionError("Only GAs can allocate budgets")
        if user["role"] == Role.JGA.value and entry["domain"] != user["domain"]:
            raise PermissionError("You can only submit for your own domain")

        transaction = self._repo.create_transaction({
            **entry,
            "submitted_by": user["uid"],
            "status": "approved" if is_allocation else "pending",
            "approved_by": user["uid"] if is_allocation else None,
        })
        FINANCE_SUBMISSIONS.labels(type=entry["type"]).inc()
        if is_allocation:
            self._audit.record(user, AuditAction.BUDGET_ALLOCATED, "finance", transaction["id"],
                               {"domain": entry["domain"], "amount": entry["amount"]})
        logger.info("Finance %s submitted: id=%s, domain=%s, amount=%.2f",
                    entry["type"], transaction["id"], entry["domain"], entry["amount"])
        return transaction

    def update(self, user: Dict[str, Any], transaction_id: str,
               fields: Dict[str, Any]) -> Dict[str, Any]:
        if user["role"] not in (Role.GA.value, Role.JGA.value):
            raise PermissionError("Admin access required")
        transaction = self._repo.get_transaction(transaction_id)
        if transaction is None:
            raise KeyError(f"Transaction {transaction_id} not found")

        updates: Dict[str, Any] = {}
        status = transaction["status"]
        if fields.get("status"):
            same_domain = transaction["domain"] == user["domain"]
            if user["role"] != Role.GA.value and not same_domain:
                raise PermissionError("Unauthorized to update status")
            status = fields["status"]
            updates["status"] = status
            updates["approved_by"] = user["uid"]
            if fields.get("approval_note"):
                updates["approval_note"] = fields["approval_note"]

        if status == "pending" or user["role"] == Role.GA.value:
            updates.update({k: fields[k] for k in EDITABLE_FIELDS if fields.get(k)})

        result = self._repo.update_transaction(transaction_id, updates)
        new_status = updates.get("status")
        if new_status in ("approved", "rejected") and new_status != transaction["status"]:
            action = (AuditAction.EXPENSE_APPROVED if new_status == "approved"
                      else AuditAction.EXPENSE_REJECTED)
            self._audit.record(user, action, "finance", transaction_id,
                               {"domain": transaction["domain"], "amount": result["amount"],
                                "note": updates.get("approval_note")})
        logger.info("Finance transaction updated: id=%s, fields=%s", transaction_id, sorted(updates))
        return result

    def delete(self, user: Dict[str, Any], transaction_id: str) -> None:
        transaction = self._repo.get_transaction(transaction_id)
        if transaction is None:
            raise KeyError(f"Transaction {transaction_id} not found")
        if user["role"] == Role.JGA.value:
            deletable = (transaction["type"] == "expense"
                         and transaction["status"] == "pending"
                         and transaction["domain"] == user["domain"])
            if not deletable:
                raise PermissionError("Cannot delete approved/other domain expense")
        elif user["role"] != Role.GA.value:
            raise PermissionError("Unauthorized")
        self._repo.delete_transaction(transaction_id)
        logger.info("Finance transaction deleted: id=%s", transaction_id)

    @staticmethod
    def _jga_domain(user: Dict[str, Any]) -> str:
        if not user["domain"]:
            raise PermissionError("JGA has no domain assigned")
        return user["domain"]

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from google.cloud.firestore import Client

from models.domain import BillingRecord, billing_doc_id
from models.schema import COL_BILLING_RECORDS, FIRESTORE_IN_LIMIT
from storage.firestore_client import get_firestore_client


def _chunks(ids: List[str], size: int) -> Iterable[List[str]]:
    for i in range(0, len(ids), size):
        yield ids[i:i + size]


class BillingRepository:
    """
    One document per (member, period):

      billing_records/{member_id}_{period}
        member_id, period, amount_due, amount_paid, status, updated_at

    `status` is written for readers of the collection; it is always re-derived from
    the amounts on write and never trusted on read.
    """

    def __init__(self, db: Optional[Client] = None):
        self.db = db or get_firestore_client()

    def _ref(self, member_id: str, period: str):
        return self.db.collection(COL_BILLING_RECORDS).document(billing_doc_id(member_id, period))

    def get(self, member_id: str, period: str) -> Optional[BillingRecord]:
        snap = self._ref(member_id, period).get()
        if not snap.exists:
            return None
        return BillingRecord.from_doc({"member_id": member_id, "period": period, **(snap.to_dict() or {})})

    def list_for_members(self, member_ids: List[str], period: str) -> Dict[str, BillingRecord]:
        out: Dict[str, BillingRecord] = {}
        ids = [m for m in dict.fromkeys(member_ids) if m]
        for chunk in _chunks(ids, FIRESTORE_IN_LIMIT):
            docs = (
                self.db.collection(COL_BILLING_RECORDS)
                .where("member_id", "in", chunk)
                .where("period", "==", period)
                .stream()
            )
            for d in docs:
                rec = BillingRecord.from_doc(d.to_dict() or {})
                if rec.member_id:
                    out[rec.member_id] = rec
        return out

    def record_payment(self, member_id: str, period: str, amount: float, amount_due: float) -> BillingRecord:
        """Adds `amount` to what was paid and sets the period's due amount to `amount_due`."""
        existing = self.get(member_id, period)
        if existing is None:
            rec = BillingRecord(member_id=member_id, period=period, amount_due=amount_due, amount_paid=amount)
        else:
            rec = BillingRecord(
                member_id=member_id,
                period=period,
                amount_due=amount_due,
                amount_paid=existing.amount_paid + amount,
            )
        self._write(rec)
        return rec

    def update_amounts(
        self,
        member_id: str,
        period: str,
        amount_due: Optional[float] = None,
        amount_paid: Optional[float] = None,
    ) -> Optional[BillingRecord]:
        existing = self.get(member_id, period)
        if existing is None:
            return None
        rec = BillingRecord(
            member_id=member_id,
            period=period,
            amount_due=existing.amount_due if amount_due is None else amount_due,
            amount_paid=existing.amount_paid if amount_paid is None else amount_paid,
        )
        self._write(rec)
        return rec

    def _write(self, rec: BillingRecord) -> None:
        data = {**rec.to_doc(), "updated_at": datetime.now(timezone.utc).isoformat()}
        self._ref(rec.member_id, rec.period).set(data, merge=True)

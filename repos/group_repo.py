from __future__ import annotations

from typing import List, Optional
from google.cloud.firestore import Client
from storage.firestore_client import get_firestore_client
from models.domain import Group
from models.schema import COL_GROUPS


class GroupRepository:
    def __init__(self, db: Optional[Client] = None):
        self.db = db or get_firestore_client()

    def get(self, group_id: str) -> Optional[Group]:
        snap = self.db.collection(COL_GROUPS).document(group_id).get()
        if not snap.exists:
            return None
        return Group.from_doc(group_id, snap.to_dict() or {})

    def list_by_due_day(self, day: int) -> List[Group]:
        docs = self.db.collection(COL_GROUPS).where("payment_due_day", "==", day).stream()
        return [Group.from_doc(d.id, d.to_dict() or {}) for d in docs]

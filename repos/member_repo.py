from __future__ import annotations

from typing import List, Optional
from google.cloud.firestore import Client
from storage.firestore_client import get_firestore_client
from models.domain import Member
from models.schema import COL_MEMBERS


class MemberRepository:
    def __init__(self, db: Optional[Client] = None):
        self.db = db or get_firestore_client()

    def get(self, member_id: str) -> Optional[Member]:
        snap = self.db.collection(COL_MEMBERS).document(member_id).get()
        if not snap.exists:
            return None
        return Member.from_doc(member_id, snap.to_dict() or {})

    def list_by_group(self, group_id: str) -> List[Member]:
        docs = self.db.collection(COL_MEMBERS).where("group_id", "==", group_id).stream()
        return [Member.from_doc(d.id, d.to_dict() or {}) for d in docs]

"""
Keyed JSON document storage.

Each write is a single INSERT ... ON CONFLICT DO UPDATE that replaces the
whole document, so a reader sees either the previous version or the new one,
and concurrent writers of the same key converge on the last write.
"""

import copy
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session, sessionmaker

from .database import CatalogDocument

UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def diff_dict(old: Dict[str, Any], new: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    changed = {}
    keys = set(old.keys()) | set(new.keys())
    for k in keys:
        ov = old.get(k)
        nv = new.get(k)
        if ov != nv:
            changed[k] = {"old": ov, "new": nv}
    return changed


class DocumentStore:
    """Document collections backed by the catalog_documents table."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def _current(self, session: Session, collection: str, key: str) -> Optional[Dict[str, Any]]:
        row = session.get(CatalogDocument, (collection, key))
        return None if row is None else row.document

    def upsert(self, collection: str, key: str, document: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert the document, or replace the stored one entirely.

        The status is derived from the version read just before the write;
        the write itself is atomic per key.

        Args:
            collection: Collection name (e.g. "titles")
            key: Unique document key within the collection
            document: JSON-serializable document

        Returns:
            {"status": "new"|"updated"|"no-change", "changed": [field, ...]}
        """
        document = copy.deepcopy(document)
        with self.session_factory() as session, session.begin():
            dialect = session.get_bind().dialect.name
            if dialect not in UPSERT_DIALECTS:
                raise NotImplementedError(f"Upsert not supported for dialect: {dialect}")

            previous = self._current(session, collection, key)
            now = datetime.now()
            stmt = UPSERT_DIALECTS[dialect](CatalogDocument).values(
                collection=collection,
                key=key,
                document=document,
                created_at=now,
                updated_at=now,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=["collection", "key"],
                set_={"document": stmt.excluded.document, "updated_at": now},
            )
            session.execute(stmt)

        if previous is None:
            return {"status": "new", "changed": sorted(document)}
        changed = diff_dict(previous, document)
        if not changed:
            return {"status": "no-change", "changed": []}
        return {"status": "updated", "changed": sorted(changed)}

    def get(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        with self.session_factory() as session:
            return self._current(session, collection, key)

    def count(self, collection: str) -> int:
        with self.session_factory() as session:
            return session.query(CatalogDocument).filter_by(collection=collection).count()

# backend/stockbook/models.py
from __future__ import annotations

from .extensions import db
from .time_utils import to_utc_z


class StoredDocument(db.Model):
    """
    One top-level JSON document (users, products, sales, settings, currentUser).

    The table is a plain key/value store: the value column holds the serialized
    document and nothing about its shape is enforced here.
    """
    __tablename__ = "documents"

    key = db.Column(db.String(64), primary_key=True)
    value = db.Column(db.Text, nullable=False)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "size": len(self.value or ""),
            "updated_at": to_utc_z(self.updated_at),
        }

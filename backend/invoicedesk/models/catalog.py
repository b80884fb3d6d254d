from __future__ import annotations

from ..extensions import db
from invoicedesk.time_utils import to_utc_z, utcnow


class CatalogModel(db.Model):
    """
    Product model catalog entry (table "models").

    Only active models are offered in the submission form. Invoices reference
    a model by its name as free text, never by id.
    """
    __tablename__ = "models"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_models_name"),
        db.Index("ix_models_category_name", "category", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(128), nullable=False)
    description = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "description": self.description or "",
            "isActive": bool(self.is_active),
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }

# backend/invoicedesk/services/catalog_service.py
"""
Model Catalog Service

Standard CRUD over product models with two guards:
- names are unique (create and rename raise DuplicateName)
- a model cannot be deleted while any invoice carries its name (ModelInUse)

Invoices keep the model name they were submitted with. Renaming a catalog
entry does not rewrite existing invoices.
"""
from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..errors import DuplicateName, ModelInUse, NotFoundError
from ..models import CatalogModel, Invoice
from invoicedesk.time_utils import utcnow

MODEL_MUTABLE_FIELDS = {"name", "category", "description", "is_active"}

DEFAULT_MODELS = [
    ("RS68AB820B1/MR", "Refrigerators", "Samsung 820 L refrigerator"),
    ("WW11B944DGB/AS", "Washing machines", "Samsung 11 kg washing machine"),
    ("AR12TXHQASINMG", "Air conditioners", "Samsung 12,000 BTU air conditioner"),
    ("UE55AU7000UXEG", "Televisions", "Samsung 55 inch television"),
    ("MS23K3513AS/EG", "Microwaves", "Samsung 23 L microwave"),
]


def apply_model_patch(m: CatalogModel, patch: dict) -> None:
    for k, v in patch.items():
        if k not in MODEL_MUTABLE_FIELDS:
            continue
        setattr(m, k, v)


def list_models(*, active_only: bool = False) -> list[CatalogModel]:
    """All models ordered by category then name; active_only for the submission form."""
    query = db.session.query(CatalogModel)
    if active_only:
        query = query.filter(CatalogModel.is_active.is_(True))
    return query.order_by(CatalogModel.category.asc(), CatalogModel.name.asc()).all()


def get_model(model_id: int) -> CatalogModel:
    model = db.session.get(CatalogModel, model_id)
    if not model:
        raise NotFoundError("Model not found")
    return model


def _ensure_name_free(name: str, *, exclude_id: int | None = None) -> None:
    query = db.session.query(CatalogModel.id).filter(CatalogModel.name == name)
    if exclude_id is not None:
        query = query.filter(CatalogModel.id != exclude_id)
    if query.first():
        if exclude_id is None:
            raise DuplicateName("A model with this name already exists")
        raise DuplicateName("Another model with this name already exists")


def create_model(*, patch: dict) -> CatalogModel:
    """
    Create a model from a validated patch dict.

    Raises DuplicateName if the name is taken.
    """
    _ensure_name_free(patch["name"])

    now = utcnow()
    model = CatalogModel(is_active=True, created_at=now, updated_at=now)
    apply_model_patch(model, patch)
    if model.description is None:
        model.description = ""

    db.session.add(model)
    db.session.commit()
    return model


def update_model(model_id: int, *, patch: dict) -> CatalogModel:
    """
    Update a model.

    Raises NotFoundError for an unknown id, DuplicateName if the new name
    belongs to another model.
    """
    model = get_model(model_id)

    if "name" in patch and patch["name"] != model.name:
        _ensure_name_free(patch["name"], exclude_id=model.id)

    apply_model_patch(model, patch)
    model.updated_at = utcnow()
    db.session.commit()
    return model


def count_invoices_for(name: str) -> int:
    return db.session.query(func.count(Invoice.id)).filter(Invoice.model == name).scalar() or 0


def delete_model(model_id: int) -> CatalogModel:
    """
    Delete a model.

    Raises NotFoundError for an unknown id and ModelInUse (with the number of
    blocking invoices) when invoices still reference the model's name.
    """
    model = get_model(model_id)

    in_use = count_invoices_for(model.name)
    if in_use > 0:
        raise ModelInUse(model.name, in_use)

    db.session.delete(model)
    db.session.commit()
    return model


def seed_default_models() -> int:
    """Insert the default catalog entries that are missing. Returns count inserted."""
    existing = {name for (name,) in db.session.query(CatalogModel.name)}
    now = utcnow()
    created = 0
    for name, category, description in DEFAULT_MODELS:
        if name in existing:
            continue
        db.session.add(CatalogModel(
            name=name,
            category=category,
            description=description,
            is_active=True,
            created_at=now,
            updated_at=now,
        ))
        created += 1
    db.session.commit()
    return created

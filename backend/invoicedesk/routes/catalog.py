# Overview: Flask API routes for the product model catalog; parses input and returns JSON responses.

# backend/invoicedesk/routes/catalog.py
"""
Model catalog routes.

Reads are public (the submission form needs the active list). Create, update
and delete require an admin session.
"""
from flask import Blueprint, request, jsonify

from ..decorators import error_response, require_admin_session
from ..errors import InvoiceDeskError, ModelInUse
from ..models import CatalogModel
from ..services import catalog_service
from ..validation import ModelValidationPolicy, validate_payload

MODEL_POLICY = ModelValidationPolicy(
    field_map={
        "name": "name",
        "category": "category",
        "description": "description",
        "isActive": "is_active",
    },
    required_on_create={"name", "category"},
)

catalog_bp = Blueprint("catalog", __name__, url_prefix="/api/models")


@catalog_bp.get("")
def list_models_route():
    models = catalog_service.list_models()
    return jsonify({"success": True, "data": [m.to_dict() for m in models]})


@catalog_bp.get("/active")
def list_active_models_route():
    models = catalog_service.list_models(active_only=True)
    return jsonify({"success": True, "data": [m.to_dict() for m in models]})


@catalog_bp.get("/<int:model_id>")
def get_model_route(model_id: int):
    try:
        model = catalog_service.get_model(model_id)
    except InvoiceDeskError as e:
        return error_response(e)
    return jsonify({"success": True, "data": model.to_dict()})


@catalog_bp.post("")
@require_admin_session
def create_model_route():
    """
    Request body:
    {
        "sessionToken": "...",
        "name": "UE55AU7000UXEG",   // required, unique
        "category": "Televisions",  // required
        "description": "...",       // optional
        "isActive": true            // optional
    }
    """
    payload = request.get_json(silent=True)
    try:
        patch = validate_payload(model=CatalogModel, payload=payload, policy=MODEL_POLICY, partial=False)
        model = catalog_service.create_model(patch=patch)
    except InvoiceDeskError as e:
        return error_response(e)

    return jsonify({
        "success": True,
        "message": "Model created successfully",
        "id": model.id,
        "data": model.to_dict(),
    }), 201


@catalog_bp.put("/<int:model_id>")
@require_admin_session
def update_model_route(model_id: int):
    payload = request.get_json(silent=True)
    try:
        patch = validate_payload(model=CatalogModel, payload=payload, policy=MODEL_POLICY, partial=True)
        model = catalog_service.update_model(model_id, patch=patch)
    except InvoiceDeskError as e:
        return error_response(e)

    return jsonify({"success": True, "message": "Model updated successfully", "data": model.to_dict()})


@catalog_bp.delete("/<int:model_id>")
@require_admin_session
def delete_model_route(model_id: int):
    """Fails with 400 and invoiceCount while invoices still use the model name."""
    try:
        model = catalog_service.delete_model(model_id)
    except ModelInUse as e:
        return jsonify({
            "success": False,
            "message": str(e),
            "invoiceCount": e.invoice_count,
        }), e.status_code
    except InvoiceDeskError as e:
        return error_response(e)

    return jsonify({"success": True, "message": f"Model {model.name} deleted successfully"})

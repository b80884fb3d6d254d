# Overview: JoinedRecord view and data-URL helpers shared by listing, filtering and exports.

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass

from ..errors import ValidationError


MIME_BY_EXTENSION = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "pdf": "application/pdf",
}
DEFAULT_MIME = "image/jpeg"


@dataclass
class JoinedRecord:
    """
    One submission x invoice row with its file resolved to a data URL.

    Computed per request, never stored. Invoice fields are None for a
    submission that has no invoices.
    """
    submission_id: int
    submission_date: str | None
    email: str
    name: str
    mobile: str
    serial: str
    store_name: str
    store_code: str
    invoice_id: int | None = None
    model: str | None = None
    category: str | None = None
    sales_date: str | None = None
    file_name: str | None = None
    file_path: str | None = None
    file_data_url: str = ""

    def to_dict(self) -> dict:
        return {
            "submissionId": self.submission_id,
            "submissionDate": self.submission_date,
            "email": self.email,
            "name": self.name,
            "mobile": self.mobile,
            "serial": self.serial,
            "storeName": self.store_name,
            "storeCode": self.store_code,
            "invoiceId": self.invoice_id,
            "model": self.model,
            "category": self.category,
            "salesDate": self.sales_date,
            "fileName": self.file_name,
            "fileDataUrl": self.file_data_url,
        }


def mime_for_filename(file_name: str | None) -> str:
    """Guess the MIME type from the original file name; JPEG when unknown."""
    if file_name and "." in file_name:
        ext = file_name.rsplit(".", 1)[1].lower()
        return MIME_BY_EXTENSION.get(ext, DEFAULT_MIME)
    return DEFAULT_MIME


def build_data_url(content: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(content).decode('ascii')}"


def decode_data_url(data_url: str) -> tuple[str, bytes]:
    """
    Split a base64 data URL into (mime_type, raw bytes).

    Raises ValidationError for anything that is not a base64 data URL.
    """
    if not data_url or not data_url.startswith("data:") or "base64," not in data_url:
        raise ValidationError("Not a base64 data URL")

    header, payload = data_url.split("base64,", 1)
    mime_type = header[len("data:"):].rstrip(";") or DEFAULT_MIME
    try:
        content = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("Invalid base64 payload in data URL")
    return mime_type, content

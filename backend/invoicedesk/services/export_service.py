# Overview: Builds the admin report artifacts (store workbook, invoice archive) from JoinedRecords.

"""
Export Formatter

Two artifacts, both built fully in memory from an already filtered record list:

1. Store workbook (.xlsx)
   - "Summary" sheet: one row per store (name, code, distinct employees by
     serial, invoice count)
   - one sheet per store: info block A1:G3, header on row 5, one invoice per
     row from row 6, invoice image anchored in column G

2. Invoice archive (.zip)
   - Store/Employee/Model/<Model>_<date>_<n>.<ext>
   - invoice_summary.xlsx listing every record and its path in the archive
   - README.txt with the counters

Image problems never abort an export; the affected row gets a placeholder.
"""

from __future__ import annotations

import re
import zipfile
from collections import OrderedDict
from dataclasses import dataclass
from io import BytesIO

from flask import current_app
from openpyxl import Workbook
from openpyxl.drawing.image import Image as XLImage
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side

from ..errors import ValidationError
from invoicedesk.time_utils import export_stamp, utcnow
from .records import JoinedRecord, decode_data_url


XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
ZIP_MIMETYPE = "application/zip"

SHEET_NAME_MAX = 31
SUMMARY_SHEET_TITLE = "Summary"
UNKNOWN_STORE = "Unknown store"

IMAGE_WIDTH_PX = 180
IMAGE_HEIGHT_PX = 100
IMAGE_ROW_HEIGHT = 120
IMAGE_COLUMN = "G"
HEADER_ROW = 5
FIRST_DATA_ROW = 6

PDF_PLACEHOLDER = "PDF file"
NO_IMAGE_PLACEHOLDER = "No image"
IMAGE_ERROR_PLACEHOLDER = "Image load error"
NO_FILE = "No file"

ZIP_COMPRESS_LEVEL = 6
ARCHIVE_SUMMARY_NAME = "invoice_summary.xlsx"
ARCHIVE_README_NAME = "README.txt"

_SHEET_NAME_INVALID = re.compile(r"[^A-Za-z0-9\u0600-\u06FF_]")
_FOLDER_NAME_INVALID = re.compile(r"[^a-z0-9\u0600-\u06FF ]", re.IGNORECASE)
_MODEL_NAME_INVALID = re.compile(r"[^a-z0-9]", re.IGNORECASE)

EXTENSION_BY_MIME = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "application/pdf": "pdf",
}

STORE_COLUMNS = [
    ("Employee name", 20),
    ("Serial", 15),
    ("Mobile", 15),
    ("Model", 30),
    ("Sales date", 15),
    ("File name", 25),
    ("Invoice image", 25),
]
SUMMARY_COLUMNS = [
    ("Store name", 25),
    ("Store code", 15),
    ("Employees", 15),
    ("Invoices", 15),
]
ARCHIVE_SUMMARY_COLUMNS = [
    ("Store name", 25),
    ("Store code", 15),
    ("Employee name", 20),
    ("Serial", 15),
    ("Mobile", 15),
    ("Model", 30),
    ("Sales date", 15),
    ("Original file", 25),
    ("Path in archive", 60),
]

_THIN = Side(style="thin")
_THICK = Side(style="thick")
THIN_BORDER = Border(top=_THIN, left=_THIN, bottom=_THIN, right=_THIN)
THICK_BORDER = Border(top=_THICK, left=_THICK, bottom=_THICK, right=_THICK)
CENTER = Alignment(vertical="center", horizontal="center")
CENTER_WRAP = Alignment(vertical="center", horizontal="center", wrap_text=True)
SUMMARY_HEADER_FILL = PatternFill("solid", fgColor="FF2E7D32")
STORE_HEADER_FILL = PatternFill("solid", fgColor="FF1565C0")
INFO_FILL = PatternFill("solid", fgColor="FFF3E5F5")
HEADER_FONT = Font(name="Arial", bold=True, color="FFFFFFFF", size=12)


@dataclass
class ExportResult:
    content: bytes
    filename: str
    mimetype: str
    images_added: int = 0
    images_skipped: int = 0


# --- naming helpers ---------------------------------------------------------

def sanitize_sheet_name(store_name: str | None) -> str:
    """Keep letters, digits, underscore and Arabic; everything else becomes "_"."""
    cleaned = _SHEET_NAME_INVALID.sub("_", store_name or "")[:SHEET_NAME_MAX]
    return cleaned or "Store"


def unique_sheet_name(base: str, used: set[str]) -> str:
    """
    Return base, or base with a numeric suffix, that is not in used
    (case-insensitive) and fits in 31 characters. Adds the result to used.
    """
    candidate = base[:SHEET_NAME_MAX]
    n = 2
    while candidate.lower() in used:
        suffix = f"_{n}"
        candidate = f"{base[:SHEET_NAME_MAX - len(suffix)]}{suffix}"
        n += 1
    used.add(candidate.lower())
    return candidate


def safe_folder_name(value: str | None, fallback: str) -> str:
    return _FOLDER_NAME_INVALID.sub("_", value or "").strip() or fallback


def safe_model_name(value: str | None) -> str:
    return _MODEL_NAME_INVALID.sub("_", value or "").strip() or "Unknown_model"


def safe_date(value: str | None) -> str:
    return (value or "").replace("/", "-").replace("\\", "-") or "no-date"


def group_by_store(records: list[JoinedRecord]) -> "OrderedDict[str, list[JoinedRecord]]":
    grouped: OrderedDict[str, list[JoinedRecord]] = OrderedDict()
    for record in records:
        grouped.setdefault(record.store_name or UNKNOWN_STORE, []).append(record)
    return grouped


def _require_records(records: list[JoinedRecord]) -> None:
    if not records:
        raise ValidationError("No data to export")


def _write_header(ws, row: int, columns, fill: PatternFill) -> None:
    for col, (title, width) in enumerate(columns, start=1):
        cell = ws.cell(row=row, column=col, value=title)
        cell.fill = fill
        cell.font = HEADER_FONT
        cell.alignment = CENTER
        cell.border = THIN_BORDER
        ws.column_dimensions[cell.column_letter].width = width


def _write_row(ws, row: int, values) -> None:
    for col, value in enumerate(values, start=1):
        cell = ws.cell(row=row, column=col, value=value)
        cell.alignment = CENTER
        cell.border = THIN_BORDER


# --- workbook ---------------------------------------------------------------

def _write_summary_sheet(ws, grouped) -> None:
    ws.title = SUMMARY_SHEET_TITLE
    _write_header(ws, 1, SUMMARY_COLUMNS, SUMMARY_HEADER_FILL)
    ws.row_dimensions[1].height = 35

    for row, (store_name, store_records) in enumerate(grouped.items(), start=2):
        _write_row(ws, row, [
            store_name,
            store_records[0].store_code or "N/A",
            len({r.serial for r in store_records}),
            len(store_records),
        ])


def _embed_image(ws, row: int, record: JoinedRecord) -> bool:
    """
    Place the record's image at column G of row, or a placeholder.

    Returns True if an image was embedded.
    """
    image_cell = ws[f"{IMAGE_COLUMN}{row}"]
    if not record.file_data_url:
        image_cell.value = NO_IMAGE_PLACEHOLDER
        return False

    try:
        mime_type, content = decode_data_url(record.file_data_url)
        if mime_type == "application/pdf":
            image_cell.value = PDF_PLACEHOLDER
            return False
        if not mime_type.startswith("image/"):
            image_cell.value = NO_IMAGE_PLACEHOLDER
            return False

        image = XLImage(BytesIO(content))
        image.width = IMAGE_WIDTH_PX
        image.height = IMAGE_HEIGHT_PX
        ws.add_image(image, f"{IMAGE_COLUMN}{row}")
    except Exception:
        current_app.logger.warning(
            "Could not embed image for invoice %s (%s)", record.invoice_id, record.file_name,
            exc_info=True,
        )
        image_cell.value = IMAGE_ERROR_PLACEHOLDER
        return False
    return True


def _write_store_sheet(ws, store_name: str, store_records: list[JoinedRecord]) -> tuple[int, int]:
    store_code = store_records[0].store_code or "N/A"
    employees = len({r.serial for r in store_records})

    ws.merge_cells(f"A1:{IMAGE_COLUMN}3")
    info = ws["A1"]
    info.value = (
        f"Store: {store_name}\n"
        f"Store code: {store_code}\n"
        f"Employees: {employees} | Invoices: {len(store_records)}\n"
        f"Report date: {utcnow().date().isoformat()}"
    )
    info.fill = INFO_FILL
    info.font = Font(name="Arial", bold=True, size=12)
    info.alignment = CENTER_WRAP
    info.border = THICK_BORDER

    _write_header(ws, HEADER_ROW, STORE_COLUMNS, STORE_HEADER_FILL)
    ws.row_dimensions[HEADER_ROW].height = 30

    added = skipped = 0
    for row, record in enumerate(store_records, start=FIRST_DATA_ROW):
        _write_row(ws, row, [
            record.name,
            record.serial,
            record.mobile,
            record.model or "",
            record.sales_date or "",
            record.file_name or "N/A",
            "",
        ])
        ws.row_dimensions[row].height = IMAGE_ROW_HEIGHT
        if _embed_image(ws, row, record):
            added += 1
        else:
            skipped += 1
    return added, skipped


def build_workbook_export(records: list[JoinedRecord]) -> ExportResult:
    """Summary sheet plus one sheet per store with embedded invoice images."""
    _require_records(records)
    grouped = group_by_store(records)

    wb = Workbook()
    _write_summary_sheet(wb.active, grouped)

    used = {SUMMARY_SHEET_TITLE.lower()}
    added = skipped = 0
    for store_name, store_records in grouped.items():
        ws = wb.create_sheet(unique_sheet_name(sanitize_sheet_name(store_name), used))
        store_added, store_skipped = _write_store_sheet(ws, store_name, store_records)
        added += store_added
        skipped += store_skipped

    buffer = BytesIO()
    wb.save(buffer)

    current_app.logger.info(
        "Workbook export: %d records, %d stores, %d images embedded, %d skipped",
        len(records), len(grouped), added, skipped,
    )
    return ExportResult(
        content=buffer.getvalue(),
        filename=f"invoice_report_{export_stamp()}.xlsx",
        mimetype=XLSX_MIMETYPE,
        images_added=added,
        images_skipped=skipped,
    )


# --- archive ----------------------------------------------------------------

def archive_path(record: JoinedRecord, index: int, extension: str) -> str:
    store = safe_folder_name(record.store_name, "Unknown_store")
    employee = safe_folder_name(record.name, "Unknown_employee")
    model = safe_model_name(record.model)
    return f"{store}/{employee}/{model}/{model}_{safe_date(record.sales_date)}_{index}.{extension}"


def _summary_workbook(rows: list[list]) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Invoices"
    _write_header(ws, 1, ARCHIVE_SUMMARY_COLUMNS, SUMMARY_HEADER_FILL)
    for row, values in enumerate(rows, start=2):
        _write_row(ws, row, values)

    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def _readme(total: int, added: int, skipped: int) -> str:
    return (
        "Invoice archive\n"
        "===============\n"
        "\n"
        f"Invoices:          {total}\n"
        f"Files included:    {added}\n"
        f"Without a file:    {skipped}\n"
        "\n"
        "Layout:\n"
        "  <Store>/\n"
        "    <Employee>/\n"
        "      <Model>/\n"
        "        <Model>_<sales date>_1.jpg\n"
        "        <Model>_<sales date>_2.pdf\n"
        "\n"
        f"{ARCHIVE_SUMMARY_NAME} lists every invoice with its path in this archive.\n"
        f"Generated: {utcnow().strftime('%Y-%m-%d %H:%M')} UTC\n"
    )


def build_archive_export(records: list[JoinedRecord]) -> ExportResult:
    """ZIP of invoice files grouped by store, employee and model."""
    _require_records(records)

    counters: dict[tuple[str, str, str], int] = {}
    summary_rows = []
    added = skipped = 0

    buffer = BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED, compresslevel=ZIP_COMPRESS_LEVEL) as zf:
        for record in records:
            path = NO_FILE
            if record.file_data_url:
                try:
                    mime_type, content = decode_data_url(record.file_data_url)
                except ValidationError:
                    current_app.logger.warning(
                        "Skipping unreadable file for invoice %s", record.invoice_id,
                    )
                else:
                    key = (
                        safe_folder_name(record.store_name, "Unknown_store"),
                        safe_folder_name(record.name, "Unknown_employee"),
                        safe_model_name(record.model),
                    )
                    counters[key] = counters.get(key, 0) + 1
                    path = archive_path(record, counters[key], EXTENSION_BY_MIME.get(mime_type, "jpg"))
                    zf.writestr(path, content)

            if path == NO_FILE:
                skipped += 1
            else:
                added += 1

            summary_rows.append([
                record.store_name,
                record.store_code,
                record.name,
                record.serial,
                record.mobile,
                record.model or "",
                record.sales_date or "",
                record.file_name or "",
                path,
            ])

        zf.writestr(ARCHIVE_SUMMARY_NAME, _summary_workbook(summary_rows))
        zf.writestr(ARCHIVE_README_NAME, _readme(len(records), added, skipped))

    current_app.logger.info(
        "Archive export: %d records, %d files added, %d skipped", len(records), added, skipped,
    )
    return ExportResult(
        content=buffer.getvalue(),
        filename=f"invoices_{export_stamp()}.zip",
        mimetype=ZIP_MIMETYPE,
        images_added=added,
        images_skipped=skipped,
    )

"""
Export tests.

Verifies:
- Round-trip: an uploaded JPEG is embedded byte-for-byte in the workbook
- Sheet naming: sanitized, truncated to 31 characters, deduplicated
- Per-row placeholders for PDF, missing and broken images
- Archive layout, summary workbook and counters
"""

import base64
import io
import json
import zipfile

import pytest
from openpyxl import load_workbook

from conftest import PDF_BYTES, auth_headers, basic_data, file_storage, make_jpeg, make_png
from invoicedesk.errors import ValidationError
from invoicedesk.services import export_service, submission_service
from invoicedesk.services.records import JoinedRecord, build_data_url


def record(**overrides) -> JoinedRecord:
    values = dict(
        submission_id=1,
        submission_date="2025-03-01T10:00:00Z",
        email="a@b.com",
        name="Ahmed Ali",
        mobile="0100",
        serial="EMP-001",
        store_name="Cairo Branch",
        store_code="CAI-01",
        invoice_id=1,
        model="UE55AU7000UXEG",
        sales_date="2025-01-05",
        file_name="tv.jpg",
        file_path="/uploads/x_tv.jpg",
        file_data_url="",
    )
    values.update(overrides)
    return JoinedRecord(**values)


def media_entries(xlsx_bytes: bytes) -> dict:
    with zipfile.ZipFile(io.BytesIO(xlsx_bytes)) as zf:
        return {name: zf.read(name) for name in zf.namelist() if name.startswith("xl/media/")}


class TestWorkbookRoundTrip:

    def test_uploaded_jpeg_is_embedded_unchanged(self, client, db_session, admin_token):
        jpeg = make_jpeg(color=(10, 120, 240), size=(64, 48))
        resp = client.post('/api/submissions', data={
            'basicData': json.dumps(basic_data(email='a@b.com')),
            'invoicesData': json.dumps([{'id': 'd1', 'model': 'X1', 'salesDate': '2025-01-05'}]),
            'invoiceFile_d1': (io.BytesIO(jpeg), 'receipt.jpg'),
        }, content_type='multipart/form-data')
        assert resp.status_code == 201

        export = client.get('/api/exports/workbook', headers=auth_headers(admin_token))

        assert export.status_code == 200
        assert export.mimetype == export_service.XLSX_MIMETYPE
        assert export.headers['X-Images-Added'] == '1'
        assert export.headers['X-Images-Skipped'] == '0'
        assert 'attachment' in export.headers['Content-Disposition']
        assert list(media_entries(export.data).values()) == [jpeg]

    def test_export_respects_filters(self, client, db_session, admin_token):
        for email, store in [('a@b.com', 'Cairo Branch'), ('m@b.com', 'Alex Mall')]:
            submission_service.create_submission(
                basic_data(email=email, storeName=store),
                [{'id': '1', 'model': 'X1', 'salesDate': '2025-01-05'}],
                files_by_field={'invoiceFile_1': file_storage(make_jpeg(), 'r.jpg')},
            )

        export = client.get('/api/exports/workbook?store=alex', headers=auth_headers(admin_token))

        wb = load_workbook(io.BytesIO(export.data))
        assert wb.sheetnames == ['Summary', 'Alex_Mall']
        assert export.headers['X-Images-Added'] == '1'

    def test_no_data(self, client, db_session, admin_token):
        resp = client.get('/api/exports/workbook', headers=auth_headers(admin_token))

        assert resp.status_code == 400
        assert resp.get_json()['message'] == 'No data to export'


class TestWorkbookLayout:

    def test_summary_and_store_sheets(self, app, db_session):
        records = [
            record(invoice_id=1, serial="EMP-001"),
            record(invoice_id=2, serial="EMP-001", model="RS68AB820B1/MR"),
            record(invoice_id=3, serial="EMP-002", name="Sara"),
            record(invoice_id=4, store_name="Alex Mall", store_code="ALX-02"),
        ]

        result = export_service.build_workbook_export(records)
        wb = load_workbook(io.BytesIO(result.content))

        summary = wb["Summary"]
        assert [c.value for c in summary[1]] == ["Store name", "Store code", "Employees", "Invoices"]
        assert [c.value for c in summary[2]] == ["Cairo Branch", "CAI-01", 2, 3]
        assert [c.value for c in summary[3]] == ["Alex Mall", "ALX-02", 1, 1]

        store = wb["Cairo_Branch"]
        assert "A1:G3" in {str(r) for r in store.merged_cells.ranges}
        assert "Store: Cairo Branch" in store["A1"].value
        assert store["A5"].value == "Employee name"
        assert store["G5"].value == "Invoice image"
        assert [store.cell(row=row, column=4).value for row in (6, 7, 8)] == [
            "UE55AU7000UXEG", "RS68AB820B1/MR", "UE55AU7000UXEG",
        ]
        assert store.row_dimensions[6].height == 120

    def test_placeholders_and_counters(self, app, db_session):
        broken = "data:image/jpeg;base64," + base64.b64encode(b"definitely not a jpeg").decode()
        records = [
            record(invoice_id=1, file_data_url=build_data_url(make_png(), "image/png")),
            record(invoice_id=2, file_data_url=build_data_url(PDF_BYTES, "application/pdf")),
            record(invoice_id=3, file_data_url=""),
            record(invoice_id=4, file_data_url=broken),
        ]

        result = export_service.build_workbook_export(records)

        assert (result.images_added, result.images_skipped) == (1, 3)
        ws = load_workbook(io.BytesIO(result.content))["Cairo_Branch"]
        assert [ws[f"G{row}"].value for row in (7, 8, 9)] == ["PDF file", "No image", "Image load error"]
        assert len(media_entries(result.content)) == 1

    def test_empty_records(self, app):
        with pytest.raises(ValidationError):
            export_service.build_workbook_export([])


class TestSheetNames:

    @pytest.mark.parametrize("store,expected", [
        ("Cairo Branch", "Cairo_Branch"),
        ("Mall/Store: #1?", "Mall_Store___1_"),
        ("فرع القاهرة", "فرع_القاهرة"),
        ("", "Store"),
        ("A" * 40, "A" * 31),
    ])
    def test_sanitize(self, store, expected):
        assert export_service.sanitize_sheet_name(store) == expected

    def test_collisions_get_suffixes_within_limit(self):
        used = {"summary"}
        base = "B" * 31

        names = [export_service.unique_sheet_name(base, used) for _ in range(3)]

        assert names == ["B" * 31, "B" * 29 + "_2", "B" * 29 + "_3"]
        assert all(len(n) <= 31 for n in names)

    def test_store_names_collapsing_to_same_sheet(self, app, db_session):
        records = [
            record(invoice_id=1, store_name="Cairo Branch"),
            record(invoice_id=2, store_name="Cairo-Branch"),
            record(invoice_id=3, store_name="summary"),
        ]

        result = export_service.build_workbook_export(records)

        assert load_workbook(io.BytesIO(result.content)).sheetnames == [
            "Summary", "Cairo_Branch", "Cairo_Branch_2", "summary_2",
        ]


class TestArchive:

    def test_layout_and_counters(self, app, db_session):
        jpeg, png = make_jpeg(), make_png()
        records = [
            record(invoice_id=1, file_data_url=build_data_url(jpeg, "image/jpeg")),
            record(invoice_id=2, file_data_url=build_data_url(png, "image/png")),
            record(invoice_id=3, model="RS68AB820B1/MR", sales_date="2025-02-10",
                   file_data_url=build_data_url(PDF_BYTES, "application/pdf")),
            record(invoice_id=4, name="Sara", file_data_url=""),
        ]

        result = export_service.build_archive_export(records)

        assert result.mimetype == "application/zip"
        assert (result.images_added, result.images_skipped) == (3, 1)
        with zipfile.ZipFile(io.BytesIO(result.content)) as zf:
            names = set(zf.namelist())
            assert names == {
                "Cairo Branch/Ahmed Ali/UE55AU7000UXEG/UE55AU7000UXEG_2025-01-05_1.jpg",
                "Cairo Branch/Ahmed Ali/UE55AU7000UXEG/UE55AU7000UXEG_2025-01-05_2.png",
                "Cairo Branch/Ahmed Ali/RS68AB820B1_MR/RS68AB820B1_MR_2025-02-10_1.pdf",
                "invoice_summary.xlsx",
                "README.txt",
            }
            assert zf.read("Cairo Branch/Ahmed Ali/UE55AU7000UXEG/UE55AU7000UXEG_2025-01-05_1.jpg") == jpeg
            assert all(info.compress_type == zipfile.ZIP_DEFLATED for info in zf.infolist())

            readme = zf.read("README.txt").decode()
            assert "Files included:    3" in readme

            summary = load_workbook(io.BytesIO(zf.read("invoice_summary.xlsx"))).active
            paths = [row[-1] for row in summary.iter_rows(min_row=2, values_only=True)]
            assert paths[3] == "No file"
            assert paths[0].endswith("_1.jpg")

    def test_folder_names_sanitized(self):
        path = export_service.archive_path(
            record(store_name="Mall/Store", name="O'Neil", model="A B/C", sales_date="2025/01/05"),
            1, "jpg",
        )
        assert path == "Mall_Store/O_Neil/A_B_C/A_B_C_2025-01-05_1.jpg"

    def test_archive_endpoint(self, client, db_session, admin_token):
        submission_service.create_submission(
            basic_data(),
            [{'id': '1', 'model': 'X1', 'salesDate': '2025-01-05'}],
            files_by_field={'invoiceFile_1': file_storage(make_jpeg(), 'r.jpg')},
        )

        resp = client.get(f'/api/exports/archive?sessionToken={admin_token}')

        assert resp.status_code == 200
        assert resp.headers['X-Images-Added'] == '1'
        assert resp.headers['Content-Disposition'].startswith('attachment')
        assert '.zip' in resp.headers['Content-Disposition']

    def test_empty_records(self, app):
        with pytest.raises(ValidationError):
            export_service.build_archive_export([])

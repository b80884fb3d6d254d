"""
Purge tests.

Verifies:
- Full purge removes invoices, submissions, employees and every upload
- Filtered purge is scoped by the same predicate as listing and keeps employees
- An empty filtered purge needs explicit confirmation
- Invoices-only purge and single invoice delete keep submissions
"""

import os

import pytest

from conftest import auth_headers, basic_data, file_storage, make_jpeg
from invoicedesk.models import Employee, Invoice, Submission
from invoicedesk.services import purge_service, submission_service
from invoicedesk.services.filter_service import SubmissionFilters


@pytest.fixture
def dataset(db_session):
    """Two employees, three invoices, every invoice with a stored file."""
    first = submission_service.create_submission(
        basic_data(email="a@b.com", name="Ahmed Ali", storeName="Cairo Branch", storeCode="CAI-01"),
        [
            {"id": "1", "model": "UE55AU7000UXEG", "salesDate": "2025-01-05"},
            {"id": "2", "model": "RS68AB820B1/MR", "salesDate": "2025-02-10"},
        ],
        files_by_field={
            "invoiceFile_1": file_storage(make_jpeg(), "tv.jpg"),
            "invoiceFile_2": file_storage(make_jpeg(), "fridge.jpg"),
        },
    )
    second = submission_service.create_submission(
        basic_data(email="mona@example.com", name="Mona Hassan", storeName="Alex Mall", storeCode="ALX-02"),
        [{"id": "1", "model": "WW11B944DGB/AS", "salesDate": "2025-02-20"}],
        files_by_field={"invoiceFile_1": file_storage(make_jpeg(), "washer.jpg")},
    )
    return first.id, second.id


def upload_count(upload_folder):
    return len(os.listdir(upload_folder))


class TestFullPurge:

    def test_deletes_everything(self, client, dataset, admin_headers, db_session, upload_folder):
        assert upload_count(upload_folder) == 3

        resp = client.delete('/api/submissions', headers=admin_headers)

        assert resp.status_code == 200
        body = resp.get_json()
        assert body['success'] is True
        assert body['fullPurge'] is True
        assert body['deleted'] == {'invoices': 3, 'submissions': 2, 'employees': 2, 'files': 3}
        assert db_session.query(Invoice).count() == 0
        assert db_session.query(Submission).count() == 0
        assert db_session.query(Employee).count() == 0
        assert upload_count(upload_folder) == 0


class TestFilteredPurge:

    def test_scoped_by_filters(self, client, dataset, admin_headers, db_session, upload_folder):
        resp = client.delete('/api/submissions/filtered', headers=admin_headers, json={
            'filters': {'dateFrom': '2025-02-01', 'dateTo': '2025-02-28'},
        })

        assert resp.status_code == 200
        assert resp.get_json()['deleted']['invoices'] == 2
        remaining = db_session.query(Invoice).all()
        assert [i.sales_date for i in remaining] == ['2025-01-05']
        assert upload_count(upload_folder) == 1

    def test_deletes_submissions_left_empty(self, client, dataset, admin_headers, db_session):
        first_id, second_id = dataset

        resp = client.delete('/api/submissions/filtered', headers=admin_headers, json={
            'filters': {'store': 'ALX'},
        })

        assert resp.get_json()['deleted']['submissions'] == 1
        assert db_session.get(Submission, second_id) is None
        assert db_session.get(Submission, first_id) is not None
        # Employees are only removed by a full purge
        assert db_session.query(Employee).count() == 2

    def test_keeps_submission_with_remaining_invoices(self, client, dataset, admin_headers, db_session):
        first_id, _ = dataset

        resp = client.delete('/api/submissions/filtered', headers=admin_headers, json={
            'filters': {'model': 'UE55'},
        })

        assert resp.get_json()['deleted'] == {'invoices': 1, 'submissions': 0, 'employees': 0, 'files': 1}
        assert [i.model for i in db_session.get(Submission, first_id).invoices] == ['RS68AB820B1/MR']

    def test_no_match(self, client, dataset, admin_headers, db_session):
        resp = client.delete('/api/submissions/filtered', headers=admin_headers, json={
            'filters': {'name': 'nobody'},
        })

        assert resp.status_code == 200
        assert resp.get_json()['message'] == 'No data matches the selected filters'
        assert db_session.query(Invoice).count() == 3

    def test_empty_filters_require_confirmation(self, client, dataset, admin_headers, db_session):
        resp = client.delete('/api/submissions/filtered', headers=admin_headers, json={'filters': {}})

        assert resp.status_code == 400
        assert db_session.query(Invoice).count() == 3

    def test_confirmed_empty_filters_purge_everything(self, client, dataset, admin_headers, db_session):
        resp = client.delete('/api/submissions/filtered', headers=admin_headers, json={
            'filters': {'name': ' '},
            'confirmFullPurge': True,
        })

        assert resp.status_code == 200
        assert resp.get_json()['fullPurge'] is True
        assert db_session.query(Employee).count() == 0

    def test_same_rows_as_listing(self, dataset, db_session):
        filters = SubmissionFilters(name="ahmed", date_from="2025-02-01")
        listed = {r.invoice_id for r in submission_service.list_joined_records(filters, include_files=False)}

        result = purge_service.filtered_purge(filters)

        assert result.invoices == len(listed)
        assert not db_session.query(Invoice).filter(Invoice.id.in_(listed)).count()


class TestInvoicePurge:

    def test_filtered_invoices_only(self, client, dataset, admin_headers, db_session, upload_folder):
        resp = client.delete('/api/invoices/filtered', headers=admin_headers, json={
            'filters': {'name': 'ahmed'},
        })

        assert resp.get_json()['deleted']['invoices'] == 2
        assert db_session.query(Submission).count() == 2
        assert db_session.query(Invoice).count() == 1
        assert upload_count(upload_folder) == 1

    def test_empty_filters_delete_all_invoices(self, client, dataset, admin_headers, db_session):
        resp = client.delete('/api/invoices/filtered', headers=admin_headers, json={})

        assert resp.get_json()['deleted']['invoices'] == 3
        assert db_session.query(Submission).count() == 2
        assert db_session.query(Employee).count() == 2

    def test_nothing_to_delete(self, client, admin_headers, db_session):
        resp = client.delete('/api/invoices/filtered', headers=admin_headers, json={'filters': {}})

        assert resp.status_code == 200
        assert resp.get_json()['message'] == 'No invoices to delete'


class TestSingleInvoiceDelete:

    def test_delete_invoice(self, client, dataset, admin_headers, db_session, upload_folder):
        invoice = db_session.query(Invoice).filter_by(model='WW11B944DGB/AS').one()

        resp = client.delete(f'/api/invoices/{invoice.id}', headers=admin_headers)

        assert resp.status_code == 200
        assert db_session.query(Invoice).count() == 2
        assert db_session.query(Submission).count() == 2
        assert upload_count(upload_folder) == 2

    def test_unknown_invoice(self, client, admin_headers, db_session):
        resp = client.delete('/api/invoices/9999', headers=admin_headers)
        assert resp.status_code == 404

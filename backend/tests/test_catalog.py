"""
Model catalog tests.

Verifies:
- CRUD with unique names and required fields
- Delete is blocked while any invoice carries the model name
- Renames do not rewrite existing invoices
"""

import pytest

from conftest import basic_data
from invoicedesk.models import CatalogModel, Invoice
from invoicedesk.services import catalog_service, submission_service


def create_model(client, headers, **payload):
    body = {'name': 'X1', 'category': 'Televisions'}
    body.update(payload)
    return client.post('/api/models', json=body, headers=headers)


class TestModelCrud:

    def test_create_and_list(self, client, admin_headers, db_session):
        resp = create_model(client, admin_headers, description='55 inch')

        assert resp.status_code == 201
        created = resp.get_json()['data']
        assert created['isActive'] is True

        listed = client.get('/api/models').get_json()['data']
        assert [m['name'] for m in listed] == ['X1']
        assert listed[0]['description'] == '55 inch'

    def test_create_with_body_session_token(self, client, admin_token, db_session):
        resp = client.post('/api/models', json={
            'sessionToken': admin_token,
            'name': 'X2',
            'category': 'Microwaves',
        })
        assert resp.status_code == 201

    @pytest.mark.parametrize('payload', [
        {'name': ''},
        {'category': None},
        {'name': '   '},
        {'unknownField': 'x'},
        {'isActive': 'maybe'},
    ])
    def test_create_validation(self, client, admin_headers, db_session, payload):
        resp = create_model(client, admin_headers, **payload)

        assert resp.status_code == 400
        assert db_session.query(CatalogModel).count() == 0

    def test_duplicate_name_on_create(self, client, admin_headers, db_session):
        create_model(client, admin_headers)
        resp = create_model(client, admin_headers, category='Other')

        assert resp.status_code == 400
        assert resp.get_json()['success'] is False
        assert db_session.query(CatalogModel).count() == 1

    def test_update(self, client, admin_headers, db_session):
        model_id = create_model(client, admin_headers).get_json()['id']

        resp = client.put(f'/api/models/{model_id}', headers=admin_headers, json={
            'category': 'Screens',
            'isActive': False,
        })

        assert resp.status_code == 200
        data = resp.get_json()['data']
        assert data['category'] == 'Screens'
        assert data['isActive'] is False

    def test_rename_to_existing_name(self, client, admin_headers, db_session):
        create_model(client, admin_headers, name='X1')
        other_id = create_model(client, admin_headers, name='X2').get_json()['id']

        resp = client.put(f'/api/models/{other_id}', headers=admin_headers, json={'name': 'X1'})

        assert resp.status_code == 400
        assert db_session.get(CatalogModel, other_id).name == 'X2'

    def test_update_unknown(self, client, admin_headers, db_session):
        resp = client.put('/api/models/9999', headers=admin_headers, json={'category': 'x'})
        assert resp.status_code == 404

    def test_active_only_list(self, client, admin_headers, db_session):
        create_model(client, admin_headers, name='On')
        create_model(client, admin_headers, name='Off', isActive=False)

        active = client.get('/api/models/active').get_json()['data']

        assert [m['name'] for m in active] == ['On']

    def test_list_ordered_by_category_then_name(self, client, db_session):
        catalog_service.seed_default_models()

        listed = client.get('/api/models').get_json()['data']

        keys = [(m['category'], m['name']) for m in listed]
        assert keys == sorted(keys)
        assert len(keys) == 5

    def test_seed_is_idempotent(self, db_session):
        assert catalog_service.seed_default_models() == 5
        assert catalog_service.seed_default_models() == 0


class TestModelDelete:

    def test_delete_blocked_while_in_use(self, client, admin_headers, db_session):
        model_id = create_model(client, admin_headers, name='X1').get_json()['id']
        submission_service.create_submission(basic_data(), [
            {'model': 'X1', 'salesDate': '2025-01-01'},
            {'model': 'X1', 'salesDate': '2025-01-02'},
        ])

        resp = client.delete(f'/api/models/{model_id}', headers=admin_headers)

        assert resp.status_code == 400
        body = resp.get_json()
        assert body['success'] is False
        assert body['invoiceCount'] == 2
        assert '2 invoice' in body['message']

        model = db_session.get(CatalogModel, model_id)
        assert model is not None
        assert model.name == 'X1'
        assert [m['name'] for m in client.get('/api/models').get_json()['data']] == ['X1']

    def test_delete_unused(self, client, admin_headers, db_session):
        model_id = create_model(client, admin_headers, name='X1').get_json()['id']

        resp = client.delete(f'/api/models/{model_id}', headers=admin_headers)

        assert resp.status_code == 200
        assert client.get('/api/models').get_json()['data'] == []

    def test_delete_unknown(self, client, admin_headers, db_session):
        resp = client.delete('/api/models/9999', headers=admin_headers)
        assert resp.status_code == 404

    def test_rename_keeps_invoice_model_names(self, client, admin_headers, db_session):
        model_id = create_model(client, admin_headers, name='X1').get_json()['id']
        submission_service.create_submission(basic_data(), [{'model': 'X1', 'salesDate': '2025-01-01'}])

        client.put(f'/api/models/{model_id}', headers=admin_headers, json={'name': 'X1-new'})

        assert db_session.query(Invoice).one().model == 'X1'
        # The old name no longer blocks deleting the renamed model
        assert client.delete(f'/api/models/{model_id}', headers=admin_headers).status_code == 200

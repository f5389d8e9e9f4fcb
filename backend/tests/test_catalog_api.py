"""Catalog, serviceability, lead capture and report endpoint tests."""

import io
from datetime import timedelta

from dairy_api.time_utils import today


class TestProducts:
    def test_public_catalog_needs_no_token(self, client, variant):
        response = client.get('/api/products/public')
        assert response.status_code == 200
        [product] = response.get_json()['data']
        assert product['name'] == 'Cow Milk'
        assert product['variants'][0]['id'] == variant.id

    def test_hidden_variants_left_out(self, client, admin_headers, variant):
        client.put(f'/api/depot-product-variants/{variant.id}', json={'is_hidden': True}, headers=admin_headers)

        response = client.get('/api/products/public')
        assert response.get_json()['data'] == []

    def test_admin_creates_product(self, client, admin_headers):
        response = client.post(
            '/api/products',
            json={'name': 'Paneer', 'unit': '200 g', 'isDairyProduct': True},
            headers=admin_headers,
        )
        assert response.status_code == 201
        data = response.get_json()
        assert data['name'] == 'Paneer'
        assert data['is_dairy_product'] is True

    def test_product_with_image_upload(self, client, admin_headers):
        response = client.post(
            '/api/products',
            data={'name': 'Ghee', 'image': (io.BytesIO(b'\x89PNG fake'), 'ghee.png')},
            content_type='multipart/form-data',
            headers=admin_headers,
        )
        assert response.status_code == 201
        assert response.get_json()['attachment_url'].startswith('/uploads/')

    def test_member_cannot_create_product(self, client, member_headers):
        response = client.post('/api/products', json={'name': 'Curd'}, headers=member_headers)
        assert response.status_code == 403

    def test_product_with_variants_not_deleted(self, client, admin_headers, product, variant):
        response = client.delete(f'/api/products/{product.id}', headers=admin_headers)
        assert response.status_code == 400

    def test_list_is_paginated(self, client, member_headers, product):
        response = client.get('/api/products?limit=5', headers=member_headers)
        assert response.status_code == 200
        data = response.get_json()
        assert data['totalRecords'] == 1
        assert data['currentPage'] == 1
        assert data['totalPages'] == 1


class TestServiceability:
    def test_area_pincodes_from_string(self, client, admin_headers, depot):
        response = client.post(
            '/api/depots/areas',
            json={'name': 'Kothrud', 'pincodes': '411038, 411029', 'depot_id': depot.id},
            headers=admin_headers,
        )
        assert response.status_code == 201
        assert response.get_json()['pincodes'] == ['411038', '411029']

        response = client.get('/api/depots/serviceable?pincode=411029')
        data = response.get_json()
        assert data['serviceable'] is True
        assert data['areas'][0]['depot_id'] == depot.id

    def test_unknown_pincode(self, client, admin_headers, depot):
        client.post(
            '/api/depots/areas',
            json={'name': 'Kothrud', 'pincodes': ['411038'], 'depot_id': depot.id},
            headers=admin_headers,
        )
        # prefix of a listed pincode is not a match
        response = client.get('/api/depots/serviceable?pincode=4110')
        assert response.get_json() == {'serviceable': False, 'areas': []}


class TestLeads:
    def test_visitor_leaves_lead(self, client, admin_headers, db_session):
        response = client.post(
            '/api/leads',
            json={'name': 'Meera', 'mobile': '9123456789', 'pincode': '411045'},
        )
        assert response.status_code == 201
        lead = response.get_json()
        assert lead['status'] == 'NEW'

        response = client.patch(
            f"/api/leads/{lead['id']}/status",
            json={'status': 'contacted', 'notes': 'Called back'},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.get_json()['status'] == 'CONTACTED'

    def test_lead_needs_valid_mobile(self, client, db_session):
        response = client.post('/api/leads', json={'name': 'Meera', 'mobile': '12345'})
        assert response.status_code == 400
        assert 'mobile' in response.get_json()['error']['fields']

        response = client.post('/api/leads', json={'mobile': '9123456789'})
        assert response.status_code == 400

    def test_member_cannot_list_leads(self, client, member_headers):
        assert client.get('/api/leads', headers=member_headers).status_code == 403


class TestReports:
    def _order(self, client, member_headers, variant, address):
        return client.post(
            '/api/product-orders',
            json={
                'delivery_address_id': address.id,
                'subscriptions': [{
                    'depot_product_variant_id': variant.id,
                    'period': 3,
                    'delivery_schedule': 'DAILY',
                    'qty': 1,
                    'start_date': (today() + timedelta(days=1)).isoformat(),
                }],
            },
            headers=member_headers,
        )

    def test_delivery_report_by_date(self, client, admin_headers, member_headers, variant, agency, address):
        self._order(client, member_headers, variant, address)

        response = client.get('/api/reports/deliveries?group_by=date', headers=admin_headers)
        assert response.status_code == 200
        rows = response.get_json()['data']
        assert len(rows) == 3
        assert all(row['by_status']['PENDING']['quantity'] == 1 for row in rows)

    def test_subscription_report(self, client, admin_headers, member_headers, variant, agency, address):
        self._order(client, member_headers, variant, address)

        response = client.get('/api/reports/subscriptions', headers=admin_headers)
        [row] = response.get_json()['data']
        assert row['product'] == 'Cow Milk'
        assert row['quantity'] == 3
        assert row['amount'] == 87.0

    def test_bad_group_by(self, client, admin_headers):
        response = client.get('/api/reports/deliveries?group_by=weekday', headers=admin_headers)
        assert response.status_code == 400

    def test_reversed_range(self, client, admin_headers):
        response = client.get(
            '/api/reports/wallets?from_date=2026-10-19&to_date=2026-10-01',
            headers=admin_headers,
        )
        assert response.status_code == 400

    def test_member_cannot_see_reports(self, client, member_headers):
        assert client.get('/api/reports/wallets', headers=member_headers).status_code == 403

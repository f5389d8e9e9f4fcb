"""
Depot stock tests: every movement lands in the stock ledger and the
variant's closing_qty always equals received minus issued.
"""

from dairy_api.extensions import db
from dairy_api.models import DepotProductVariant, StockLedger


def _closing(variant_id) -> int:
    db.session.expire_all()
    return db.session.get(DepotProductVariant, variant_id).closing_qty


def _transfer(client, headers, source, target, quantity):
    return client.post(
        '/api/transfers',
        json={
            'from_depot_id': source.depot_id,
            'to_depot_id': target.depot_id,
            'details': [{
                'from_depot_variant_id': source.id,
                'to_depot_variant_id': target.id,
                'quantity': quantity,
            }],
        },
        headers=headers,
    )


class TestLedger:
    def test_opening_stock_booked(self, client, admin_headers, variant):
        response = client.get(f'/api/stock-ledgers?variant_id={variant.id}', headers=admin_headers)
        assert response.status_code == 200
        [row] = response.get_json()['data']
        assert row['module'] == 'opening'
        assert row['received_qty'] == 100

        response = client.get(f'/api/stock-ledgers/closing-stock/{variant.id}', headers=admin_headers)
        data = response.get_json()
        assert data['closing_qty'] == 100
        assert data['ledger_balance'] == 100

    def test_editing_closing_qty_books_adjustment(self, client, admin_headers, variant):
        response = client.put(
            f'/api/depot-product-variants/{variant.id}',
            json={'closing_qty': 80},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.get_json()['closing_qty'] == 80

        adjustment = db.session.query(StockLedger).filter_by(variant_id=variant.id, module='adjustment').one()
        assert adjustment.issued_qty == 20
        assert adjustment.received_qty == 0

    def test_negative_closing_qty_rejected(self, client, admin_headers, variant):
        response = client.put(
            f'/api/depot-product-variants/{variant.id}',
            json={'closing_qty': -1},
            headers=admin_headers,
        )
        assert response.status_code == 400

    def test_member_cannot_read_ledger(self, client, member_headers, variant):
        assert client.get('/api/stock-ledgers', headers=member_headers).status_code == 403


class TestTransfers:
    def test_transfer_moves_stock(self, client, admin_headers, variant, second_variant):
        response = _transfer(client, admin_headers, variant, second_variant, 30)
        assert response.status_code == 201
        transfer = response.get_json()
        assert transfer['transfer_no']
        assert len(transfer['details']) == 1

        assert _closing(variant.id) == 70
        assert _closing(second_variant.id) == 30

        rows = db.session.query(StockLedger).filter_by(module='transfer', foreign_key=transfer['id']).all()
        assert sorted((r.received_qty, r.issued_qty) for r in rows) == [(0, 30), (30, 0)]

    def test_insufficient_stock(self, client, admin_headers, variant, second_variant):
        response = _transfer(client, admin_headers, variant, second_variant, 101)
        assert response.status_code == 400
        assert _closing(variant.id) == 100
        assert db.session.query(StockLedger).filter_by(module='transfer').count() == 0

    def test_same_depot_rejected(self, client, admin_headers, variant):
        response = _transfer(client, admin_headers, variant, variant, 5)
        assert response.status_code == 400

    def test_delete_restores_stock(self, client, admin_headers, variant, second_variant):
        transfer = _transfer(client, admin_headers, variant, second_variant, 40).get_json()

        response = client.delete(f"/api/transfers/{transfer['id']}", headers=admin_headers)
        assert response.status_code == 200
        assert _closing(variant.id) == 100
        assert _closing(second_variant.id) == 0

    def test_update_replaces_details(self, client, admin_headers, variant, second_variant):
        transfer = _transfer(client, admin_headers, variant, second_variant, 40).get_json()

        response = client.put(
            f"/api/transfers/{transfer['id']}",
            json={
                'from_depot_id': variant.depot_id,
                'to_depot_id': second_variant.depot_id,
                'details': [{
                    'from_depot_variant_id': variant.id,
                    'to_depot_variant_id': second_variant.id,
                    'quantity': 10,
                }],
            },
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert _closing(variant.id) == 90
        assert _closing(second_variant.id) == 10

    def test_cannot_delete_transfer_already_sent_on(self, client, admin_headers, variant, second_variant):
        first = _transfer(client, admin_headers, variant, second_variant, 10).get_json()
        _transfer(client, admin_headers, second_variant, variant, 10)

        response = client.delete(f"/api/transfers/{first['id']}", headers=admin_headers)
        assert response.status_code == 400
        assert _closing(variant.id) == 100
        assert _closing(second_variant.id) == 0

    def test_cannot_shrink_transfer_already_sent_on(self, client, admin_headers, variant, second_variant):
        first = _transfer(client, admin_headers, variant, second_variant, 10).get_json()
        _transfer(client, admin_headers, second_variant, variant, 10)

        response = client.put(
            f"/api/transfers/{first['id']}",
            json={
                'from_depot_id': variant.depot_id,
                'to_depot_id': second_variant.depot_id,
                'details': [{
                    'from_depot_variant_id': variant.id,
                    'to_depot_variant_id': second_variant.id,
                    'quantity': 5,
                }],
            },
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert _closing(second_variant.id) == 0

    def test_bad_transfer_date(self, client, admin_headers, variant, second_variant):
        response = client.post(
            '/api/transfers',
            json={
                'from_depot_id': variant.depot_id,
                'to_depot_id': second_variant.depot_id,
                'transfer_date': 'not-a-date',
                'details': [{
                    'from_depot_variant_id': variant.id,
                    'to_depot_variant_id': second_variant.id,
                    'quantity': 1,
                }],
            },
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert response.get_json()['error']['fields'] == {'transfer_date': 'invalid date'}
        assert _closing(variant.id) == 100

    def test_non_numeric_depot_filter(self, client, admin_headers):
        response = client.get('/api/transfers?depot_id=abc', headers=admin_headers)
        assert response.status_code == 400

    def test_member_cannot_transfer(self, client, member_headers, variant, second_variant):
        assert _transfer(client, member_headers, variant, second_variant, 1).status_code == 403


class TestPurchasesAndWastage:
    def _purchase(self, client, headers, vendor, variant, quantity=50):
        return client.post(
            '/api/purchases',
            json={
                'vendor_id': vendor.id,
                'depot_id': variant.depot_id,
                'invoice_no': 'SD-881',
                'details': [{'variant_id': variant.id, 'quantity': quantity, 'purchase_rate': 22.5}],
            },
            headers=headers,
        )

    def test_purchase_receives_stock(self, client, admin_headers, vendor, variant):
        response = self._purchase(client, admin_headers, vendor, variant)
        assert response.status_code == 201
        purchase = response.get_json()
        assert purchase['purchase_no']
        assert purchase['details'][0]['purchase_rate'] == 22.5
        assert _closing(variant.id) == 150

    def test_purchase_variant_must_match_depot(self, client, admin_headers, vendor, variant, second_variant):
        response = client.post(
            '/api/purchases',
            json={
                'vendor_id': vendor.id,
                'depot_id': variant.depot_id,
                'details': [{'variant_id': second_variant.id, 'quantity': 5}],
            },
            headers=admin_headers,
        )
        assert response.status_code == 400

    def test_delete_purchase(self, client, admin_headers, vendor, variant):
        purchase = self._purchase(client, admin_headers, vendor, variant).get_json()

        response = client.delete(f"/api/purchases/{purchase['id']}", headers=admin_headers)
        assert response.status_code == 200
        assert _closing(variant.id) == 100

    def test_cannot_delete_issued_purchase(self, client, admin_headers, vendor, second_variant, variant):
        # second_variant starts empty, so its only stock is the purchase
        purchase = self._purchase(client, admin_headers, vendor, second_variant, quantity=20).get_json()
        _transfer(client, admin_headers, second_variant, variant, 15)

        response = client.delete(f"/api/purchases/{purchase['id']}", headers=admin_headers)
        assert response.status_code == 400
        assert _closing(second_variant.id) == 5

    def test_wastage_issues_stock(self, client, admin_headers, vendor, variant):
        response = client.post(
            '/api/wastage',
            json={
                'vendor_id': vendor.id,
                'depot_id': variant.depot_id,
                'wastage_date': '2026-10-18',
                'details': [{'variant_id': variant.id, 'quantity': 4}],
            },
            headers=admin_headers,
        )
        assert response.status_code == 201
        wastage = response.get_json()
        assert _closing(variant.id) == 96

        response = client.delete(f"/api/wastage/{wastage['id']}", headers=admin_headers)
        assert response.status_code == 200
        assert _closing(variant.id) == 100

    def test_wastage_requires_date(self, client, admin_headers, vendor, variant):
        response = client.post(
            '/api/wastage',
            json={
                'vendor_id': vendor.id,
                'depot_id': variant.depot_id,
                'details': [{'variant_id': variant.id, 'quantity': 4}],
            },
            headers=admin_headers,
        )
        assert response.status_code == 400


class TestDepotAdminScope:
    def test_lists_only_own_depot(self, client, depot_admin_headers, variant, second_variant):
        response = client.get('/api/depot-product-variants', headers=depot_admin_headers)
        assert response.status_code == 200
        ids = [v['id'] for v in response.get_json()['data']]
        assert ids == [second_variant.id]

    def test_cannot_edit_other_depot(self, client, depot_admin_headers, variant):
        response = client.put(
            f'/api/depot-product-variants/{variant.id}',
            json={'mrp': 32},
            headers=depot_admin_headers,
        )
        assert response.status_code == 403

    def test_creates_in_own_depot(self, client, depot_admin_headers, second_depot, product):
        response = client.post(
            '/api/depot-product-variants',
            json={'product_id': product.id, 'name': 'Cow Milk 1 L', 'mrp': 58, 'closing_qty': 12},
            headers=depot_admin_headers,
        )
        assert response.status_code == 201
        data = response.get_json()
        assert data['depot_id'] == second_depot.id
        assert data['closing_qty'] == 12

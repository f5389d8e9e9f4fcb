"""
Vendor order and vendor payment tests.

An order line is dispatched by the vendor, received by its agency and
counted by that agency's supervisor; each quantity is capped by the one
before it. Payments are allocated across a vendor's purchases and keep
each purchase's paid_amount in step.
"""

from datetime import timedelta

import pytest

from dairy_api.extensions import db
from dairy_api.models import Product, VendorOrder
from dairy_api.services import partner_service, wallet_service
from dairy_api.time_utils import today

from conftest import PASSWORD, auth_headers

ORDER_DATE = '2026-10-19'


@pytest.fixture
def supplier(db_session):
    """Vendor with its own login."""
    vendor = partner_service.create_vendor(
        {"name": "Gokul Dairy", "mobile": "9000000011", "email": "gokul@example.com", "is_dairy_supplier": True},
        password=PASSWORD,
    )
    db_session.commit()
    return vendor


@pytest.fixture
def supplier_headers(supplier):
    return auth_headers(supplier.user)


@pytest.fixture
def rival_supplier_headers(db_session):
    vendor = partner_service.create_vendor(
        {"name": "Chitale Dairy", "mobile": "9000000012", "email": "chitale@example.com"},
        password=PASSWORD,
    )
    db_session.commit()
    return auth_headers(vendor.user)


@pytest.fixture
def other_agency(db_session, second_depot):
    agency = partner_service.create_agency(
        {
            "name": "Baner Agency",
            "mobile": "9000000003",
            "address1": "Shop 1, Baner Road",
            "city": "Pune",
            "pincode": "411045",
            "email": "baner.agency@example.com",
            "depot_id": second_depot.id,
        },
        password=PASSWORD,
    )
    db_session.commit()
    return agency


@pytest.fixture
def supervisor_headers(db_session, agency):
    supervisor = partner_service.create_supervisor(
        {"name": "Sunil Supervisor", "mobile": "9000000021", "email": "sunil@example.com", "agency_id": agency.id},
        password=PASSWORD,
    )
    db_session.commit()
    return auth_headers(supervisor.user)


def _place_order(client, headers, supplier, agency, variant, **overrides):
    body = {
        "order_date": ORDER_DATE,
        "vendor_id": supplier.id,
        "order_items": [{
            "product_id": variant.product_id,
            "agency_id": agency.id,
            "depot_variant_id": variant.id,
            "quantity": 10,
            "rate": 20,
        }],
    }
    body.update(overrides)
    return client.post('/api/vendor-orders', json=body, headers=headers)


def _record(client, headers, order, action, key, quantity):
    return client.put(
        f"/api/vendor-orders/{order['id']}/{action}",
        json={"items": [{"order_item_id": order['items'][0]['id'], key: quantity}]},
        headers=headers,
    )


# =============================================================================
# PLACING ORDERS
# =============================================================================


class TestPlaceOrder:
    def test_create_allocates_po_number(self, client, admin_headers, supplier, agency, variant):
        response = _place_order(client, admin_headers, supplier, agency, variant)
        assert response.status_code == 201

        order = response.get_json()
        assert order['po_number'] == '2627-00001'
        assert order['status'] == 'PENDING'
        assert order['total_amount'] == 200.0
        [item] = order['items']
        assert item['agency_id'] == agency.id
        assert item['depot_id'] == variant.depot_id
        assert item['price_at_purchase'] == 20.0
        assert item['delivered_quantity'] is None
        assert order['recorded_by_agencies'] == []

    def test_zero_quantity_lines_dropped(self, client, admin_headers, supplier, agency, other_agency, variant):
        response = _place_order(
            client, admin_headers, supplier, agency, variant,
            order_items=[
                {"product_id": variant.product_id, "agency_id": agency.id, "quantity": 5},
                {"product_id": variant.product_id, "agency_id": other_agency.id, "quantity": 0},
            ],
        )
        assert response.status_code == 201
        assert [i['agency_id'] for i in response.get_json()['items']] == [agency.id]

    def test_duplicate_po_number(self, client, admin_headers, supplier, agency, variant):
        _place_order(client, admin_headers, supplier, agency, variant, po_number='PO-77')
        response = _place_order(client, admin_headers, supplier, agency, variant, po_number='PO-77')
        assert response.status_code == 409

    def test_variant_must_match_product(self, client, admin_headers, supplier, agency, variant, db_session):
        other = Product(name="Buffalo Milk", unit="500 ml", is_dairy_product=True)
        db_session.add(other)
        db_session.commit()
        response = _place_order(
            client, admin_headers, supplier, agency, variant,
            order_items=[{"product_id": other.id, "agency_id": agency.id, "depot_variant_id": variant.id, "quantity": 1}],
        )
        assert response.status_code == 400

    def test_bad_order_date(self, client, admin_headers, supplier, agency, variant):
        response = _place_order(client, admin_headers, supplier, agency, variant, order_date='19/10/2026')
        assert response.status_code == 400
        assert response.get_json()['error']['fields'] == {'order_date': 'invalid date'}

    def test_member_cannot_place(self, client, member_headers, supplier, agency, variant):
        assert _place_order(client, member_headers, supplier, agency, variant).status_code == 403

    def test_update_replaces_lines(self, client, admin_headers, supplier, agency, other_agency, variant):
        order = _place_order(client, admin_headers, supplier, agency, variant).get_json()
        response = client.put(
            f"/api/vendor-orders/{order['id']}",
            json={"order_items": [{"product_id": variant.product_id, "agency_id": other_agency.id, "quantity": 4, "rate": 25}]},
            headers=admin_headers,
        )
        assert response.status_code == 200
        updated = response.get_json()
        assert [(i['agency_id'], i['quantity']) for i in updated['items']] == [(other_agency.id, 4)]
        assert updated['total_amount'] == 100.0

    def test_delete_pending_order(self, client, admin_headers, supplier, agency, variant):
        order = _place_order(client, admin_headers, supplier, agency, variant).get_json()
        assert client.delete(f"/api/vendor-orders/{order['id']}", headers=admin_headers).status_code == 200
        assert db.session.query(VendorOrder).count() == 0

    def test_list_filters(self, client, admin_headers, supplier, agency, other_agency, variant):
        _place_order(client, admin_headers, supplier, agency, variant)
        _place_order(
            client, admin_headers, supplier, agency, variant,
            order_items=[{"product_id": variant.product_id, "agency_id": other_agency.id, "quantity": 3}],
        )
        response = client.get(f'/api/vendor-orders?agency_id={other_agency.id}', headers=admin_headers)
        assert response.get_json()['totalRecords'] == 1

        response = client.get('/api/vendor-orders?search=Gokul', headers=admin_headers)
        assert response.get_json()['totalRecords'] == 2

        assert client.get('/api/vendor-orders?vendor_id=abc', headers=admin_headers).status_code == 400


# =============================================================================
# DISPATCH, RECEIPT AND SUPERVISOR COUNT
# =============================================================================


class TestOrderFlow:
    def test_full_flow(self, client, admin_headers, supplier, supplier_headers, agency, agency_headers,
                       supervisor_headers, variant):
        order = _place_order(client, admin_headers, supplier, agency, variant).get_json()

        mine = client.get('/api/vendor-orders/my', headers=supplier_headers).get_json()
        assert [o['id'] for o in mine['data']] == [order['id']]

        response = client.patch(
            f"/api/vendor-orders/{order['id']}/status", json={"status": "ASSIGNED"}, headers=supplier_headers
        )
        assert response.get_json()['status'] == 'ASSIGNED'

        assert client.get('/api/vendor-orders/my-supervisor-orders', headers=supervisor_headers).get_json()['totalRecords'] == 0

        response = _record(client, supplier_headers, order, 'record-delivery', 'delivered_quantity', 8)
        assert response.status_code == 200
        delivered = response.get_json()
        assert delivered['status'] == 'DELIVERED'
        assert delivered['items'][0]['delivered_quantity'] == 8
        assert delivered['delivered_at']

        response = _record(client, agency_headers, order, 'record-receipt', 'received_quantity', 7)
        assert response.status_code == 200
        received = response.get_json()
        assert received['status'] == 'RECEIVED'
        assert received['recorded_by_agencies'] == [agency.id]

        assert client.get('/api/vendor-orders/my-supervisor-orders', headers=supervisor_headers).get_json()['totalRecords'] == 1
        response = _record(client, supervisor_headers, order, 'record-supervisor-quantity', 'supervisor_quantity', 7)
        assert response.status_code == 200
        assert response.get_json()['items'][0]['supervisor_quantity'] == 7

    def test_quantities_capped_by_previous_step(self, client, admin_headers, supplier, supplier_headers, agency,
                                                agency_headers, supervisor_headers, variant):
        order = _place_order(client, admin_headers, supplier, agency, variant).get_json()

        assert _record(client, supplier_headers, order, 'record-delivery', 'delivered_quantity', 11).status_code == 400
        _record(client, supplier_headers, order, 'record-delivery', 'delivered_quantity', 8)
        assert _record(client, agency_headers, order, 'record-receipt', 'received_quantity', 9).status_code == 400
        _record(client, agency_headers, order, 'record-receipt', 'received_quantity', 6)
        response = _record(client, supervisor_headers, order, 'record-supervisor-quantity', 'supervisor_quantity', 7)
        assert response.status_code == 400

    def test_negative_quantity_rejected(self, client, admin_headers, supplier, supplier_headers, agency, variant):
        order = _place_order(client, admin_headers, supplier, agency, variant).get_json()
        response = _record(client, supplier_headers, order, 'record-delivery', 'delivered_quantity', -1)
        assert response.status_code == 400

    def test_delivery_recorded_once(self, client, admin_headers, supplier, supplier_headers, agency, variant):
        order = _place_order(client, admin_headers, supplier, agency, variant).get_json()
        _record(client, supplier_headers, order, 'record-delivery', 'delivered_quantity', 10)
        response = _record(client, supplier_headers, order, 'record-delivery', 'delivered_quantity', 9)
        assert response.status_code == 400

    def test_receipt_needs_delivery(self, client, admin_headers, supplier, agency, agency_headers, variant):
        order = _place_order(client, admin_headers, supplier, agency, variant).get_json()
        response = _record(client, agency_headers, order, 'record-receipt', 'received_quantity', 1)
        assert response.status_code == 400

    def test_dispatched_order_locked(self, client, admin_headers, supplier, supplier_headers, agency, variant):
        order = _place_order(client, admin_headers, supplier, agency, variant).get_json()
        _record(client, supplier_headers, order, 'record-delivery', 'delivered_quantity', 10)

        response = client.put(f"/api/vendor-orders/{order['id']}", json={"notes": "late"}, headers=admin_headers)
        assert response.status_code == 400
        assert client.delete(f"/api/vendor-orders/{order['id']}", headers=admin_headers).status_code == 400


# =============================================================================
# ROLE SCOPING
# =============================================================================


class TestOrderAccess:
    def test_other_vendor_cannot_dispatch(self, client, admin_headers, supplier, rival_supplier_headers, agency, variant):
        order = _place_order(client, admin_headers, supplier, agency, variant).get_json()
        response = _record(client, rival_supplier_headers, order, 'record-delivery', 'delivered_quantity', 5)
        assert response.status_code == 403
        assert client.get(f"/api/vendor-orders/{order['id']}", headers=rival_supplier_headers).status_code == 403

    def test_vendor_can_only_accept(self, client, admin_headers, supplier, supplier_headers, agency, variant):
        order = _place_order(client, admin_headers, supplier, agency, variant).get_json()
        response = client.patch(
            f"/api/vendor-orders/{order['id']}/status", json={"status": "RECEIVED"}, headers=supplier_headers
        )
        assert response.status_code == 400

    def test_unknown_status(self, client, admin_headers, supplier, agency, variant):
        order = _place_order(client, admin_headers, supplier, agency, variant).get_json()
        response = client.patch(f"/api/vendor-orders/{order['id']}/status", json={"status": "LOST"}, headers=admin_headers)
        assert response.status_code == 400

    def test_agency_receives_only_its_lines(self, client, admin_headers, supplier, supplier_headers, agency,
                                            other_agency, variant):
        order = _place_order(client, admin_headers, supplier, agency, variant).get_json()
        _record(client, supplier_headers, order, 'record-delivery', 'delivered_quantity', 10)

        other_headers = auth_headers(other_agency.user)
        response = _record(client, other_headers, order, 'record-receipt', 'received_quantity', 10)
        assert response.status_code == 403
        assert client.get('/api/vendor-orders/my-agency-orders', headers=other_headers).get_json()['totalRecords'] == 0

    def test_agency_cannot_list_all_orders(self, client, agency_headers):
        assert client.get('/api/vendor-orders', headers=agency_headers).status_code == 403


# =============================================================================
# DAILY REQUIREMENTS
# =============================================================================


class TestDeliveryRequirements:
    @pytest.fixture
    def paid_subscription(self, client, admin_user, member_user, member_headers, variant, agency, address):
        wallet_service.admin_add_funds(member_user.member.id, 500, admin_id=admin_user.id)
        db.session.commit()
        body = {
            "delivery_address_id": address.id,
            "wallet_amount": 500,
            "subscriptions": [{
                "depot_product_variant_id": variant.id,
                "period": 7,
                "delivery_schedule": "DAILY",
                "qty": 2,
                "start_date": (today() + timedelta(days=1)).isoformat(),
            }],
        }
        order = client.post('/api/product-orders', json=body, headers=member_headers).get_json()
        assert order['payment_status'] == 'PAID'
        return order

    def test_grouped_by_variant_and_agency(self, client, admin_headers, paid_subscription, variant, agency):
        tomorrow = (today() + timedelta(days=1)).isoformat()
        response = client.get(f'/api/vendor-orders/details?date={tomorrow}', headers=admin_headers)
        assert response.status_code == 200

        report = response.get_json()
        [group] = report['data']
        assert group['variant_id'] == variant.id
        assert group['agency_id'] == agency.id
        assert group['agency'] == agency.name
        assert group['total_quantity'] == 2
        assert group['member_count'] == 1
        assert group['members'][0]['recipient_name'] == 'Asha'
        assert report['summary']['total_deliveries'] == 1

    def test_agency_sees_own_deliveries(self, client, agency_headers, paid_subscription, other_agency):
        tomorrow = (today() + timedelta(days=1)).isoformat()
        response = client.get(
            f'/api/vendor-orders/details?date={tomorrow}&agency_id={other_agency.id}', headers=agency_headers
        )
        assert response.status_code == 200
        assert response.get_json()['summary']['total_quantity'] == 2

    def test_nothing_outside_period(self, client, admin_headers, paid_subscription):
        response = client.get(f'/api/vendor-orders/details?date={today().isoformat()}', headers=admin_headers)
        assert response.get_json()['data'] == []

    def test_bad_date(self, client, admin_headers):
        response = client.get('/api/vendor-orders/details?date=tomorrow', headers=admin_headers)
        assert response.status_code == 400


# =============================================================================
# VENDOR PAYMENTS
# =============================================================================


class TestPurchasePayments:
    @pytest.fixture
    def purchase(self, client, admin_headers, vendor, variant):
        """10 units at 20: 200 payable."""
        response = client.post(
            '/api/purchases',
            json={
                'purchase_date': ORDER_DATE,
                'vendor_id': vendor.id,
                'depot_id': variant.depot_id,
                'details': [{'variant_id': variant.id, 'quantity': 10, 'purchase_rate': 20}],
            },
            headers=admin_headers,
        )
        assert response.status_code == 201
        return response.get_json()

    @staticmethod
    def _pay(client, headers, vendor, purchase, amount, total=None):
        return client.post(
            '/api/purchase-payments',
            json={
                'payment_date': '2026-10-20',
                'vendor_id': vendor.id,
                'mode': 'upi',
                'total_amount': amount if total is None else total,
                'details': [{'purchase_id': purchase['id'], 'amount': amount}],
            },
            headers=headers,
        )

    @staticmethod
    def _paid(client, headers, purchase):
        return client.get(f"/api/purchases/{purchase['id']}", headers=headers).get_json()['paid_amount']

    def test_payment_raises_paid_amount(self, client, admin_headers, vendor, purchase):
        assert purchase['total_amount'] == 200.0
        assert purchase['paid_amount'] == 0.0

        response = self._pay(client, admin_headers, vendor, purchase, 150)
        assert response.status_code == 201
        payment = response.get_json()
        assert payment['payment_no'] == 'PAY-2627-00001'
        assert payment['mode'] == 'UPI'
        assert self._paid(client, admin_headers, purchase) == 150.0

    def test_overpayment_refused(self, client, admin_headers, vendor, purchase):
        self._pay(client, admin_headers, vendor, purchase, 150)
        response = self._pay(client, admin_headers, vendor, purchase, 60)
        assert response.status_code == 400
        assert self._paid(client, admin_headers, purchase) == 150.0

    def test_details_must_add_up(self, client, admin_headers, vendor, purchase):
        response = self._pay(client, admin_headers, vendor, purchase, 50, total=80)
        assert response.status_code == 400
        assert 'details' in response.get_json()['error']['fields']

    def test_purchase_of_other_vendor(self, client, admin_headers, supplier, purchase):
        assert self._pay(client, admin_headers, supplier, purchase, 50).status_code == 400

    def test_update_reallocates(self, client, admin_headers, vendor, purchase):
        payment = self._pay(client, admin_headers, vendor, purchase, 150).get_json()
        response = client.put(
            f"/api/purchase-payments/{payment['id']}",
            json={'total_amount': 200, 'details': [{'purchase_id': purchase['id'], 'amount': 200}]},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert self._paid(client, admin_headers, purchase) == 200.0

    def test_delete_restores_outstanding(self, client, admin_headers, vendor, purchase):
        payment = self._pay(client, admin_headers, vendor, purchase, 150).get_json()
        assert client.delete(f"/api/purchase-payments/{payment['id']}", headers=admin_headers).status_code == 200
        assert self._paid(client, admin_headers, purchase) == 0.0

    def test_paid_purchase_cannot_be_deleted(self, client, admin_headers, vendor, purchase):
        self._pay(client, admin_headers, vendor, purchase, 150)
        assert client.delete(f"/api/purchases/{purchase['id']}", headers=admin_headers).status_code == 400

    def test_list_and_vendor_purchases(self, client, admin_headers, vendor, purchase):
        self._pay(client, admin_headers, vendor, purchase, 100)
        listing = client.get(f'/api/purchase-payments?vendor_id={vendor.id}&mode=UPI', headers=admin_headers)
        assert listing.get_json()['totalRecords'] == 1

        response = client.get(
            f'/api/purchase-payments/vendors/{vendor.id}/purchases?from_date={ORDER_DATE}&to_date={ORDER_DATE}',
            headers=admin_headers,
        )
        assert [p['id'] for p in response.get_json()['data']] == [purchase['id']]

    def test_vendor_with_payments_kept(self, client, admin_headers, vendor, purchase):
        self._pay(client, admin_headers, vendor, purchase, 100)
        assert client.delete(f'/api/vendors/{vendor.id}', headers=admin_headers).status_code == 400

    def test_agency_cannot_pay(self, client, agency_headers, vendor, purchase):
        assert self._pay(client, agency_headers, vendor, purchase, 100).status_code == 403

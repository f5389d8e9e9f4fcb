"""
Checkout, subscription lifecycle and delivery run tests.

The fixture variant sits in an offline depot whose linked agency receives
every order placed against it.
"""

from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from dairy_api.extensions import db
from dairy_api.models import DeliveryScheduleEntry, Member, ProductOrder, Subscription, WalletTransaction
from dairy_api.services import wallet_service
from dairy_api.time_utils import today


def _tomorrow() -> str:
    return (today() + timedelta(days=1)).isoformat()


def _line(variant, **overrides) -> dict:
    line = {
        "depot_product_variant_id": variant.id,
        "period": 7,
        "delivery_schedule": "DAILY",
        "qty": 2,
        "start_date": _tomorrow(),
    }
    line.update(overrides)
    return line


def _fund(member_user, admin_user, amount):
    wallet_service.admin_add_funds(member_user.member.id, amount, admin_id=admin_user.id)
    db.session.commit()


def _checkout(client, headers, variant, address, **payload):
    body = {"delivery_address_id": address.id, "subscriptions": [_line(variant)]}
    body.update(payload)
    return client.post('/api/product-orders', json=body, headers=headers)


# =============================================================================
# CHECKOUT
# =============================================================================


class TestCheckout:
    def test_daily_seven_day_order(self, client, member_headers, variant, agency, address):
        response = _checkout(client, member_headers, variant, address)
        assert response.status_code == 201

        order = response.get_json()
        assert order['order_no'].startswith('ORD-')
        assert order['total_qty'] == 14
        assert order['total_amount'] == 392.0
        assert order['wallet_amount'] == 0.0
        assert order['payable_amount'] == 392.0
        assert order['payment_status'] == 'PENDING'
        assert order['agency_id'] == agency.id

        [subscription] = order['subscriptions']
        assert subscription['rate'] == 28.0
        assert subscription['delivery_schedule'] == 'DAILY'
        assert subscription['expiry_date'] == (today() + timedelta(days=7)).isoformat()

        entries = db.session.query(DeliveryScheduleEntry).filter_by(subscription_id=subscription['id']).all()
        assert len(entries) == 7
        assert {e.agent_id for e in entries} == {agency.id}
        assert {e.status for e in entries} == {'PENDING'}

    def test_invoice_generated_after_checkout(self, client, member_headers, variant, agency, address):
        order = _checkout(client, member_headers, variant, address).get_json()
        assert order['invoice_no']

        response = client.get(f"/api/invoices/orders/{order['id']}/exists", headers=member_headers)
        assert response.status_code == 200
        assert response.get_json()['exists'] is True

        response = client.get(f"/api/invoices/orders/{order['id']}/download", headers=member_headers)
        assert response.status_code == 200
        assert response.mimetype == 'application/pdf'

    def test_wallet_partially_pays(self, client, admin_user, member_user, member_headers, variant, agency, address):
        _fund(member_user, admin_user, 100)

        response = _checkout(client, member_headers, variant, address, wallet_amount=100)
        assert response.status_code == 201
        order = response.get_json()
        assert order['wallet_amount'] == 100.0
        assert order['payable_amount'] == 292.0
        assert order['payment_status'] == 'PENDING'

        member = db.session.get(Member, member_user.member.id)
        assert float(member.wallet_balance) == 0.0
        debit = db.session.query(WalletTransaction).filter_by(member_id=member.id, type='DEBIT').one()
        assert debit.reference_number == order['order_no']

    def test_wallet_covering_order_marks_paid(self, client, admin_user, member_user, member_headers, variant, agency, address):
        _fund(member_user, admin_user, 500)

        order = _checkout(client, member_headers, variant, address, wallet_amount=500).get_json()
        assert order['wallet_amount'] == 392.0
        assert order['payable_amount'] == 0.0
        assert order['payment_status'] == 'PAID'
        assert order['subscriptions'][0]['payment_status'] == 'PAID'

        member = db.session.get(Member, member_user.member.id)
        assert float(member.wallet_balance) == 108.0

    def test_wallet_capped_by_balance(self, client, admin_user, member_user, member_headers, variant, agency, address):
        _fund(member_user, admin_user, 50)

        order = _checkout(client, member_headers, variant, address, wallet_amount=300).get_json()
        assert order['wallet_amount'] == 50.0
        assert order['payable_amount'] == 342.0

    def test_wallet_split_across_subscriptions(self, client, admin_user, member_user, member_headers, variant, agency, address):
        _fund(member_user, admin_user, 100)

        response = _checkout(
            client, member_headers, variant, address,
            wallet_amount=100,
            subscriptions=[_line(variant), _line(variant, period=3, qty=1)],
        )
        assert response.status_code == 201
        order = response.get_json()
        assert order['total_amount'] == 479.0
        assert order['wallet_amount'] == 100.0

        subscriptions = order['subscriptions']
        assert [s['amount'] for s in subscriptions] == [392.0, 87.0]
        assert [s['wallet_amount'] for s in subscriptions] == [81.84, 18.16]
        assert round(sum(s['wallet_amount'] for s in subscriptions), 2) == order['wallet_amount']
        assert round(sum(s['payable_amount'] for s in subscriptions), 2) == order['total_amount'] - order['wallet_amount']
        assert all(s['payment_status'] == 'PENDING' for s in subscriptions)

    def test_varying_schedule_alternates_quantities(self, client, member_headers, variant, agency, address):
        response = _checkout(
            client, member_headers, variant, address,
            subscriptions=[_line(variant, delivery_schedule='VARYING', qty=1, alt_qty=3, period=4)],
        )
        assert response.status_code == 201
        [subscription] = response.get_json()['subscriptions']
        assert subscription['delivery_schedule'] == 'DAY1_DAY2'
        assert subscription['total_qty'] == 8
        # period 4 falls in the 3-day tier
        assert subscription['rate'] == 29.0

    def test_select_days_requires_weekdays(self, client, member_headers, variant, agency, address):
        response = _checkout(
            client, member_headers, variant, address,
            subscriptions=[_line(variant, delivery_schedule='SELECT-DAYS')],
        )
        assert response.status_code == 400
        assert 'weekdays' in response.get_json()['error']['fields']

    def test_missing_subscriptions(self, client, member_headers, address):
        response = client.post(
            '/api/product-orders',
            json={'delivery_address_id': address.id, 'subscriptions': []},
            headers=member_headers,
        )
        assert response.status_code == 400

    def test_unknown_variant(self, client, member_headers, address):
        response = client.post(
            '/api/product-orders',
            json={'subscriptions': [{
                'depot_product_variant_id': 9999,
                'period': 7,
                'delivery_schedule': 'DAILY',
                'qty': 1,
                'start_date': _tomorrow(),
            }]},
            headers=member_headers,
        )
        assert response.status_code == 404

    def test_member_cannot_order_for_someone_else(self, client, member_headers, other_member_user, variant, agency, address):
        # member_id is ignored for non-admins; the order lands on the caller
        order = _checkout(
            client, member_headers, variant, address, member_id=other_member_user.member.id
        ).get_json()
        assert order['member'] == 'Asha Member'

    def test_other_member_cannot_view_order(self, client, member_headers, other_member_headers, variant, agency, address):
        order = _checkout(client, member_headers, variant, address).get_json()

        response = client.get(f"/api/product-orders/{order['id']}", headers=other_member_headers)
        assert response.status_code == 403

        response = client.get(f"/api/invoices/orders/{order['id']}/exists", headers=other_member_headers)
        assert response.status_code == 403

    def test_single_subscription_endpoint(self, client, member_headers, variant, agency, address):
        response = client.post(
            '/api/subscriptions',
            json={**_line(variant, period=30), 'delivery_address_id': address.id},
            headers=member_headers,
        )
        assert response.status_code == 201
        data = response.get_json()
        assert data['subscription']['rate'] == 25.0
        assert data['subscription']['total_qty'] == 60
        assert data['order']['order_no'].startswith('ORD-')


# =============================================================================
# PAYMENTS
# =============================================================================


class TestPayments:
    def test_admin_records_payment(self, client, admin_headers, member_headers, variant, agency, address):
        order = _checkout(client, member_headers, variant, address).get_json()

        response = client.post(
            f"/api/product-orders/{order['id']}/payment",
            json={'payment_status': 'PAID', 'received_amount': 392, 'payment_mode': 'CASH'},
            headers=admin_headers,
        )
        assert response.status_code == 200
        data = response.get_json()
        assert data['payment_status'] == 'PAID'
        assert data['received_amount'] == 392.0
        assert data['subscriptions'][0]['payment_status'] == 'PAID'

    def test_received_amount_must_match(self, client, admin_headers, member_headers, variant, agency, address):
        order = _checkout(client, member_headers, variant, address).get_json()

        response = client.post(
            f"/api/product-orders/{order['id']}/payment",
            json={'payment_status': 'PAID', 'received_amount': 100},
            headers=admin_headers,
        )
        assert response.status_code == 400

    def test_member_cannot_record_payment(self, client, member_headers, variant, agency, address):
        order = _checkout(client, member_headers, variant, address).get_json()

        response = client.post(
            f"/api/product-orders/{order['id']}/payment",
            json={'payment_status': 'PAID'},
            headers=member_headers,
        )
        assert response.status_code == 403


# =============================================================================
# SUBSCRIPTION LIFECYCLE
# =============================================================================


class TestSubscriptionLifecycle:
    @pytest.fixture
    def subscription(self, client, member_headers, variant, agency, address):
        order = _checkout(client, member_headers, variant, address).get_json()
        return order['subscriptions'][0]

    def _deliveries(self, client, headers, subscription_id):
        response = client.get(f'/api/subscriptions/{subscription_id}', headers=headers)
        assert response.status_code == 200
        return response.get_json()['deliveries']

    def test_cancel_unpaid_subscription(self, client, member_headers, subscription):
        response = client.post(f"/api/subscriptions/{subscription['id']}/cancel", headers=member_headers)
        assert response.status_code == 200
        assert response.get_json()['payment_status'] == 'CANCELLED'

        deliveries = self._deliveries(client, member_headers, subscription['id'])
        assert {d['status'] for d in deliveries} == {'CANCELLED'}

    def test_cannot_cancel_paid_subscription(self, client, admin_headers, member_headers, subscription):
        client.post(
            f"/api/product-orders/{subscription['product_order_id']}/payment",
            json={'payment_status': 'PAID'},
            headers=admin_headers,
        )
        response = client.post(f"/api/subscriptions/{subscription['id']}/cancel", headers=member_headers)
        assert response.status_code == 400

    def test_skip_refunds_wallet(self, client, member_user, member_headers, subscription):
        first = self._deliveries(client, member_headers, subscription['id'])[0]

        response = client.post(f"/api/subscriptions/deliveries/{first['id']}/skip", headers=member_headers)
        assert response.status_code == 200
        data = response.get_json()
        assert data['delivery']['status'] == 'SKIP_BY_CUSTOMER'
        assert data['wallet_transaction']['amount'] == 56.0
        assert data['wallet_transaction']['type'] == 'CREDIT'

        balance = client.get('/api/wallet/balance', headers=member_headers).get_json()
        assert balance['balance'] == 56.0

    def test_skip_twice_rejected(self, client, member_headers, subscription):
        first = self._deliveries(client, member_headers, subscription['id'])[0]
        client.post(f"/api/subscriptions/deliveries/{first['id']}/skip", headers=member_headers)

        response = client.post(f"/api/subscriptions/deliveries/{first['id']}/skip", headers=member_headers)
        assert response.status_code == 400

    def test_cannot_skip_today(self, client, member_headers, subscription):
        entry = db.session.get(DeliveryScheduleEntry, self._deliveries(client, member_headers, subscription['id'])[0]['id'])
        entry.delivery_date = today()
        db.session.commit()

        response = client.post(f'/api/subscriptions/deliveries/{entry.id}/skip', headers=member_headers)
        assert response.status_code == 400

    def test_cannot_skip_another_members_delivery(self, client, member_headers, other_member_headers, subscription):
        first = self._deliveries(client, member_headers, subscription['id'])[0]

        response = client.post(f"/api/subscriptions/deliveries/{first['id']}/skip", headers=other_member_headers)
        assert response.status_code == 403

    def test_renew_starts_after_expiry(self, client, member_headers, subscription):
        response = client.post(f"/api/subscriptions/{subscription['id']}/renew", json={}, headers=member_headers)
        assert response.status_code == 201
        renewed = response.get_json()['subscription']
        assert renewed['id'] != subscription['id']
        assert renewed['start_date'] > subscription['expiry_date']
        assert renewed['period'] == subscription['period']
        assert renewed['qty'] == subscription['qty']

    def test_member_lists_own_subscriptions_only(self, client, other_member_headers, subscription):
        response = client.get('/api/subscriptions', headers=other_member_headers)
        assert response.status_code == 200
        assert response.get_json()['totalRecords'] == 0


# =============================================================================
# AGENCY DELIVERY RUN
# =============================================================================


class TestAgencyDeliveries:
    @pytest.fixture
    def order(self, client, member_headers, variant, agency, address):
        return _checkout(client, member_headers, variant, address).get_json()

    def test_agency_sees_its_run(self, client, agency_headers, order):
        response = client.get(f'/api/delivery-schedules/agency?date={_tomorrow()}', headers=agency_headers)
        assert response.status_code == 200
        data = response.get_json()
        assert data['date'] == _tomorrow()
        assert len(data['data']) == 1
        assert data['data'][0]['quantity'] == 2
        assert data['data'][0]['delivery_address']['pincode'] == '411038'

    def test_agency_marks_delivered(self, client, agency_headers, order):
        run = client.get(f'/api/delivery-schedules/agency?date={_tomorrow()}', headers=agency_headers).get_json()
        entry_id = run['data'][0]['id']

        response = client.put(
            f'/api/delivery-schedules/{entry_id}/status',
            json={'status': 'DELIVERED'},
            headers=agency_headers,
        )
        assert response.status_code == 200
        assert response.get_json()['status'] == 'DELIVERED'

    def test_agency_cannot_skip(self, client, agency_headers, order):
        run = client.get(f'/api/delivery-schedules/agency?date={_tomorrow()}', headers=agency_headers).get_json()
        entry_id = run['data'][0]['id']

        response = client.put(
            f'/api/delivery-schedules/{entry_id}/status',
            json={'status': 'SKIP_BY_CUSTOMER'},
            headers=agency_headers,
        )
        assert response.status_code == 400

    def test_admin_uses_admin_endpoint(self, client, admin_headers, order):
        subscription_id = order['subscriptions'][0]['id']
        entry = db.session.query(DeliveryScheduleEntry).filter_by(subscription_id=subscription_id).first()

        response = client.put(
            f'/api/delivery-schedules/{entry.id}/status',
            json={'status': 'DELIVERED'},
            headers=admin_headers,
        )
        assert response.status_code == 403

        response = client.put(
            f'/api/admin/deliveries/{entry.id}/status',
            json={'status': 'SKIP_BY_CUSTOMER', 'admin_notes': 'Customer travelling'},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.get_json()['status'] == 'SKIP_BY_CUSTOMER'
        db.session.refresh(entry)
        assert entry.wallet_transaction_id is not None

    def test_admin_run_requires_agency_id(self, client, admin_headers, agency, order):
        response = client.get(f'/api/delivery-schedules/agency?date={_tomorrow()}', headers=admin_headers)
        assert response.get_json()['data'] == []

        response = client.get(
            f'/api/delivery-schedules/agency?date={_tomorrow()}&agency_id={agency.id}',
            headers=admin_headers,
        )
        assert len(response.get_json()['data']) == 1

    def test_member_cannot_view_run(self, client, member_headers, order):
        response = client.get('/api/delivery-schedules/agency', headers=member_headers)
        assert response.status_code == 403


# =============================================================================
# FAILED COMMITS
# =============================================================================


def _fail_next_commit(monkeypatch):
    """Make the next Session.commit raise a lock timeout once."""
    real_commit = Session.commit
    calls = {'count': 0}

    def commit(self):
        calls['count'] += 1
        if calls['count'] == 1:
            raise OperationalError('COMMIT', {}, Exception('database is locked'))
        return real_commit(self)

    monkeypatch.setattr(Session, 'commit', commit)
    monkeypatch.setattr('dairy_api.services.concurrency.time.sleep', lambda seconds: None)
    return calls


class TestCommitFailures:
    def test_checkout_reruns_after_failed_commit(
        self, client, admin_user, member_user, member_headers, variant, agency, address, monkeypatch,
    ):
        _fund(member_user, admin_user, 100)
        calls = _fail_next_commit(monkeypatch)

        response = _checkout(client, member_headers, variant, address, wallet_amount=100)
        assert response.status_code == 201
        assert calls['count'] >= 2

        db.session.expire_all()
        [order] = db.session.query(ProductOrder).all()
        assert order.id == response.get_json()['id']
        assert float(order.wallet_amount) == 100.0
        assert db.session.query(Subscription).count() == 1
        assert db.session.query(DeliveryScheduleEntry).count() == 7

        debits = db.session.query(WalletTransaction).filter_by(type='DEBIT').all()
        assert len(debits) == 1
        assert float(db.session.get(Member, member_user.member.id).wallet_balance) == 0.0

    def test_topup_conflict_saves_nothing(self, client, member_headers, monkeypatch):
        _fail_next_commit(monkeypatch)

        response = client.post('/api/wallet/topup', json={'amount': 250}, headers=member_headers)
        assert response.status_code == 409
        db.session.expire_all()
        assert db.session.query(WalletTransaction).count() == 0


# =============================================================================
# QUERY FILTERS
# =============================================================================


class TestListFilters:
    @pytest.mark.parametrize('path', [
        '/api/product-orders?agency_id=abc',
        '/api/product-orders?member_id=x1',
        '/api/subscriptions?product_id=milk',
        '/api/admin/deliveries?agency_id=abc',
    ])
    def test_non_numeric_id_is_bad_request(self, client, admin_headers, path):
        response = client.get(path, headers=admin_headers)
        assert response.status_code == 400
        assert response.get_json()['error']['fields']

"""Wallet top-up approval flow and admin adjustments."""

from dairy_api.extensions import db
from dairy_api.models import Member


def _balance(member_user) -> float:
    return float(db.session.get(Member, member_user.member.id).wallet_balance)


class TestMemberWallet:
    def test_empty_wallet(self, client, member_user, member_headers):
        response = client.get('/api/wallet', headers=member_headers)
        assert response.status_code == 200
        data = response.get_json()
        assert data['member_id'] == member_user.member.id
        assert data['balance'] == 0.0
        assert data['pending_topups'] == 0.0
        assert data['transactions']['totalRecords'] == 0

    def test_topup_stays_pending(self, client, member_user, member_headers):
        response = client.post(
            '/api/wallet/topup',
            json={'amount': 250, 'payment_method': 'UPI', 'reference_number': 'UTR123'},
            headers=member_headers,
        )
        assert response.status_code == 201
        txn = response.get_json()
        assert txn['type'] == 'CREDIT'
        assert txn['status'] == 'PENDING'
        assert txn['amount'] == 250.0

        summary = client.get('/api/wallet/balance', headers=member_headers).get_json()
        assert summary['balance'] == 0.0
        assert summary['pending_topups'] == 250.0

    def test_topup_requires_positive_amount(self, client, member_headers):
        assert client.post('/api/wallet/topup', json={}, headers=member_headers).status_code == 400
        assert client.post('/api/wallet/topup', json={'amount': -5}, headers=member_headers).status_code == 400

    def test_agency_has_no_wallet(self, client, agency_headers):
        assert client.get('/api/wallet', headers=agency_headers).status_code == 403


class TestTopupApproval:
    def _request(self, client, headers, amount=200):
        return client.post('/api/wallet/topup', json={'amount': amount}, headers=headers).get_json()

    def test_approve_credits_balance(self, client, admin_headers, member_user, member_headers):
        txn = self._request(client, member_headers)

        response = client.post(f"/api/admin/wallets/transactions/{txn['id']}/approve", json={}, headers=admin_headers)
        assert response.status_code == 200
        assert response.get_json()['status'] == 'PAID'
        assert _balance(member_user) == 200.0

    def test_reject_leaves_balance(self, client, admin_headers, member_user, member_headers):
        txn = self._request(client, member_headers)

        response = client.post(
            f"/api/admin/wallets/transactions/{txn['id']}/reject",
            json={'notes': 'Payment not received'},
            headers=admin_headers,
        )
        assert response.status_code == 200
        data = response.get_json()
        assert data['status'] == 'FAILED'
        assert data['notes'] == 'Payment not received'
        assert _balance(member_user) == 0.0

    def test_cannot_approve_twice(self, client, admin_headers, member_user, member_headers):
        txn = self._request(client, member_headers)
        client.post(f"/api/admin/wallets/transactions/{txn['id']}/approve", json={}, headers=admin_headers)

        response = client.post(f"/api/admin/wallets/transactions/{txn['id']}/approve", json={}, headers=admin_headers)
        assert response.status_code == 400
        assert _balance(member_user) == 200.0

    def test_member_cannot_approve(self, client, member_headers):
        txn = self._request(client, member_headers)

        response = client.post(f"/api/admin/wallets/transactions/{txn['id']}/approve", json={}, headers=member_headers)
        assert response.status_code == 403

    def test_pending_filter(self, client, admin_headers, member_headers):
        self._request(client, member_headers)

        response = client.get('/api/admin/wallets/transactions?status=PENDING', headers=admin_headers)
        assert response.status_code == 200
        assert response.get_json()['totalRecords'] == 1


class TestAdminAdjustments:
    def test_add_then_remove_funds(self, client, admin_headers, member_user):
        member_id = member_user.member.id

        response = client.post(f'/api/admin/wallets/{member_id}/add-funds', json={'amount': 500}, headers=admin_headers)
        assert response.status_code == 201
        assert response.get_json()['status'] == 'PAID'

        response = client.post(
            f'/api/admin/wallets/{member_id}/remove-funds',
            json={'amount': 120.5, 'notes': 'Correction'},
            headers=admin_headers,
        )
        assert response.status_code == 201
        assert response.get_json()['type'] == 'DEBIT'
        assert _balance(member_user) == 379.5

    def test_remove_more_than_balance(self, client, admin_headers, member_user):
        member_id = member_user.member.id
        client.post(f'/api/admin/wallets/{member_id}/add-funds', json={'amount': 50}, headers=admin_headers)

        response = client.post(f'/api/admin/wallets/{member_id}/remove-funds', json={'amount': 80}, headers=admin_headers)
        assert response.status_code == 400
        assert _balance(member_user) == 50.0

    def test_unknown_member(self, client, admin_headers):
        response = client.post('/api/admin/wallets/9999/add-funds', json={'amount': 10}, headers=admin_headers)
        assert response.status_code == 404

    def test_admin_wallet_view(self, client, admin_headers, member_user):
        member_id = member_user.member.id
        client.post(f'/api/admin/wallets/{member_id}/add-funds', json={'amount': 75}, headers=admin_headers)

        response = client.get(f'/api/admin/wallets/{member_id}', headers=admin_headers)
        assert response.status_code == 200
        data = response.get_json()
        assert data['balance'] == 75.0
        assert data['transactions']['totalRecords'] == 1

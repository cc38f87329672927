"""HTTP API tests"""
from datetime import date, timedelta

from app.models.enum import RequestKind


def submit(client, headers, item_id='I01', kind='new_borrow', extra_days=None):
    payload = {'item_id': item_id, 'kind': kind}
    if extra_days is not None:
        payload['extra_days'] = extra_days
    return client.post('/api/v1/requests/', json=payload, headers=headers)


def test_health(client):
    assert client.get('/health').json() == {'ok': True}


class TestAuth:
    def test_login_returns_role(self, client):
        response = client.post('/api/v1/auth/token', data={'username': '66001', 'password': 'testpassword123'})
        assert response.status_code == 200
        body = response.json()
        assert body['token_type'] == 'bearer'
        assert body['role'] == 'student'

    def test_login_wrong_password(self, client):
        response = client.post('/api/v1/auth/token', data={'username': '66001', 'password': 'nope'})
        assert response.status_code == 401
        assert response.json()['detail'] == 'Invalid Credentials'

    def test_me(self, client, admin_headers):
        response = client.get('/api/v1/auth/users/me', headers=admin_headers)
        assert response.status_code == 200
        assert response.json()['role'] == 'admin'

    def test_protected_path_without_token(self, client):
        response = client.get('/api/v1/requests/')
        assert response.status_code == 401

    def test_invalid_token(self, client):
        response = client.get('/api/v1/requests/', headers={'Authorization': 'Bearer not-a-jwt'})
        assert response.status_code == 401

    def test_register_then_login(self, client, notifier):
        response = client.post('/api/v1/auth/register', json={
            'card_type': 'national_id',
            'user_id': '1103700012345',
            'name': 'Nid Student',
            'birth_year': 2005,
            'email': 'nid@example.com',
            'password': 'pw12345',
        })
        assert response.status_code == 201, response.text
        assert response.json()['card_type'] == 'national_id'
        assert 'hashed_password' not in response.json()
        assert notifier.sent[-1].subject == 'Welcome to Smart Borrow System'

        login = client.post('/api/v1/auth/token', data={'username': '1103700012345', 'password': 'pw12345'})
        assert login.status_code == 200

    def test_register_rejected_by_age_policy(self, client):
        response = client.post('/api/v1/auth/register', json={
            'card_type': 'national_id',
            'user_id': '1103700099999',
            'name': 'Too Old',
            'birth_year': 1970,
            'password': 'pw',
        })
        assert response.status_code == 400
        assert response.json()['code'] == 'invalid_input'

    def test_register_invalid_email(self, client):
        response = client.post('/api/v1/auth/register', json={
            'card_type': 'student_card',
            'user_id': '67555',
            'name': 'Bad Mail',
            'birth_year': 2005,
            'email': 'not-an-email',
            'password': 'pw',
        })
        assert response.status_code == 422


class TestItems:
    def test_browse_is_public(self, client):
        response = client.get('/api/v1/items/')
        assert response.status_code == 200
        items = {i['item_id']: i for i in response.json()}
        assert items['I01']['stock'] == '5 / 5'
        assert items['I03']['current_qty'] == 0

    def test_unknown_item(self, client, student_headers):
        response = client.get('/api/v1/items/XX', headers=student_headers)
        assert response.status_code == 404
        assert response.json()['code'] == 'item_not_found'

    def test_admin_adds_item(self, client, admin_headers):
        response = client.post('/api/v1/items/', headers=admin_headers, json={
            'item_id': 'I09', 'name': 'Tripod', 'category': 'AV', 'total_qty': 4,
        })
        assert response.status_code == 201
        assert response.json()['current_qty'] == 4

    def test_student_cannot_add_item(self, client, student_headers):
        response = client.post('/api/v1/items/', headers=student_headers, json={
            'item_id': 'I09', 'name': 'Tripod', 'category': 'AV', 'total_qty': 4,
        })
        assert response.status_code == 403


class TestRequests:
    def test_submit_and_list_own(self, client, student_headers, other_student_headers):
        response = submit(client, student_headers)
        assert response.status_code == 201
        assert response.json()['status'] == 'pending'

        mine = client.get('/api/v1/requests/', headers=student_headers).json()
        theirs = client.get('/api/v1/requests/', headers=other_student_headers).json()
        assert len(mine) == 1
        assert theirs == []

    def test_duplicate_pending(self, client, student_headers):
        submit(client, student_headers)
        response = submit(client, student_headers)
        assert response.status_code == 409
        assert response.json()['code'] == 'duplicate_pending_request'

    def test_admin_cannot_submit(self, client, admin_headers):
        assert submit(client, admin_headers).status_code == 403

    def test_admin_sees_pending_queue(self, client, student_headers, other_student_headers, admin_headers):
        submit(client, student_headers)
        submit(client, other_student_headers)
        pending = client.get('/api/v1/requests/?status=pending', headers=admin_headers).json()
        assert {r['requester_id'] for r in pending} == {'66001', '67002'}

    def test_approve_creates_record(self, client, student_headers, admin_headers, repository):
        request_id = submit(client, student_headers).json()['request_id']
        response = client.patch(f'/api/v1/requests/{request_id}/approve', headers=admin_headers)
        assert response.status_code == 200
        assert response.json()['status'] == 'approved'
        assert repository.get_item('I01').current_qty == 4

        records = client.get('/api/v1/records/', headers=student_headers).json()
        assert len(records) == 1
        assert records[0]['due_date'] == (date.today() + timedelta(days=7)).isoformat()

    def test_student_cannot_approve(self, client, student_headers):
        request_id = submit(client, student_headers).json()['request_id']
        response = client.patch(f'/api/v1/requests/{request_id}/approve', headers=student_headers)
        assert response.status_code == 403

    def test_reject(self, client, student_headers, admin_headers, repository):
        request_id = submit(client, student_headers).json()['request_id']
        response = client.patch(f'/api/v1/requests/{request_id}/reject', headers=admin_headers)
        assert response.json()['status'] == 'rejected'
        assert repository.records == {}

    def test_approve_out_of_stock(self, client, student_headers, other_student_headers, admin_headers):
        first = submit(client, student_headers, 'I02').json()['request_id']
        second = submit(client, other_student_headers, 'I02').json()['request_id']
        client.patch(f'/api/v1/requests/{first}/approve', headers=admin_headers)

        response = client.patch(f'/api/v1/requests/{second}/approve', headers=admin_headers)
        assert response.status_code == 409
        assert response.json()['code'] == 'out_of_stock'

    def test_extend_without_days(self, client, student_headers, admin_headers):
        request_id = submit(client, student_headers).json()['request_id']
        client.patch(f'/api/v1/requests/{request_id}/approve', headers=admin_headers)
        response = submit(client, student_headers, kind=RequestKind.EXTEND.value)
        assert response.status_code == 400


class TestRecords:
    def borrowed_record(self, client, student_headers, admin_headers):
        request_id = submit(client, student_headers).json()['request_id']
        client.patch(f'/api/v1/requests/{request_id}/approve', headers=admin_headers)
        return client.get('/api/v1/records/', headers=admin_headers).json()[0]

    def test_extend_flow(self, client, student_headers, admin_headers):
        record = self.borrowed_record(client, student_headers, admin_headers)
        request_id = submit(client, student_headers, kind='extend', extra_days=3).json()['request_id']
        client.patch(f'/api/v1/requests/{request_id}/approve', headers=admin_headers)

        updated = client.get('/api/v1/records/', headers=student_headers).json()[0]
        expected = date.fromisoformat(record['due_date']) + timedelta(days=3)
        assert updated['due_date'] == expected.isoformat()
        assert updated['extended'] is True

    def test_late_return_needs_confirmation(self, client, student_headers, admin_headers, repository):
        record = self.borrowed_record(client, student_headers, admin_headers)
        late = (date.fromisoformat(record['due_date']) + timedelta(days=3)).isoformat()
        url = f"/api/v1/records/{record['record_id']}/return"

        response = client.post(url, headers=admin_headers, json={'return_date': late})
        assert response.status_code == 409
        assert response.json()['code'] == 'fine_confirmation_required'
        assert response.json()['fine'] == 300
        assert repository.get_item('I01').current_qty == 4

        response = client.post(url, headers=admin_headers, json={'return_date': late, 'confirm_fine': True})
        assert response.status_code == 200
        assert response.json()['fine'] == 300
        assert repository.get_item('I01').current_qty == 5

        again = client.post(url, headers=admin_headers, json={'confirm_fine': True})
        assert again.status_code == 409
        assert again.json()['code'] == 'already_returned'

    def test_on_time_return_without_body(self, client, student_headers, admin_headers, notifier):
        record = self.borrowed_record(client, student_headers, admin_headers)
        response = client.post(f"/api/v1/records/{record['record_id']}/return", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()['fine'] == 0
        assert notifier.sent[-1].subject == 'Item Returned'

    def test_fine_quote(self, client, student_headers, admin_headers):
        record = self.borrowed_record(client, student_headers, admin_headers)
        later = (date.fromisoformat(record['due_date']) + timedelta(days=2)).isoformat()
        response = client.get(f"/api/v1/records/{record['record_id']}/fine?return_date={later}", headers=student_headers)
        assert response.status_code == 200
        assert response.json()['fine'] == 200

    def test_other_student_cannot_see_fine(self, client, student_headers, other_student_headers, admin_headers):
        record = self.borrowed_record(client, student_headers, admin_headers)
        response = client.get(f"/api/v1/records/{record['record_id']}/fine", headers=other_student_headers)
        assert response.status_code == 403

    def test_remind(self, client, student_headers, admin_headers, notifier):
        record = self.borrowed_record(client, student_headers, admin_headers)
        response = client.post(f"/api/v1/records/{record['record_id']}/remind", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()['days_left'] == 7
        assert notifier.sent[-1].subject.startswith('Reminder: Return')

    def test_return_dated_before_borrow(self, client, student_headers, admin_headers, repository):
        record = self.borrowed_record(client, student_headers, admin_headers)
        early = (date.fromisoformat(record['borrow_date']) - timedelta(days=1)).isoformat()
        response = client.post(f"/api/v1/records/{record['record_id']}/return", headers=admin_headers, json={'return_date': early})
        assert response.status_code == 400
        assert response.json()['code'] == 'invalid_input'
        assert repository.get_item('I01').current_qty == 4

    def test_unknown_record(self, client, admin_headers):
        response = client.post('/api/v1/records/999/return', headers=admin_headers)
        assert response.status_code == 404
        assert response.json()['code'] == 'record_not_found'


class TestMiddleware:
    def test_request_id_is_echoed(self, client):
        response = client.get('/health', headers={'X-Request-ID': 'abc123'})
        assert response.headers['X-Request-ID'] == 'abc123'

    def test_request_id_is_generated(self, client):
        assert client.get('/health').headers['X-Request-ID']

    def test_item_detail_is_public(self, client):
        response = client.get('/api/v1/items/I02')
        assert response.status_code == 200
        assert response.json()['stock'] == '1 / 1'

    def test_adding_items_needs_a_token(self, client):
        response = client.post('/api/v1/items/', json={
            'item_id': 'I09', 'name': 'Tripod', 'category': 'AV', 'total_qty': 4,
        })
        assert response.status_code == 401

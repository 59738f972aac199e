from conftest import auth_headers
from poscrm.application.user_service import UserService


def test_login(api, admin):
    resp = api.post('/api/auth/login', json={"email": "Admin@poscrm.com", "password": "Admin@2024"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["user"]["role"] == "admin"

    me = api.get('/api/users/me', headers={"Authorization": f"Bearer {body['token']}"})
    assert me.json()["email"] == "admin@poscrm.com"


def test_login_wrong_password(api, admin):
    resp = api.post('/api/auth/login', json={"email": "admin@poscrm.com", "password": "nope"})
    assert resp.status_code == 401
    assert resp.json() == {"message": "Invalid credentials"}


def test_client_without_password_cannot_login(api, client_user):
    resp = api.post('/api/auth/login', json={"email": "marko@example.com", "password": "anything"})
    assert resp.status_code == 401


def test_invalid_token(api):
    resp = api.get('/api/users/me', headers={"Authorization": "Bearer not-a-token"})
    assert resp.status_code == 401
    assert resp.json()["message"] == "Invalid or expired token"


def test_create_client_and_email_uniqueness(api, admin, client_user):
    resp = api.post('/api/users', json={"name": "Ivan Ilievski", "email": "ivan@example.com"}, headers=auth_headers(admin))
    assert resp.status_code == 201
    assert resp.json()["user"]["role"] == "client"

    resp = api.post('/api/users', json={"name": "Someone Else", "email": "MARKO@example.com"}, headers=auth_headers(admin))
    assert resp.status_code == 400
    assert resp.json()["message"] == "Email already in use"


def test_only_clients_can_be_created(api, admin):
    resp = api.post(
        '/api/users', json={"name": "Second Admin", "email": "x@example.com", "role": "admin"}, headers=auth_headers(admin),
    )
    assert resp.status_code == 400


def test_client_lists_are_admin_only(api, admin, client_user):
    assert api.get('/api/users', headers=auth_headers(client_user)).status_code == 403
    clients = api.get('/api/users/clients', headers=auth_headers(admin)).json()
    assert clients == [{"id": 7, "name": "Marko Petrov", "email": "marko@example.com"}]


def test_client_cannot_read_other_user(api, client_user, other_client):
    assert api.get(f'/api/users/{other_client.id}', headers=auth_headers(client_user)).status_code == 403
    assert api.get(f'/api/users/{client_user.id}', headers=auth_headers(client_user)).status_code == 200


def test_manual_debt_reduction(api, admin, client_user, phone):
    api.post('/api/orders', json={"items": [{"productId": 1, "quantity": 1}], "clientId": 7}, headers=auth_headers(admin))

    resp = api.put('/api/users/7/debt', json={"debt": 200, "currency": "EUR", "notes": "Cash"}, headers=auth_headers(admin))
    assert resp.status_code == 200
    assert resp.json() == {
        "message": "Debt updated successfully",
        "userId": 7,
        "debt": 200.0,
        "adjustment_type": "manual_reduction",
        "currency": "EUR",
    }
    assert api.get('/api/users/7/debt', headers=auth_headers(admin)).json()["eurDebt"] == 300.0

    # Overpaying clamps at zero
    api.put('/api/users/7/debt', json={"debt": 1000, "currency": "EUR"}, headers=auth_headers(admin))
    assert api.get('/api/users/7/debt', headers=auth_headers(client_user)).json()["eurDebt"] == 0.0


def test_debt_adjustment_rules(api, admin, client_user):
    resp = api.put('/api/users/7/debt', json={"debt": 10, "currency": "EUR"}, headers=auth_headers(client_user))
    assert resp.status_code == 403
    assert resp.json()["message"] == "Only admins can adjust debt"

    resp = api.put('/api/users/7/debt', json={"debt": 10}, headers=auth_headers(admin))
    assert resp.status_code == 400

    resp = api.put('/api/users/7/debt', json={"debt": 10, "currency": "USD"}, headers=auth_headers(admin))
    assert resp.status_code == 400

    resp = api.put('/api/users/999/debt', json={"debt": 10, "currency": "MKD"}, headers=auth_headers(admin))
    assert resp.status_code == 404


def test_profile_financial_summary(api, admin, client_user, phone, charger):
    api.post('/api/orders', json={"items": [{"productId": 1, "quantity": 1}], "clientId": 7, "status": "completed"},
             headers=auth_headers(admin))
    api.post('/api/orders', json={"items": [{"productId": 2, "quantity": 2}], "clientId": 7},
             headers=auth_headers(admin))

    profile = api.get('/api/users/7/profile', headers=auth_headers(admin)).json()
    assert profile["user"]["id"] == 7
    assert len(profile["orders"]) == 2
    assert all(order["items"] for order in profile["orders"])
    summary = profile["financialSummary"]
    assert summary["totalPaid"] == 500.0
    assert summary["eurRevenue"] == 500.0
    assert summary["mkdRevenue"] == 0.0
    assert summary["eurDebt"] == 0.0
    assert summary["mkdDebt"] == 100.0
    assert summary["totalOrders"] == 2
    assert summary["completedOrders"] == 1
    assert summary["pendingOrders"] == 1


def test_delete_rules(api, admin, client_user, charger):
    resp = api.delete(f'/api/users/{admin.id}', headers=auth_headers(admin))
    assert resp.status_code == 403
    assert resp.json()["message"] == "Cannot delete admin users"

    api.post('/api/orders', json={"items": [{"productId": 2, "quantity": 1}], "clientId": 7}, headers=auth_headers(admin))
    resp = api.delete('/api/users/7', headers=auth_headers(admin))
    assert resp.status_code == 400
    assert "1 unpaid order(s)" in resp.json()["message"]


def test_delete_client_without_open_orders(api, admin, other_client):
    resp = api.delete(f'/api/users/{other_client.id}', headers=auth_headers(admin))
    assert resp.status_code == 200
    assert resp.json()["deletedUserId"] == other_client.id
    assert api.get(f'/api/users/{other_client.id}', headers=auth_headers(admin)).status_code == 404


def test_user_service_listing(db, admin, client_user, other_client):
    service = UserService(db)
    page = service.list_users(limit=2, role="client")
    assert page["pagination"]["totalUsers"] == 2
    assert {u["id"] for u in page["users"]} == {7, 8}
    assert [c["name"] for c in service.clients()] == ["Ana Stojanova", "Marko Petrov"]


def test_debt_adjustment_rejects_sub_cent_amount(api, admin, client_user):
    resp = api.put('/api/users/7/debt', json={"debt": "10.005", "currency": "MKD"}, headers=auth_headers(admin))
    assert resp.status_code == 400

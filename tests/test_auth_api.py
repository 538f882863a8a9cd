from fastapi import status

PASSWORD = "Password123!"


def test_login_success(client, admin_user):
    """Test successful login with valid credentials."""
    response = client.post("/api/auth/login", json={"email": admin_user.email, "password": PASSWORD})
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert "access_token" in data
    assert data["token_type"] == "bearer"
    assert data["user"]["role"] == "ADMIN"


def test_login_invalid_credentials(client):
    """Test login failure with wrong password."""
    response = client.post("/api/auth/login", json={"email": "nonexistent@acme.com", "password": "wrong"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_login_inactive_user(client, employee, db_session):
    employee.is_active = False
    db_session.commit()
    response = client.post("/api/auth/login", json={"email": employee.email, "password": PASSWORD})
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_me_returns_current_user(client, employee):
    login = client.post("/api/auth/login", json={"email": employee.email, "password": PASSWORD})
    token = login.json()["access_token"]

    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.json()["email"] == employee.email


def test_garbage_token_is_rejected(client):
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_login_token_carries_tenant_claims(client, employee):
    from app.services.auth import decode_access_token

    data = client.post("/api/auth/login", json={"email": employee.email, "password": PASSWORD}).json()
    assert data["expires_in"] > 0
    claims = decode_access_token(data["access_token"])
    assert claims["sub"] == employee.email
    assert claims["role"] == "EMPLOYEE"
    assert claims["user_id"] == employee.id
    assert claims["org_id"] == employee.organization_id
    assert claims["type"] == "access"


def test_login_wrong_password_for_known_user(client, employee):
    response = client.post("/api/auth/login", json={"email": employee.email, "password": "nope"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["success"] is False

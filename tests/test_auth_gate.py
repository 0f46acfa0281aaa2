from datetime import timedelta

from jose import jwt

from conftest import PASSWORD, auth
from core.auth_utils import create_access_token


def test_missing_credential(client):
    response = client.get("/auth/me")
    assert response.status_code == 401
    assert response.json()["detail"] == "No token provided"


def test_malformed_credential(client):
    response = client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid token"


def test_wrong_signature(client, patient):
    token = jwt.encode({"uid": patient.uid, "email": patient.email, "role": "patient"}, "other-secret")
    response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid token"


def test_expired_credential(client, patient):
    token = create_access_token(patient.uid, patient.email, patient.role, expires_delta=timedelta(minutes=-5))
    response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Token has expired"


def test_unknown_user(client):
    token = create_access_token("user_missing", "ghost@example.com", "patient")
    response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 404
    assert response.json()["detail"] == "User not found"


def test_deactivated_user(client, make_user):
    user = make_user("patient", is_active=False)
    response = client.get("/auth/me", headers=auth(user))
    assert response.status_code == 403
    assert response.json()["detail"] == "Account is deactivated"


def test_role_outside_allowed_set(client, patient):
    response = client.delete("/appointments/appt_x", headers=auth(patient))
    assert response.status_code == 403
    assert response.json()["detail"] == "Insufficient permissions"


def test_cookie_credentials_are_accepted(client, patient):
    token = create_access_token(patient.uid, patient.email, patient.role)
    for name in ("token", "auth_token"):
        client.cookies.clear()
        client.cookies.set(name, token)
        response = client.get("/auth/me")
        assert response.status_code == 200, name
        assert response.json()["user"]["uid"] == patient.uid
    client.cookies.clear()


def test_header_wins_over_cookie(client, patient, doctor):
    client.cookies.set("auth_token", create_access_token(doctor.uid, doctor.email, doctor.role))
    response = client.get("/auth/me", headers=auth(patient))
    assert response.json()["user"]["uid"] == patient.uid
    client.cookies.clear()


class TestAuthRoutes:
    def test_register_patient_creates_profile(self, client, db):
        response = client.post("/auth/register", json={
            "email": "New.Patient@Example.com",
            "password": "long-enough",
            "firstName": "New",
            "lastName": "Patient",
        })
        assert response.status_code == 200
        body = response.json()
        assert body["user"]["email"] == "new.patient@example.com"
        assert body["user"]["role"] == "patient"
        assert body["token"]

        me = client.get("/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
        assert me.status_code == 200

        patients = client.get("/patients", headers={"Authorization": f"Bearer {body['token']}"}).json()
        assert patients["pagination"]["total"] == 1
        assert patients["patients"][0]["uid"] == f"patient_{body['user']['uid']}"

    def test_register_doctor_gets_temporary_license(self, client):
        response = client.post("/auth/register", json={
            "email": "doc@example.com",
            "password": "long-enough",
            "firstName": "Doc",
            "lastName": "Tor",
            "role": "doctor",
        })
        assert response.status_code == 200
        uid = response.json()["user"]["uid"]
        doctor = client.get(f"/doctors/doctor_{uid}", headers={"Authorization": f"Bearer {response.json()['token']}"})
        assert doctor.json()["doctor"]["licenseNumber"] == f"TEMP_{uid}"

    def test_register_rejects_short_password(self, client):
        response = client.post("/auth/register", json={
            "email": "short@example.com", "password": "short", "firstName": "A", "lastName": "B",
        })
        assert response.status_code == 400

    def test_register_rejects_duplicate_email(self, client, patient):
        response = client.post("/auth/register", json={
            "email": patient.email, "password": "long-enough", "firstName": "A", "lastName": "B",
        })
        assert response.status_code == 409

    def test_register_rejects_bad_email(self, client):
        response = client.post("/auth/register", json={
            "email": "not-an-email", "password": "long-enough", "firstName": "A", "lastName": "B",
        })
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid request"

    def test_login_sets_cookie_and_last_login(self, client, patient, db):
        response = client.post("/auth/login", json={"email": patient.email, "password": PASSWORD})
        assert response.status_code == 200
        assert response.json()["user"]["uid"] == patient.uid
        assert "auth_token" in response.cookies
        db.refresh(patient)
        assert patient.last_login is not None
        client.cookies.clear()

    def test_login_rejects_bad_password(self, client, patient):
        response = client.post("/auth/login", json={"email": patient.email, "password": "wrong-password"})
        assert response.status_code == 401

    def test_login_rejects_deactivated_account(self, client, make_user):
        user = make_user("patient", is_active=False)
        response = client.post("/auth/login", json={"email": user.email, "password": PASSWORD})
        assert response.status_code == 403

    def test_logout_clears_cookie(self, client):
        response = client.post("/auth/logout")
        assert response.status_code == 200
        assert response.json()["message"] == "Logged out successfully"


def test_liveness_needs_no_credentials(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "running" in response.json()["message"]

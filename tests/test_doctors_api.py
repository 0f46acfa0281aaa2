from sqlalchemy import select
from sqlalchemy.dialects import postgresql

from conftest import auth
from Controller.doctor_controller import LIST_ORDER
from model.doctor_model import Doctors


def test_public_list_needs_no_credentials(client, make_user):
    make_user("doctor")
    make_user("doctor")

    response = client.get("/doctors")
    assert response.status_code == 200
    assert response.json()["pagination"]["total"] == 2


def test_specialization_filter(client, make_user, db):
    make_user("doctor")
    derm = make_user("doctor")
    derm.doctor.specialization = ["Dermatology"]
    db.commit()

    found = client.get("/doctors?specialization=dermatology").json()
    assert [d["uid"] for d in found["doctors"]] == [derm.doctor.uid]


def test_owner_updates_availability(client, doctor):
    response = client.put(
        f"/doctors/{doctor.doctor.uid}",
        json={"availability": [{"dayOfWeek": "Saturday", "startTime": "8:00", "endTime": "12:30"}],
              "licenseNumber": "SNEAKY"},
        headers=auth(doctor),
    )
    assert response.status_code == 200
    body = response.json()["doctor"]
    assert body["availability"] == [
        {"dayOfWeek": "saturday", "startTime": "08:00", "endTime": "12:30", "isAvailable": True},
    ]
    assert body["licenseNumber"] != "SNEAKY"


def test_bad_availability_time_is_rejected(client, doctor):
    response = client.put(
        f"/doctors/{doctor.doctor.uid}",
        json={"availability": [{"dayOfWeek": "monday", "startTime": "25:00", "endTime": "26:00"}]},
        headers=auth(doctor),
    )
    assert response.status_code == 400


def test_patient_cannot_update_doctor(client, doctor, patient):
    response = client.put(f"/doctors/{doctor.doctor.uid}", json={"bio": "hi"}, headers=auth(patient))
    assert response.status_code == 403


def test_other_doctor_cannot_update(client, doctor, make_user):
    other = make_user("doctor")
    response = client.put(f"/doctors/{doctor.doctor.uid}", json={"bio": "hi"}, headers=auth(other))
    assert response.status_code == 403


def test_admin_license_change_must_be_unique(client, doctor, make_user, admin):
    other = make_user("doctor")
    response = client.put(
        f"/doctors/{doctor.doctor.uid}", json={"licenseNumber": other.doctor.license_number}, headers=auth(admin),
    )
    assert response.status_code == 409

    response = client.put(f"/doctors/{doctor.doctor.uid}", json={"licenseNumber": "LIC-NEW"}, headers=auth(admin))
    assert response.json()["doctor"]["licenseNumber"] == "LIC-NEW"


class TestCreate:
    def test_doctor_creates_own_profile(self, client, make_user):
        user = make_user("doctor", with_profile=False)
        response = client.post(
            "/doctors",
            json={"licenseNumber": "LIC-100", "specialization": ["neurology"], "consultationFee": 5000},
            headers=auth(user),
        )
        assert response.status_code == 200
        body = response.json()["doctor"]
        assert body["user"]["uid"] == user.uid
        assert body["languages"] == ["English"]
        assert body["isAcceptingNewPatients"] is True

    def test_admin_must_name_the_user(self, client, admin):
        response = client.post("/doctors", json={"licenseNumber": "L", "specialization": ["x"]}, headers=auth(admin))
        assert response.status_code == 400

    def test_duplicate_license(self, client, make_user, doctor, admin):
        user = make_user("doctor", with_profile=False)
        response = client.post(
            "/doctors",
            json={"userId": user.uid, "licenseNumber": doctor.doctor.license_number, "specialization": ["x"]},
            headers=auth(admin),
        )
        assert response.status_code == 409

    def test_specialization_is_required(self, client, make_user):
        user = make_user("doctor", with_profile=False)
        response = client.post("/doctors", json={"licenseNumber": "L", "specialization": []}, headers=auth(user))
        assert response.status_code == 400


def test_admin_deletes_doctor(client, doctor, admin):
    uid = doctor.doctor.uid
    response = client.delete(f"/doctors/{uid}", headers=auth(admin))
    assert response.status_code == 200
    assert response.json()["doctor"]["uid"] == uid
    assert client.get(f"/doctors/{uid}", headers=auth(admin)).status_code == 404


def test_list_orders_by_rating_then_reviews(client, make_user, db):
    unrated = make_user("doctor")
    few_reviews = make_user("doctor")
    many_reviews = make_user("doctor")
    top = make_user("doctor")
    few_reviews.doctor.rating, few_reviews.doctor.total_reviews = 4.0, 3
    many_reviews.doctor.rating, many_reviews.doctor.total_reviews = 4.0, 40
    top.doctor.rating, top.doctor.total_reviews = 4.9, 10
    db.commit()

    listed = [d["uid"] for d in client.get("/doctors").json()["doctors"]]
    assert listed == [top.doctor.uid, many_reviews.doctor.uid, few_reviews.doctor.uid, unrated.doctor.uid]


def test_unrated_doctors_sort_last_on_postgres():
    sql = str(select(Doctors).order_by(*LIST_ORDER).compile(dialect=postgresql.dialect()))
    assert "doctors.rating DESC NULLS LAST" in sql
    assert "doctors.total_reviews DESC NULLS LAST" in sql

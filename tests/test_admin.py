from sqlmodel import Session, select

from app.db import core
from app.db.schema import (
    Admin, AuditAction, AuditLog, CollectionStatus, RevenueRequest, Transporter
)
from app.models.transporter import TransporterAdminUpdate
from app.services.admin import AdminService
from conftest import PASSWORD
from seed import seed_admins


def test_admin_signin_records_last_login(client, make_admin, fetch):
    admin = make_admin()
    assert admin.last_login is None

    response = client.post("/api/v1/admin/token", json={
        "email": admin.email, "password": PASSWORD})

    assert response.status_code == 200
    assert fetch(Admin, admin.id).last_login is not None


def test_admin_signin_with_wrong_password(client, make_admin):
    admin = make_admin()
    response = client.post("/api/v1/admin/token", json={
        "email": admin.email, "password": "wrong-password"})
    assert response.status_code == 401


def test_dashboard_stats(client, db, make_admin, make_user, make_transporter, make_recycler,
                         make_collection, auth_headers):
    user = make_user()
    make_user()
    transporter = make_transporter()
    recycler = make_recycler()
    make_collection(user, transporter, wet=3, dry=1.5)
    make_collection(user, transporter, recycler, status=CollectionStatus.TRASH_DUMPED, wet=2)
    db.add(RevenueRequest(recycler_id=recycler.id, price_wet=1, price_dry=1,
                          price_hazardous=1, total_calculated_revenue=2))
    db.commit()

    response = client.get("/api/v1/admin/stats", headers=auth_headers(make_admin()))

    assert response.json() == {
        "user_count": 2,
        "transporter_count": 1,
        "recycler_count": 1,
        "total_weight_collected": 6.5,
        "pending_revenue_requests": 1,
    }


def test_admin_corrects_user_details(client, make_admin, make_user, auth_headers):
    admin = make_admin()
    user = make_user()

    response = client.put(f"/api/v1/admin/users/{user.id}",
                          json={"name": "Asha P.", "pin_code": "411002"},
                          headers=auth_headers(admin))

    assert response.status_code == 200
    assert response.json()["name"] == "Asha P."
    assert response.json()["mobile"] == user.mobile

    with Session(core.engine) as session:
        entry = session.exec(select(AuditLog)).one()
    assert entry.action == AuditAction.UPDATE
    assert entry.actor_id == admin.id
    assert entry.changes == {"name": "Asha P.", "pin_code": "411002"}


def test_admin_user_lookup(client, make_admin, make_user, auth_headers):
    headers = auth_headers(make_admin())
    user = make_user()

    listing = client.get("/api/v1/admin/users", headers=headers)
    found = client.get(f"/api/v1/admin/users/{user.id}", headers=headers)
    missing = client.get(f"/api/v1/admin/users/{make_admin(email='x@example.com').id}",
                         headers=headers)

    assert [u["id"] for u in listing.json()] == [str(user.id)]
    assert found.json()["mobile"] == user.mobile
    assert missing.status_code == 404


def test_admin_creates_transporter_and_recycler(client, make_admin, auth_headers):
    headers = auth_headers(make_admin())

    transporter = client.post("/api/v1/admin/transporters", json={
        "name": "Ravi",
        "mobile": "8111111111",
        "password": PASSWORD,
        "license_plate": "MH-12-ZZ-0001",
    }, headers=headers)
    duplicate = client.post("/api/v1/admin/transporters", json={
        "name": "Ravi Again",
        "mobile": "8222222222",
        "password": PASSWORD,
        "license_plate": "MH-12-ZZ-0001",
    }, headers=headers)
    recycler = client.post("/api/v1/admin/recyclers", json={
        "name": "GreenCycle",
        "email": "ops@greencycle.example.com",
        "password": PASSWORD,
        "address": "Plot 7, MIDC",
        "city": "Pune",
        "state": "MH",
        "zip_code": "411019",
    }, headers=headers)

    assert transporter.status_code == 201
    assert transporter.json()["message"] == "Transporter created successfully"
    assert duplicate.status_code == 409
    assert recycler.status_code == 201
    assert len(client.get("/api/v1/admin/transporters", headers=headers).json()) == 1
    assert len(client.get("/api/v1/admin/recyclers", headers=headers).json()) == 1


def test_admin_deactivates_transporter(client, make_admin, make_transporter, auth_headers, fetch):
    transporter = make_transporter()

    response = client.put(f"/api/v1/admin/transporters/{transporter.id}",
                          json={"is_active": False, "vehicle_model": "Eicher Pro"},
                          headers=auth_headers(make_admin()))

    assert response.status_code == 200
    row = fetch(Transporter, transporter.id)
    assert row.is_active is False
    assert row.vehicle_model == "Eicher Pro"
    assert client.get("/api/v1/transporters/me",
                      headers=auth_headers(transporter)).status_code == 403


def test_transporter_correction_commits_once(db, make_transporter, monkeypatch, fetch):
    transporter = make_transporter()
    commits = []
    real_commit = db.commit

    def counting_commit():
        commits.append(1)
        real_commit()

    monkeypatch.setattr(db, "commit", counting_commit)

    AdminService(db).update_transporter(
        transporter.id, TransporterAdminUpdate(is_active=False, vehicle_model="Eicher Pro"))

    assert len(commits) == 1
    row = fetch(Transporter, transporter.id)
    assert row.is_active is False
    assert row.vehicle_model == "Eicher Pro"


def test_rejected_correction_leaves_transporter_active(client, make_admin, make_transporter,
                                                       auth_headers, fetch):
    taken = make_transporter()
    transporter = make_transporter()

    response = client.put(f"/api/v1/admin/transporters/{transporter.id}",
                          json={"is_active": False, "license_plate": taken.license_plate},
                          headers=auth_headers(make_admin()))

    assert response.status_code == 409
    row = fetch(Transporter, transporter.id)
    assert row.is_active is True
    assert row.license_plate == transporter.license_plate


def test_wallet_balance_is_not_editable(client, make_admin, make_transporter, auth_headers, fetch):
    transporter = make_transporter()

    client.put(f"/api/v1/admin/transporters/{transporter.id}",
               json={"wallet_balance": 1000}, headers=auth_headers(make_admin()))

    assert fetch(Transporter, transporter.id).wallet_balance == 0.0


def test_seed_admins_is_idempotent(db, monkeypatch):
    monkeypatch.setenv("ADMIN1_PASSWORD", "first-admin-pass")
    monkeypatch.delenv("ADMIN2_PASSWORD", raising=False)

    assert seed_admins(db) == 1
    db.commit()
    assert seed_admins(db) == 0
    db.commit()

    emails = [a.email for a in db.exec(select(Admin)).all()]
    assert emails == ["admin1@wastetrack.in"]

import threading
import uuid
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlmodel import Session, select

from app.db import core
from app.db.schema import (
    AuditAction, AuditLog, Collection, CollectionStatus, RevenueRequest,
    RevenueRequestStatus, Transporter, User, WalletLedgerEntry
)
from app.services.revenue import RevenueService

PRICES = {"wet": 2, "dry": 3, "hazardous": 5}


def _submit(client, headers, collection_ids, prices=PRICES):
    return client.post("/api/v1/recyclers/me/revenue-requests", json={
        "collection_ids": [str(i) for i in collection_ids],
        "waste_prices": prices,
    }, headers=headers)


def _rows(model):
    with Session(core.engine) as session:
        return session.exec(select(model)).all()


@pytest.fixture
def world(make_user, make_transporter, make_recycler, make_admin, make_collection):
    """Two citizens, one transporter, one recycler holding two claimed collections."""
    first_user = make_user()
    second_user = make_user()
    transporter = make_transporter()
    recycler = make_recycler()
    admin = make_admin()
    first = make_collection(first_user, transporter, recycler,
                            status=CollectionStatus.TRASH_DUMPED, wet=10)
    second = make_collection(second_user, transporter, recycler,
                             status=CollectionStatus.TRASH_DUMPED, wet=5, dry=2)
    return {
        "users": (first_user, second_user),
        "transporter": transporter,
        "recycler": recycler,
        "admin": admin,
        "collections": (first, second),
    }


# ==============================================================================
# SUBMISSION
# ==============================================================================

def test_submit_computes_total(client, world, auth_headers):
    first, second = world["collections"]

    response = _submit(client, auth_headers(world["recycler"]), [second.id, first.id])

    assert response.status_code == 201
    body = response.json()
    assert body["total_calculated_revenue"] == 36.0
    assert body["status"] == "Pending"
    assert body["final_distribution"] is None
    assert body["collections"] == [str(second.id), str(first.id)]
    assert body["waste_prices"] == {"wet": 2.0, "dry": 3.0, "hazardous": 5.0}


def test_submit_stores_exact_total(client, make_user, make_transporter, make_recycler,
                                   make_admin, make_collection, auth_headers):
    recycler = make_recycler()
    collection = make_collection(make_user(), make_transporter(), recycler,
                                 status=CollectionStatus.TRASH_DUMPED, wet=0.125)

    submitted = _submit(client, auth_headers(recycler), [collection.id],
                        prices={"wet": 1, "dry": 0, "hazardous": 0})
    approved = _approve(client, auth_headers(make_admin()), submitted.json()["id"])

    assert submitted.json()["total_calculated_revenue"] == 0.125
    # the split itself works on whole cents: 0.125 -> 0.13
    assert approved.json()["final_distribution"] == {
        "total_user_share": 0.05,
        "total_transporter_share": 0.03,
        "municipality_share": 0.01,
        "central_gov_share": 0.02,
        "recycler_share": 0.02,
    }


def test_submit_does_not_touch_collections(client, world, auth_headers, fetch):
    first, second = world["collections"]

    _submit(client, auth_headers(world["recycler"]), [first.id, second.id])

    for collection in (first, second):
        assert fetch(Collection, collection.id).status == CollectionStatus.TRASH_DUMPED


def test_submit_is_audited(client, world, auth_headers):
    first, _ = world["collections"]

    response = _submit(client, auth_headers(world["recycler"]), [first.id])

    entries = _rows(AuditLog)
    assert len(entries) == 1
    assert entries[0].action == AuditAction.CREATE
    assert str(entries[0].entity_id) == response.json()["id"]


def test_submit_foreign_collection_creates_nothing(client, world, make_recycler, make_collection,
                                                   auth_headers, fetch):
    first, _ = world["collections"]
    rival = make_recycler()
    theirs = make_collection(world["users"][0], world["transporter"], rival,
                             status=CollectionStatus.TRASH_DUMPED, wet=50)

    response = _submit(client, auth_headers(world["recycler"]), [first.id, theirs.id])

    assert response.status_code == 409
    assert _rows(RevenueRequest) == []
    untouched = fetch(Collection, theirs.id)
    assert untouched.recycler_id == rival.id
    assert untouched.status == CollectionStatus.TRASH_DUMPED


@pytest.mark.parametrize("status", [CollectionStatus.COLLECTED, CollectionStatus.COMPLETED])
def test_submit_requires_trash_dumped(client, world, make_collection, auth_headers, status):
    stale = make_collection(world["users"][0], world["transporter"], world["recycler"],
                            status=status, wet=1)

    response = _submit(client, auth_headers(world["recycler"]), [stale.id])

    assert response.status_code == 409
    assert _rows(RevenueRequest) == []


def test_submit_rejects_duplicated_ids(client, world, auth_headers):
    first, _ = world["collections"]
    response = _submit(client, auth_headers(world["recycler"]), [first.id, first.id])
    assert response.status_code == 409


def test_submit_requires_at_least_one_collection(client, world, auth_headers):
    response = _submit(client, auth_headers(world["recycler"]), [])
    assert response.status_code == 422


def test_submit_rejects_negative_prices(client, world, auth_headers):
    first, _ = world["collections"]
    response = _submit(client, auth_headers(world["recycler"]), [first.id],
                       prices={"wet": -1, "dry": 0, "hazardous": 0})
    assert response.status_code == 422


def test_recycler_lists_own_requests(client, world, make_recycler, auth_headers):
    first, _ = world["collections"]
    _submit(client, auth_headers(world["recycler"]), [first.id])

    mine = client.get("/api/v1/recyclers/me/revenue-requests",
                      headers=auth_headers(world["recycler"]))
    theirs = client.get("/api/v1/recyclers/me/revenue-requests",
                        headers=auth_headers(make_recycler()))

    assert len(mine.json()) == 1
    assert theirs.json() == []


# ==============================================================================
# APPROVAL
# ==============================================================================

def _approve(client, headers, request_id):
    return client.post(f"/api/v1/admin/revenue-requests/{request_id}/approve", headers=headers)


def _decline(client, headers, request_id):
    return client.post(f"/api/v1/admin/revenue-requests/{request_id}/decline", headers=headers)


def test_approve_distributes_one_hundred(client, make_user, make_transporter, make_recycler,
                                         make_admin, make_collection, auth_headers, fetch):
    user = make_user()
    transporter = make_transporter()
    recycler = make_recycler()
    collection = make_collection(user, transporter, recycler,
                                 status=CollectionStatus.TRASH_DUMPED, wet=50)
    request_id = _submit(client, auth_headers(recycler), [collection.id]).json()["id"]

    response = _approve(client, auth_headers(make_admin()), request_id)

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "Approved"
    assert body["final_distribution"] == {
        "total_user_share": 40.0,
        "total_transporter_share": 30.0,
        "municipality_share": 15.0,
        "central_gov_share": 15.0,
        "recycler_share": 0.0,
    }
    assert fetch(User, user.id).wallet_balance == 40.0
    assert fetch(Transporter, transporter.id).wallet_balance == 30.0
    assert fetch(Collection, collection.id).status == CollectionStatus.COMPLETED


def test_approve_splits_user_pool_across_distinct_users(client, world, auth_headers, fetch):
    first_user, second_user = world["users"]
    request_id = _submit(client, auth_headers(world["recycler"]),
                         [c.id for c in world["collections"]]).json()["id"]

    body = _approve(client, auth_headers(world["admin"]), request_id).json()

    # R = 36: users 14.40, transporters 10.80, government 10.80
    assert body["final_distribution"]["total_user_share"] == 14.4
    assert body["final_distribution"]["municipality_share"] == 5.4
    assert body["final_distribution"]["central_gov_share"] == 5.4
    assert fetch(User, first_user.id).wallet_balance == 7.2
    assert fetch(User, second_user.id).wallet_balance == 7.2
    assert fetch(Transporter, world["transporter"].id).wallet_balance == 10.8
    assert len(_rows(WalletLedgerEntry)) == 3


def test_approving_twice_pays_once(client, world, auth_headers, fetch):
    first_user, _ = world["users"]
    headers = auth_headers(world["admin"])
    request_id = _submit(client, auth_headers(world["recycler"]),
                         [c.id for c in world["collections"]]).json()["id"]

    assert _approve(client, headers, request_id).status_code == 200
    again = _approve(client, headers, request_id)

    assert again.status_code == 409
    assert fetch(User, first_user.id).wallet_balance == 7.2
    assert len(_rows(WalletLedgerEntry)) == 3


def test_concurrent_approvals_pay_once(client, world, auth_headers, fetch):
    first_user, second_user = world["users"]
    headers = auth_headers(world["admin"])
    request_id = _submit(client, auth_headers(world["recycler"]),
                         [c.id for c in world["collections"]]).json()["id"]
    start = threading.Barrier(4)

    def approve():
        start.wait()
        return _approve(client, headers, request_id).status_code

    with ThreadPoolExecutor(max_workers=4) as pool:
        codes = sorted(pool.map(lambda _: approve(), range(4)))

    assert codes == [200, 409, 409, 409]
    assert fetch(User, first_user.id).wallet_balance == 7.2
    assert fetch(User, second_user.id).wallet_balance == 7.2
    assert fetch(Transporter, world["transporter"].id).wallet_balance == 10.8
    assert len(_rows(WalletLedgerEntry)) == 3


def test_failure_after_credits_rolls_everything_back(client, world, auth_headers, fetch,
                                                     monkeypatch):
    request_id = _submit(client, auth_headers(world["recycler"]),
                         [c.id for c in world["collections"]]).json()["id"]
    apply_credits = RevenueService._apply_credits

    def credit_then_fail(self, request, distribution):
        apply_credits(self, request, distribution)
        self.session.flush()
        raise RuntimeError("ledger write lost")

    monkeypatch.setattr(RevenueService, "_apply_credits", credit_then_fail)

    response = _approve(client, auth_headers(world["admin"]), request_id)

    assert response.status_code == 500
    assert fetch(RevenueRequest, uuid.UUID(request_id)).status == RevenueRequestStatus.PENDING
    for user in world["users"]:
        assert fetch(User, user.id).wallet_balance == 0.0
    assert fetch(Transporter, world["transporter"].id).wallet_balance == 0.0
    for collection in world["collections"]:
        assert fetch(Collection, collection.id).status == CollectionStatus.TRASH_DUMPED
    assert _rows(WalletLedgerEntry) == []


def test_approve_unknown_request(client, world, auth_headers):
    response = _approve(client, auth_headers(world["admin"]), uuid.uuid4())
    assert response.status_code == 409


def test_approval_fails_when_collection_already_settled(client, world, auth_headers, fetch):
    recycler_headers = auth_headers(world["recycler"])
    admin_headers = auth_headers(world["admin"])
    ids = [c.id for c in world["collections"]]
    first_id = _submit(client, recycler_headers, ids).json()["id"]
    second_id = _submit(client, recycler_headers, ids[:1]).json()["id"]

    assert _approve(client, admin_headers, first_id).status_code == 200
    response = _approve(client, admin_headers, second_id)

    assert response.status_code == 409
    assert fetch(RevenueRequest, uuid.UUID(second_id)).status == RevenueRequestStatus.PENDING
    assert fetch(User, world["users"][0].id).wallet_balance == 7.2
    assert len(_rows(WalletLedgerEntry)) == 3


def test_approve_is_audited(client, world, auth_headers):
    request_id = _submit(client, auth_headers(world["recycler"]),
                         [world["collections"][0].id]).json()["id"]

    _approve(client, auth_headers(world["admin"]), request_id)

    actions = sorted(entry.action.value for entry in _rows(AuditLog))
    assert actions == ["approve", "create"]


def test_only_admins_decide(client, world, auth_headers):
    request_id = _submit(client, auth_headers(world["recycler"]),
                         [world["collections"][0].id]).json()["id"]

    assert _approve(client, auth_headers(world["recycler"]), request_id).status_code == 403
    assert _decline(client, auth_headers(world["users"][0]), request_id).status_code == 403
    assert client.get("/api/v1/admin/revenue-requests",
                      headers=auth_headers(world["transporter"])).status_code == 403


def test_user_wallet_lists_ledger_entries(client, world, auth_headers):
    first_user, _ = world["users"]
    request_id = _submit(client, auth_headers(world["recycler"]),
                         [c.id for c in world["collections"]]).json()["id"]
    _approve(client, auth_headers(world["admin"]), request_id)

    wallet = client.get("/api/v1/users/me/wallet", headers=auth_headers(first_user)).json()

    assert wallet["wallet_balance"] == 7.2
    assert [e["amount"] for e in wallet["entries"]] == [7.2]
    assert wallet["entries"][0]["revenue_request_id"] == request_id


# ==============================================================================
# DECLINE
# ==============================================================================

def test_decline_moves_no_money(client, world, auth_headers, fetch):
    first, second = world["collections"]
    request_id = _submit(client, auth_headers(world["recycler"]), [first.id, second.id]).json()["id"]

    response = _decline(client, auth_headers(world["admin"]), request_id)

    assert response.status_code == 200
    assert response.json()["status"] == "Declined"
    assert response.json()["final_distribution"] is None
    assert fetch(User, world["users"][0].id).wallet_balance == 0.0
    assert fetch(Collection, first.id).status == CollectionStatus.TRASH_DUMPED
    assert _rows(WalletLedgerEntry) == []


def test_declined_collections_can_be_resubmitted(client, world, auth_headers):
    recycler_headers = auth_headers(world["recycler"])
    ids = [c.id for c in world["collections"]]
    request_id = _submit(client, recycler_headers, ids).json()["id"]
    _decline(client, auth_headers(world["admin"]), request_id)

    assert _submit(client, recycler_headers, ids).status_code == 201


def test_decline_requires_pending(client, world, auth_headers, fetch):
    headers = auth_headers(world["admin"])
    approved_id = _submit(client, auth_headers(world["recycler"]),
                          [world["collections"][0].id]).json()["id"]
    declined_id = _submit(client, auth_headers(world["recycler"]),
                          [world["collections"][1].id]).json()["id"]
    _approve(client, headers, approved_id)
    _decline(client, headers, declined_id)

    assert _decline(client, headers, approved_id).status_code == 409
    assert _decline(client, headers, declined_id).status_code == 409
    assert _approve(client, headers, declined_id).status_code == 409
    assert fetch(RevenueRequest, uuid.UUID(approved_id)).status == RevenueRequestStatus.APPROVED


def test_decline_unknown_request(client, world, auth_headers):
    response = _decline(client, auth_headers(world["admin"]), uuid.uuid4())
    assert response.status_code == 404


def test_admin_lists_requests_by_status(client, world, auth_headers):
    headers = auth_headers(world["admin"])
    recycler_headers = auth_headers(world["recycler"])
    kept = _submit(client, recycler_headers, [world["collections"][0].id]).json()["id"]
    dropped = _submit(client, recycler_headers, [world["collections"][1].id]).json()["id"]
    _decline(client, headers, dropped)

    everything = client.get("/api/v1/admin/revenue-requests", headers=headers).json()
    pending = client.get("/api/v1/admin/revenue-requests",
                         params={"status": "Pending"}, headers=headers).json()

    assert {r["id"] for r in everything} == {kept, dropped}
    assert [r["id"] for r in pending] == [kept]

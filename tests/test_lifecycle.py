"""
Tests for the record lifecycle.

Tests cover:
- Unarchive note formatting helpers
- Create / edit / archive flows over the JSON API
- Listing split between active and archived records
- Audit trail entries for transitions
"""

from datetime import datetime

import pytest
from sqlalchemy import select

from app.backoffice.db import session_scope
from app.backoffice.lifecycle import append_note, format_unarchive_line, preserve_unarchive_lines
from app.backoffice.models import AuditEvent
from app.backoffice.modules.inactive_coupons.models import InactiveCoupon
from conftest import ADMIN, MODERATOR, PLAIN


class TestUnarchiveNotes:
    def test_format(self):
        line = format_unarchive_line(datetime(2024, 3, 1, 9, 5, 7), "Customer complaint resolved")
        assert line == "[UNARCHIVED on 2024-03-01 09:05:07 UTC]: Customer complaint resolved"

    def test_append_to_empty(self):
        assert append_note(None, "line") == "line"
        assert append_note("", "line") == "line"

    def test_append_separated_by_blank_line(self):
        assert append_note("original", "line") == "original\n\nline"

    def test_edit_keeps_unarchive_lines(self):
        line = format_unarchive_line(datetime(2024, 3, 1), "Reopened by request")
        old = append_note("original", line)
        assert preserve_unarchive_lines(old, "rewritten") == f"rewritten\n\n{line}"
        assert preserve_unarchive_lines(old, None) == line
        assert preserve_unarchive_lines(old, old) == old

    def test_note_collapsed_to_one_line(self):
        line = format_unarchive_line(datetime(2024, 3, 1), "Called back\n\n  refund   approved ")
        assert line == "[UNARCHIVED on 2024-03-01 00:00:00 UTC]: Called back refund approved"

    def test_altered_line_is_restored(self):
        line = format_unarchive_line(datetime(2024, 3, 1), "Reopened by request")
        edited = preserve_unarchive_lines(line, line + " and then closed again")
        assert edited.splitlines() == [line + " and then closed again", "", line]

    def test_no_lines_to_keep(self):
        assert preserve_unarchive_lines("plain", "new") == "new"
        assert preserve_unarchive_lines(None, None) is None


def _coupon(client, code="SAVE10", **extra):
    r = client.post("/api/inactive-coupons", json={"salesOrder": "SO-1001", "couponCode": code, **extra})
    assert r.status_code == 201, r.json
    return r.json["record"]


def test_create_stamps_audit_fields(client, login, ids):
    login(PLAIN)
    record = _coupon(client, notes="first note")
    assert record["createdBy"] == ids["user"]
    assert record["updatedBy"] == ids["user"]
    assert record["isArchived"] is False
    assert record["archivedAt"] is None
    assert record["archivedBy"] is None
    assert record["notes"] == "first note"


def test_create_requires_fields(client, login):
    login(PLAIN)
    r = client.post("/api/inactive-coupons", json={"salesOrder": "SO-1"})
    assert r.status_code == 400
    assert r.json["error"] == "Sales order and coupon code are required"


def test_create_requires_login(client):
    r = client.post("/api/inactive-coupons", json={"salesOrder": "SO-1", "couponCode": "X"})
    assert r.status_code == 401


def test_edit_requires_staff(client_as):
    user = client_as(PLAIN)
    record = _coupon(user)
    r = user.put(f"/api/inactive-coupons/{record['id']}", json={"salesOrder": "SO-2", "couponCode": "X"})
    assert r.status_code == 403

    moderator = client_as(MODERATOR)
    r = moderator.put(f"/api/inactive-coupons/{record['id']}", json={"salesOrder": "SO-2", "couponCode": "X"})
    assert r.status_code == 200
    assert r.json["record"]["salesOrder"] == "SO-2"


def test_edit_missing_record(client, login):
    login(MODERATOR)
    r = client.put("/api/inactive-coupons/9999", json={"salesOrder": "SO-2", "couponCode": "X"})
    assert r.status_code == 404


def test_archive_moves_record_between_listings(client, login, ids):
    login(ADMIN)
    record = _coupon(client)

    r = client.delete(f"/api/inactive-coupons/{record['id']}")
    assert r.status_code == 200
    assert r.json["message"] == "Coupon archived successfully"

    active = client.get("/api/inactive-coupons").json["records"]
    archived = client.get("/api/inactive-coupons?archived=true").json["records"]
    assert record["id"] not in [x["id"] for x in active]
    archived_row = next(x for x in archived if x["id"] == record["id"])
    assert archived_row["isArchived"] is True
    assert archived_row["archivedBy"] == ids["admin"]
    assert archived_row["archivedAt"] is not None


def test_archive_is_admin_only(client_as):
    moderator = client_as(MODERATOR)
    record = _coupon(moderator)
    r = moderator.delete(f"/api/inactive-coupons/{record['id']}")
    assert r.status_code == 403


def test_archive_twice_rejected(client, login):
    login(ADMIN)
    record = _coupon(client)
    assert client.delete(f"/api/inactive-coupons/{record['id']}").status_code == 200
    r = client.delete(f"/api/inactive-coupons/{record['id']}")
    assert r.status_code == 400
    assert r.json["error"] == "InactiveCoupon is already archived"


def test_archived_records_cannot_be_edited(client, login):
    login(ADMIN)
    record = _coupon(client)
    client.delete(f"/api/inactive-coupons/{record['id']}")
    r = client.put(f"/api/inactive-coupons/{record['id']}", json={"salesOrder": "SO-9", "couponCode": "X"})
    assert r.status_code == 400


def test_archived_listing_requires_view_archive(client, login):
    login(PLAIN)
    r = client.get("/api/inactive-coupons?archived=true")
    assert r.status_code == 403
    r = client.get("/api/inactive-coupons")
    assert r.status_code == 200


def test_search(client, login):
    login(PLAIN)
    _coupon(client, code="WELCOME5")
    _coupon(client, code="SPRING20")
    r = client.get("/api/inactive-coupons?q=spring")
    assert [x["couponCode"] for x in r.json["records"]] == ["SPRING20"]


def test_unarchive_not_offered_for_archive_only_types(client, login):
    login(ADMIN)
    record = _coupon(client)
    client.delete(f"/api/inactive-coupons/{record['id']}")
    r = client.patch(f"/api/inactive-coupons/{record['id']}", json={"unarchiveNote": "Customer complaint resolved"})
    assert r.status_code == 405


def test_transitions_are_audited(client, login, app):
    login(ADMIN)
    record = _coupon(client)
    client.put(f"/api/inactive-coupons/{record['id']}", json={"salesOrder": "SO-2", "couponCode": "SAVE10"})
    client.delete(f"/api/inactive-coupons/{record['id']}")

    with session_scope(app) as s:
        actions = [
            e.action
            for e in s.execute(
                select(AuditEvent).where(AuditEvent.entity_type == "InactiveCoupon").order_by(AuditEvent.id)
            ).scalars()
        ]
        assert actions == ["inactive_coupon.create", "inactive_coupon.edit", "inactive_coupon.archive"]
        stored = s.get(InactiveCoupon, record["id"])
        assert stored.is_archived is True


ARCHIVE_ONLY_TYPES = [
    (
        "/api/reward-points",
        "records",
        lambda ids: {
            "orderNumber": "100200",
            "customerName": "Zainab Ali",
            "orderStatus": "Delivered",
            "deliveryDate": "2024-05-01T10:00:00Z",
        },
    ),
    (
        "/api/late-orders",
        "orders",
        lambda ids: {"orderNumber": "300400", "governorateId": ids["governorate"], "orderDate": "2024-05-02"},
    ),
    (
        "/api/cancelled-orders",
        "orders",
        lambda ids: {
            "orderNumber": "500600",
            "cancellationReasonId": ids["reason"],
            "systemId": ids["system"],
            "paymentMethod": "Cash on Delivery",
        },
    ),
]


@pytest.mark.parametrize("path,collection,payload", ARCHIVE_ONLY_TYPES)
def test_archive_only_types_share_the_flow(client, login, ids, path, collection, payload):
    login(ADMIN)
    r = client.post(path, json=payload(ids))
    assert r.status_code == 201, r.json
    record_id = next(iter(r.json.values()))["id"]

    assert client.delete(f"{path}/{record_id}").status_code == 200
    assert record_id not in [x["id"] for x in client.get(path).json[collection]]
    assert record_id in [x["id"] for x in client.get(f"{path}?archived=true").json[collection]]

from datetime import datetime, timedelta, timezone

import pytest

from campus_portal.core.errors import LateRequestNotAllowed
from campus_portal.db import repository
from campus_portal.engine.deadline import Unlimited
from campus_portal.engine.eligibility import EligibilityReason
from campus_portal.engine.gate import SubmissionGate

STRICT_ID = 1
LATE_OK_ID = 2
STUDENT_ID = 7

AFTER_DEADLINE = datetime(2025, 1, 10, 10, 1, tzinfo=timezone.utc)


def status_of(client, assignment_id=LATE_OK_ID, student_id=STUDENT_ID):
    r = client.get(f"/assignments/{assignment_id}/students/{student_id}/status")
    assert r.status_code == 200, r.text
    return r.json()


def file_request(client, assignment_id=LATE_OK_ID, student_id=STUDENT_ID, reason="I was ill"):
    return client.post(
        f"/assignments/{assignment_id}/late-requests",
        json={"student_id": student_id, "reason": reason},
    )


def test_expired_assignment_offers_late_request(client, clock):
    clock.set(AFTER_DEADLINE)

    eligibility = status_of(client)["eligibility"]
    assert eligibility == {
        "allowed": False,
        "reason": "late_request_eligible",
        "can_request_late_submission": True,
    }

    r = client.post(f"/assignments/{LATE_OK_ID}/submissions", json={"student_id": STUDENT_ID})
    assert r.status_code == 403
    assert r.json()["detail"]["reason"] == "late_request_eligible"


def test_filed_request_is_pending_and_blocks_submission(client, clock):
    clock.set(AFTER_DEADLINE)

    r = file_request(client)
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["status"] == "pending"
    assert body["reason"] == "I was ill"
    assert body["original_deadline"] == "2025-01-10T10:00:00Z"
    assert body["requested_at"] == "2025-01-10T10:01:00Z"

    status = status_of(client)
    assert status["eligibility"]["reason"] == "late_request_pending"
    assert status["late_request"]["id"] == body["id"]

    # only one active request per pair
    again = file_request(client)
    assert again.status_code == 409
    assert again.json()["detail"]["reason"] == "late_request_pending"


def test_cannot_file_before_deadline_or_without_late_policy(client, clock):
    r = file_request(client)
    assert r.status_code == 409
    assert r.json()["detail"]["reason"] == "ok"

    clock.set(AFTER_DEADLINE)
    r = file_request(client, assignment_id=STRICT_ID)
    assert r.status_code == 409
    assert r.json()["detail"]["reason"] == "deadline_passed"

    assert file_request(client, assignment_id=999).status_code == 404


def test_approval_with_extended_deadline_reopens_submission(client, clock):
    clock.set(AFTER_DEADLINE)
    request_id = file_request(client).json()["id"]

    r = client.post(
        f"/late-requests/{request_id}/approve",
        json={"extended_deadline": "2025-01-12T10:00:00Z", "admin_notes": "ok"},
    )
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "approved"
    assert r.json()["reviewed_by"] == "Admin"

    clock.set(datetime(2025, 1, 11, 0, 0, tzinfo=timezone.utc))
    status = status_of(client)
    assert status["deadline"] == {
        "kind": "active",
        "until": "2025-01-12T10:00:00Z",
        "extended": True,
    }
    assert status["eligibility"]["allowed"] is True
    assert status["countdown"]["text"] == "1d 10h 0m 0s left (extended)"

    sub = client.post(
        f"/assignments/{LATE_OK_ID}/submissions",
        json={"student_id": STUDENT_ID, "content": "late work"},
    )
    assert sub.status_code == 201, sub.text
    assert sub.json()["is_late"] is True

    clock.set(datetime(2025, 1, 12, 10, 0, 1, tzinfo=timezone.utc))
    status = status_of(client)
    assert status["eligibility"]["reason"] == "deadline_passed"
    assert status["countdown"] == {
        "text": "Extended deadline passed",
        "urgent": False,
        "expired": True,
    }


def test_approval_without_deadline_removes_time_pressure(client, clock):
    clock.set(AFTER_DEADLINE)
    request_id = file_request(client).json()["id"]

    r = client.post(f"/late-requests/{request_id}/approve", json={})
    assert r.status_code == 200, r.text
    assert r.json()["extended_deadline"] is None

    clock.advance(timedelta(days=90))
    status = status_of(client)
    assert status["deadline"]["kind"] == "unlimited"
    assert status["countdown"]["text"] == "No time limit"
    assert status["eligibility"]["allowed"] is True


def test_rejection_needs_notes_and_allows_refiling(client, clock):
    clock.set(AFTER_DEADLINE)
    request_id = file_request(client).json()["id"]

    assert client.post(f"/late-requests/{request_id}/reject", json={"admin_notes": "   "}).status_code == 422
    assert client.post(f"/late-requests/{request_id}/reject", json={}).status_code == 422

    r = client.post(
        f"/late-requests/{request_id}/reject",
        json={"admin_notes": "No evidence provided", "reviewed_by": "Dr. Perera"},
    )
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "rejected"
    assert r.json()["reviewed_by"] == "Dr. Perera"
    assert r.json()["reviewed_at"] == "2025-01-10T10:01:00Z"

    status = status_of(client)
    assert status["eligibility"]["reason"] == "late_request_eligible"
    assert status["late_request"]["status"] == "rejected"

    second = file_request(client, reason="Medical certificate attached")
    assert second.status_code == 201
    assert status_of(client)["eligibility"]["reason"] == "late_request_pending"


def test_reviewed_requests_are_terminal(client, clock):
    clock.set(AFTER_DEADLINE)
    request_id = file_request(client).json()["id"]
    assert client.post(f"/late-requests/{request_id}/approve", json={}).status_code == 200

    again = client.post(f"/late-requests/{request_id}/reject", json={"admin_notes": "changed my mind"})
    assert again.status_code == 409
    assert "already approved" in again.json()["detail"]

    assert client.post(f"/late-requests/{request_id}/approve", json={}).status_code == 409
    assert client.post("/late-requests/999/approve", json={}).status_code == 404


def test_review_queue_filters_and_orders_newest_first(client, clock):
    clock.set(AFTER_DEADLINE)
    first = file_request(client, student_id=7).json()
    clock.advance(timedelta(minutes=5))
    second = file_request(client, student_id=8).json()
    client.post(f"/late-requests/{first['id']}/reject", json={"admin_notes": "no"})

    all_ids = [r["id"] for r in client.get("/late-requests").json()]
    assert all_ids == [second["id"], first["id"]]

    pending = client.get("/late-requests", params={"status": "pending"}).json()
    assert [r["id"] for r in pending] == [second["id"]]

    rejected = client.get("/late-requests", params={"status": "rejected"}).json()
    assert [r["id"] for r in rejected] == [first["id"]]

    assert client.get("/late-requests", params={"status": "bogus"}).status_code == 422


def test_delete_request(client, clock):
    clock.set(AFTER_DEADLINE)
    request_id = file_request(client).json()["id"]

    assert client.delete(f"/late-requests/{request_id}").status_code == 204
    assert client.delete(f"/late-requests/{request_id}").status_code == 404
    assert status_of(client)["eligibility"]["reason"] == "late_request_eligible"


def test_two_tabs_cannot_both_file_a_request(db, session_factory, clock):
    clock.set(AFTER_DEADLINE)
    tab_a = session_factory()
    tab_b = session_factory()
    try:
        seen_a = SubmissionGate(tab_a, clock).status(LATE_OK_ID, STUDENT_ID)
        seen_b = SubmissionGate(tab_b, clock).status(LATE_OK_ID, STUDENT_ID)
        assert seen_a.eligibility.reason == EligibilityReason.LATE_REQUEST_ELIGIBLE
        assert seen_b.eligibility.reason == EligibilityReason.LATE_REQUEST_ELIGIBLE

        first = repository.create_late_request(tab_a, seen_a.assignment, STUDENT_ID, "tab a", seen_a.now)
        with pytest.raises(LateRequestNotAllowed) as exc_info:
            repository.create_late_request(tab_b, seen_b.assignment, STUDENT_ID, "tab b", seen_b.now)
        assert exc_info.value.reason == EligibilityReason.LATE_REQUEST_PENDING

        SubmissionGate(tab_a, clock).approve(first.id)
    finally:
        tab_a.close()
        tab_b.close()

    current = SubmissionGate(db, clock).status(LATE_OK_ID, STUDENT_ID)
    assert isinstance(current.state, Unlimited)
    assert current.eligibility.reason == EligibilityReason.OK
    assert [r.id for r in repository.list_late_requests(db)] == [first.id]


def test_second_filing_past_a_stale_check_returns_409(client, clock, monkeypatch):
    clock.set(AFTER_DEADLINE)
    first = file_request(client)
    assert first.status_code == 201

    # the second tab's eligibility read happened before the first filing landed
    monkeypatch.setattr(repository, "get_late_request", lambda db, assignment_id, student_id: None)
    r = file_request(client, reason="filed twice")

    assert r.status_code == 409
    assert r.json()["detail"]["reason"] == "late_request_pending"
    assert [req["id"] for req in client.get("/late-requests").json()] == [first.json()["id"]]


def test_approval_rejects_an_extended_deadline_that_is_not_in_the_future(client, clock):
    clock.set(AFTER_DEADLINE)
    request_id = file_request(client).json()["id"]

    for when in ["2025-01-10T10:00:00Z", "2025-01-10T10:01:00Z"]:
        r = client.post(f"/late-requests/{request_id}/approve", json={"extended_deadline": when})
        assert r.status_code == 422, when
        assert "not in the future" in r.json()["detail"]

    pending = client.get("/late-requests", params={"status": "pending"}).json()
    assert [req["id"] for req in pending] == [request_id]
    assert status_of(client)["eligibility"]["reason"] == "late_request_pending"

    r = client.post(
        f"/late-requests/{request_id}/approve",
        json={"extended_deadline": "2025-01-10T10:02:00Z"},
    )
    assert r.status_code == 200

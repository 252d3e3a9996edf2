"""Tests for the claim repository: CRUD, queries, filters and statistics."""

from datetime import datetime
from decimal import Decimal

import pytest

from cmcs.storage.claim_repository import filter_by_status
from cmcs.utils.errors import ClaimValidationError, ErrorType, RecordStoreError

from conftest import LECTURER_EMAIL, MANAGER_EMAIL


def test_add_assigns_identity_timestamps_and_total(claims, make_claim):
    claim = make_claim()

    claim_id = claims.add(claim)

    stored = claims.get(claim_id)
    assert stored is not None
    assert stored.claim_id == claim.claim_id == claim_id
    assert stored.claim_number == 1
    assert stored.submit_date is not None
    assert stored.last_updated is not None
    assert stored.total_amount == Decimal("4500.00")
    assert stored.status == "Pending Review"


def test_add_keeps_supplied_total(claims, make_claim):
    claim_id = claims.add(make_claim(total_amount=Decimal("4000.00")))

    assert claims.get(claim_id).total_amount == Decimal("4000.00")


@pytest.mark.parametrize(
    "overrides",
    [
        {"hours": 0},
        {"hourly_rate": Decimal("0")},
        {"lecturer_email": "  "},
        {"status": "Approved"},
    ],
)
def test_add_rejects_invalid_claims(claims, make_claim, overrides):
    with pytest.raises(ClaimValidationError) as exc_info:
        claims.add(make_claim(**overrides))

    assert exc_info.value.error_type == ErrorType.CLAIM_VALIDATION_FAILED
    assert claims.load() == []


def test_get_missing_returns_none(claims):
    assert claims.get("C2025-999") is None


def test_update_replaces_and_refreshes_last_updated(claims, make_claim):
    claim_id = claims.add(make_claim())
    claim = claims.get(claim_id)
    claim.last_updated = datetime(2000, 1, 1)
    claim.description = "Marking"

    assert claims.update(claim) is True

    stored = claims.get(claim_id)
    assert stored.description == "Marking"
    assert stored.last_updated > datetime(2000, 1, 1)


def test_update_unknown_claim_is_noop(claims, make_claim):
    claims.add(make_claim())
    before = claims.store.path.read_text(encoding="utf-8")

    ghost = make_claim(claim_id="C2025-999", claim_number=999)

    assert claims.update(ghost) is False
    assert claims.store.path.read_text(encoding="utf-8") == before


def test_bulk_update_skips_unknown_ids(claims, make_claim):
    first = claims.add(make_claim())
    second = claims.add(make_claim())

    updated = []
    for claim in claims.load():
        claim.status = "Approved"
        updated.append(claim)
    updated.append(make_claim(claim_id="C2025-999"))

    assert claims.bulk_update(updated) == [first, second]
    assert {c.status for c in claims.load()} == {"Approved"}


@pytest.fixture
def failing_save(claims, monkeypatch):
    """Make the next claims save fail the way a full disk would."""
    def fail():
        def save(records):
            raise RecordStoreError.save_failed(
                "claims", str(claims.store.path), OSError("No space left on device")
            )
        monkeypatch.setattr(claims.store, "save", save)
    return fail


def test_failed_add_leaves_claim_unassigned(claims, make_claim, failing_save):
    failing_save()
    claim = make_claim()

    with pytest.raises(RecordStoreError):
        claims.add(claim)

    assert claim.claim_id == ""
    assert claim.claim_number == 0
    assert claim.last_updated is None


def test_failed_update_keeps_caller_timestamp(claims, make_claim, failing_save):
    claim_id = claims.add(make_claim())
    claim = claims.get(claim_id)
    claim.last_updated = datetime(2000, 1, 1)
    failing_save()

    with pytest.raises(RecordStoreError):
        claims.update(claim)

    assert claim.last_updated == datetime(2000, 1, 1)


def test_failed_bulk_update_keeps_caller_timestamps(claims, make_claim, failing_save):
    claims.add(make_claim())
    claims.add(make_claim())
    loaded = claims.load()
    for claim in loaded:
        claim.last_updated = datetime(2000, 1, 1)
    failing_save()

    with pytest.raises(RecordStoreError):
        claims.bulk_update(loaded)

    assert [c.last_updated for c in loaded] == [datetime(2000, 1, 1)] * 2


def test_update_sets_caller_timestamp_to_stored_value(claims, make_claim):
    claim_id = claims.add(make_claim())
    claim = claims.get(claim_id)

    claims.update(claim)

    assert claim.last_updated == claims.get(claim_id).last_updated


def test_delete_and_bulk_delete(claims, make_claim):
    ids = [claims.add(make_claim()) for _ in range(4)]

    assert claims.delete(ids[0]) is True
    assert claims.delete(ids[0]) is False
    assert claims.bulk_delete([ids[1], ids[3], "C2025-999"]) == [ids[1], ids[3]]
    assert [c.claim_id for c in claims.load()] == [ids[2]]
    assert [c.claim_id for c in claims.get_by_lecturer(LECTURER_EMAIL)] == [ids[2]]
    assert [c.claim_id for c in claims.get_by_manager(MANAGER_EMAIL)] == [ids[2]]


def test_get_by_lecturer_ignores_case(claims, make_claim):
    claims.add(make_claim(lecturer_email="Lecturer@Uni.ac.za"))
    claims.add(make_claim(lecturer_email="someone.else@uni.ac.za"))

    assert len(claims.get_by_lecturer(LECTURER_EMAIL)) == 1
    assert claims.get_by_lecturer("nobody@uni.ac.za") == []


def test_get_by_manager_skips_unassigned(claims, make_claim):
    claims.add(make_claim(assigned_manager_email=MANAGER_EMAIL.upper()))
    claims.add(make_claim(assigned_manager_email=None))

    assert len(claims.get_by_manager(MANAGER_EMAIL)) == 1


def _seed_manager_claims(claims, make_claim):
    """Write claims directly so statuses and last_updated stay as given."""
    seeded = [
        make_claim(claim_id="C2025-001", claim_number=1, status="Pending Review",
                   total_amount=Decimal("4500.00")),
        make_claim(claim_id="C2025-002", claim_number=2, status="Pending Manager Review",
                   total_amount=Decimal("1000.00")),
        make_claim(claim_id="C2025-003", claim_number=3, status="Approved",
                   total_amount=Decimal("4500.00"), last_updated=datetime(2025, 6, 2)),
        make_claim(claim_id="C2025-004", claim_number=4, status="Approved",
                   total_amount=Decimal("4500.00"), last_updated=datetime(2025, 5, 30)),
        make_claim(claim_id="C2025-005", claim_number=5, status="Rejected",
                   last_updated=datetime(2025, 6, 10)),
        make_claim(claim_id="C2025-006", claim_number=6, status="Draft",
                   total_amount=Decimal("900.00")),
        make_claim(claim_id="C2025-007", claim_number=7, status="Pending Review",
                   assigned_manager_email="other@uni.ac.za", total_amount=Decimal("700.00")),
    ]
    claims.save(seeded)


def test_manager_stats(claims, make_claim):
    _seed_manager_claims(claims, make_claim)

    stats = claims.get_manager_stats(MANAGER_EMAIL, as_of=datetime(2025, 6, 15))

    assert stats.pending_claims == 2
    assert stats.approved_this_month == 1
    assert stats.rejected_this_month == 1
    assert stats.total_pending_amount == Decimal("5500.00")


def test_manager_stats_for_unknown_manager_are_zero(claims, make_claim):
    _seed_manager_claims(claims, make_claim)

    stats = claims.get_manager_stats("nobody@uni.ac.za")

    assert stats.pending_claims == 0
    assert stats.total_pending_amount == Decimal("0")


def test_lecturer_stats(claims, make_claim):
    _seed_manager_claims(claims, make_claim)

    stats = claims.get_lecturer_stats(LECTURER_EMAIL.upper())

    assert stats.total_claims == 7
    # drafts count as pending for the lecturer
    assert stats.pending_claims == 4
    assert stats.approved_claims == 2
    assert stats.total_earnings == Decimal("9000.00")


def test_filter_by_status(make_claim):
    seeded = [
        make_claim(status="Draft"),
        make_claim(status="Pending Review"),
        make_claim(status="Pending Manager Review"),
        make_claim(status="Approved"),
        make_claim(status="Rejected"),
    ]

    assert len(filter_by_status(seeded, "All")) == 5
    assert len(filter_by_status(seeded, "pending")) == 3
    assert len(filter_by_status(seeded, "Pending", include_drafts=False)) == 2
    assert [c.status for c in filter_by_status(seeded, "Approved")] == ["Approved"]
    assert [c.status for c in filter_by_status(seeded, "Rejected")] == ["Rejected"]
    assert [c.status for c in filter_by_status(seeded, "Draft")] == ["Draft"]
    assert len(filter_by_status(seeded, "Something else")) == 5

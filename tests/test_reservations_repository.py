"""Unit tests for the PostgreSQL reservation and settings stores.

These tests mock the database cursor so they run without Postgres.
"""

from contextlib import contextmanager
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import psycopg2
import pytest
from psycopg2 import errors as pg_errors

from dormseat.domain.errors import StoreError
from dormseat.domain.models import Identity, NewReservation, Placement
from dormseat.domain.store import ConflictKind, UniqueConstraintViolation
from dormseat.infra.repositories.reservations_repository import (
    PostgresReservationStore,
    conflict_kind,
)
from dormseat.infra.repositories.settings_repository import PostgresSettingsStore

CREATED = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)
RID = "8c0f6a1e-0000-4000-8000-000000000001"
ROW = (RID, "101", "Kim", "D1", "2", 5, "$2b$04$hash", CREATED, None)


@pytest.fixture
def cur():
    """Mocked psycopg2 cursor."""
    return MagicMock()


def _patch_txn(module, cur):
    @contextmanager
    def fake_txn(conn=None, *, dsn=None):
        yield cur

    return patch(f"dormseat.infra.repositories.{module}.txn", fake_txn)


@pytest.fixture
def reservations(cur):
    with _patch_txn("reservations_repository", cur):
        yield PostgresReservationStore(dsn="postgres://test")


@pytest.fixture
def settings(cur):
    with _patch_txn("settings_repository", cur):
        yield PostgresSettingsStore(dsn="postgres://test")


# ── conflict_kind ──────────────────────────────────────────────────────


class TestConflictKind:
    def test_placement_constraint(self):
        exc = pg_errors.UniqueViolation(
            'duplicate key value violates unique constraint "uq_reservations_placement"'
        )
        assert conflict_kind(exc) is ConflictKind.PLACEMENT

    def test_identity_constraint(self):
        exc = pg_errors.UniqueViolation(
            'duplicate key value violates unique constraint "uq_reservations_identity"'
        )
        assert conflict_kind(exc) is ConflictKind.IDENTITY

    def test_unknown_constraint_is_store_error(self):
        exc = pg_errors.UniqueViolation('duplicate key value violates unique constraint "reservations_pkey"')
        with pytest.raises(StoreError):
            conflict_kind(exc)


# ── reads ──────────────────────────────────────────────────────────────


class TestReads:
    def test_find_by_placement_maps_row(self, reservations, cur):
        cur.fetchone.return_value = ROW

        found = reservations.find_by_placement(Placement("D1", "2", 5))

        assert found.identity == Identity("101", "Kim")
        assert found.placement == Placement("D1", "2", 5)
        assert found.created_at == CREATED
        params = cur.execute.call_args[0][1]
        assert params == ("D1", "2", 5)

    def test_find_by_identity_none(self, reservations, cur):
        cur.fetchone.return_value = None

        assert reservations.find_by_identity(Identity("101", "Kim")) is None
        assert cur.execute.call_args[0][1] == ("101", "Kim")

    def test_find_by_placement_excluding_passes_id(self, reservations, cur):
        cur.fetchone.return_value = None

        reservations.find_by_placement_excluding(Placement("D1", "2", 5), RID)

        sql, params = cur.execute.call_args[0]
        assert "id <> %s" in sql
        assert params[-1] == RID

    def test_list_all_ordered_by_created_at(self, reservations, cur):
        cur.fetchall.return_value = [ROW]

        rows = reservations.list_all()

        assert len(rows) == 1
        assert "ORDER BY created_at, id" in cur.execute.call_args[0][0]

    def test_find_by_id_compares_uuid_column(self, reservations, cur):
        cur.fetchone.return_value = ROW

        found = reservations.find_by_id(RID.upper())

        sql, params = cur.execute.call_args[0]
        assert "WHERE id = %s" in sql
        assert "::text" not in sql
        assert params == (RID,)
        assert found.id == RID

    @pytest.mark.parametrize("bad_id", ["abc", "", "8c0f6a1e-0000"])
    def test_malformed_id_never_queries(self, reservations, cur, bad_id):
        assert reservations.find_by_id(bad_id) is None
        assert reservations.update_placement(bad_id, Placement("D1", "2", 6)) is None
        assert (
            reservations.update(
                bad_id, identity=Identity("101", "Kim"), placement=Placement("D1", "2", 5)
            )
            is None
        )
        assert reservations.delete(bad_id, audit_as="owner") is None
        cur.execute.assert_not_called()

    def test_excluding_malformed_id_checks_whole_seat(self, reservations, cur):
        cur.fetchone.return_value = ROW

        found = reservations.find_by_placement_excluding(Placement("D1", "2", 5), "abc")

        sql, params = cur.execute.call_args[0]
        assert "id <>" not in sql
        assert params == ("D1", "2", 5)
        assert found.id == RID


# ── writes ─────────────────────────────────────────────────────────────


class TestWrites:
    def _new(self):
        return NewReservation(
            identity=Identity("101", "Kim"),
            placement=Placement("D1", "2", 5),
            password_hash="$2b$04$hash",
        )

    def test_insert_returns_row(self, reservations, cur):
        cur.fetchone.return_value = ROW

        created = reservations.insert(self._new())

        assert created.room_no == "101"
        sql = cur.execute.call_args[0][0]
        assert "RETURNING" in sql

    def test_placement_violation_translated(self, reservations, cur):
        cur.execute.side_effect = pg_errors.UniqueViolation(
            'duplicate key value violates unique constraint "uq_reservations_placement"'
        )

        with pytest.raises(UniqueConstraintViolation) as excinfo:
            reservations.insert(self._new())

        assert excinfo.value.kind is ConflictKind.PLACEMENT

    def test_identity_violation_on_update(self, reservations, cur):
        cur.execute.side_effect = pg_errors.UniqueViolation(
            'duplicate key value violates unique constraint "uq_reservations_identity"'
        )

        with pytest.raises(UniqueConstraintViolation) as excinfo:
            reservations.update(
                RID, identity=Identity("101", "Kim"), placement=Placement("D1", "2", 5)
            )

        assert excinfo.value.kind is ConflictKind.IDENTITY

    def test_other_database_error_is_store_error(self, reservations, cur):
        cur.execute.side_effect = psycopg2.OperationalError("connection lost")

        with pytest.raises(StoreError):
            reservations.list_all()

    def test_update_placement_missing_row(self, reservations, cur):
        cur.fetchone.return_value = None

        assert reservations.update_placement(RID, Placement("D1", "2", 6)) is None

    def test_update_placement_keeps_device_when_none(self, reservations, cur):
        cur.fetchone.return_value = ROW

        reservations.update_placement(RID, Placement("D1", "2", 6))

        sql, params = cur.execute.call_args[0]
        assert "COALESCE(%s, device_id)" in sql
        assert params == ("D1", "2", 6, None, RID)

    def test_delete_with_audit(self, reservations, cur):
        cur.fetchone.return_value = ROW

        deleted = reservations.delete(RID, audit_as="owner")

        assert deleted.room_no == "101"
        sql, params = cur.execute.call_args[0]
        assert "INSERT INTO cancelled_reservations" in sql
        assert params == (RID, "owner", True)

    def test_delete_without_audit(self, reservations, cur):
        cur.fetchone.return_value = None

        assert reservations.delete(RID) is None
        assert cur.execute.call_args[0][1] == (RID, None, False)

    def test_delete_all_returns_count(self, reservations, cur):
        cur.fetchone.return_value = (3,)

        assert reservations.delete_all(audit_as="admin") == 3
        assert cur.execute.call_args[0][1] == ("admin", True)


# ── settings ───────────────────────────────────────────────────────────


class TestSettingsStore:
    def test_missing_window(self, settings, cur):
        cur.fetchone.return_value = None

        assert settings.get_window() is None

    def test_put_window_upserts(self, settings, cur):
        start = datetime(2026, 3, 1, tzinfo=timezone.utc)
        end = datetime(2026, 3, 5, tzinfo=timezone.utc)
        cur.fetchone.return_value = (start, end)

        window = settings.put_window(start, end)

        assert (window.start, window.end) == (start, end)
        sql, params = cur.execute.call_args[0]
        assert "ON CONFLICT (key) DO UPDATE" in sql
        assert params == ("reservationTimes", start, end)

    def test_announcement_roundtrip_row(self, settings, cur):
        cur.fetchone.return_value = ("currentAnnouncement", "hi", True, CREATED)

        announcement = settings.put_announcement("currentAnnouncement", "hi", True)

        assert announcement.message == "hi"
        assert announcement.active is True

    def test_database_error_is_store_error(self, settings, cur):
        cur.execute.side_effect = psycopg2.OperationalError("connection lost")

        with pytest.raises(StoreError):
            settings.get_announcement("currentAnnouncement")

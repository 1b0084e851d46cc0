"""Tests for legacy role migration and role-set editing."""

from __future__ import annotations

import logging

import pytest

from agriaccess.exceptions import GenderRestrictionError, RoleAssignmentError, UnknownRoleError
from agriaccess.migration import (
    MigrationReport,
    add_role,
    check_assignment,
    migrate_user_record,
    migrate_users,
    needs_migration,
    remove_role,
    set_roles,
)
from agriaccess.rbac import Role


# ---------------------------------------------------------------------------
# Single record
# ---------------------------------------------------------------------------


class TestMigrateUserRecord:
    def test_vendor_becomes_seller(self):
        record = {"id": "u1", "role": "vendor", "email": "a@example.com"}
        migrated = migrate_user_record(record)
        assert migrated["roles"] == ["seller"]
        assert migrated["legacy_role"] == "vendor"
        assert migrated["email"] == "a@example.com"
        assert "updated_at" in migrated

    def test_input_not_mutated(self):
        record = {"id": "u1", "role": "member"}
        migrate_user_record(record)
        assert record == {"id": "u1", "role": "member"}

    def test_member_becomes_general_user(self):
        assert migrate_user_record({"id": "u2", "role": "member"})["roles"] == ["general_user"]

    def test_unknown_legacy_role(self):
        with pytest.raises(UnknownRoleError):
            migrate_user_record({"id": "u3", "role": "moderator"})

    def test_missing_legacy_role(self):
        with pytest.raises(UnknownRoleError, match="no legacy role"):
            migrate_user_record({"id": "u4"})


# ---------------------------------------------------------------------------
# Batches
# ---------------------------------------------------------------------------


class TestMigrateUsers:
    def test_counts(self):
        records = [
            {"id": "a", "role": "exporter"},
            {"id": "b", "roles": ["buyer"]},
            {"id": "c", "role": "wizard"},
            {"id": "d"},
            {"id": "e", "role": "super_admin"},
        ]
        report = migrate_users(records)
        assert isinstance(report, MigrationReport)
        assert (report.success, report.failed, report.skipped) == (2, 2, 1)
        assert report.total == 5
        assert [u["id"] for u in report.migrated] == ["a", "e"]
        assert report.migrated[0]["roles"] == ["export_participant"]
        assert [(f.index, f.user_id) for f in report.errors] == [(2, "c"), (3, "d")]

    def test_failures_kept_without_or_with_repeated_ids(self):
        records = [
            {"role": "bogus"},
            {"role": "nope"},
            {"id": "u1", "role": "x"},
            {"id": "u1", "role": "y"},
        ]
        report = migrate_users(records)
        assert report.failed == 4
        assert len(report.errors) == report.failed
        assert [f.index for f in report.errors] == [0, 1, 2, 3]
        assert [f.user_id for f in report.errors] == [None, None, "u1", "u1"]
        assert "'nope'" in report.errors[1].error
        assert "'y'" in report.errors[3].error

    def test_empty_batch(self):
        report = migrate_users([])
        assert report.total == 0
        assert report.migrated == []

    def test_invalid_roles_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="agriaccess.migration"):
            migrate_users([{"id": "bad", "role": "wizard"}])
        assert "bad" in caplog.text
        assert "invalid role" in caplog.text


class TestNeedsMigration:
    def test_all_migrated(self):
        assert needs_migration([{"id": "a", "roles": []}, {"id": "b", "roles": ["buyer"]}]) is False

    def test_one_legacy_record(self):
        assert needs_migration([{"id": "a", "roles": ["buyer"]}, {"id": "b", "role": "member"}])

    def test_roles_must_be_a_list(self):
        assert needs_migration([{"id": "a", "roles": "buyer"}]) is True

    def test_empty(self):
        assert needs_migration([]) is False


# ---------------------------------------------------------------------------
# Role-set editing
# ---------------------------------------------------------------------------


class TestRoleEditing:
    def test_set_roles_dedupes_in_order(self):
        assert set_roles(["seller", "buyer", "seller"]) == [Role.SELLER, Role.BUYER]

    def test_set_roles_rejects_unknown(self):
        with pytest.raises(UnknownRoleError):
            set_roles(["buyer", "vendor"])

    def test_set_roles_rejects_bare_string(self):
        with pytest.raises(TypeError):
            set_roles("buyer")

    def test_add_role(self):
        assert add_role(["buyer"], "cooperative_member") == [Role.BUYER, Role.COOPERATIVE_MEMBER]

    def test_add_existing_role_is_noop(self):
        assert add_role(["buyer"], "buyer") == [Role.BUYER]

    def test_add_wave_requires_female(self):
        assert add_role([], "wave_participant", gender="female") == [Role.WAVE_PARTICIPANT]
        with pytest.raises(GenderRestrictionError):
            add_role([], "wave_participant", gender="male")
        with pytest.raises(GenderRestrictionError):
            add_role(["general_user"], "wave_participant")

    def test_remove_role(self):
        assert remove_role(["buyer", "seller"], "buyer") == [Role.SELLER]

    def test_remove_missing_role(self):
        assert remove_role(["buyer"], "seller") == [Role.BUYER]

    def test_remove_unknown_role(self):
        with pytest.raises(UnknownRoleError):
            remove_role(["buyer"], "vendor")


# ---------------------------------------------------------------------------
# Assignment gate
# ---------------------------------------------------------------------------


class TestCheckAssignment:
    def test_super_admin_assigns_anything(self):
        check_assignment(["super_admin"], ["admin", "super_admin"], ["admin"])

    def test_admin_assigns_below_own_level(self):
        check_assignment(["admin"], ["field_officer", "buyer"], ["buyer"])

    def test_non_admin_rejected_even_within_level(self):
        with pytest.raises(RoleAssignmentError, match="administrators"):
            check_assignment(["field_officer"], ["buyer"], ["general_user"])

    def test_admin_cannot_grant_super_admin(self):
        with pytest.raises(RoleAssignmentError, match="super_admin"):
            check_assignment(["admin"], ["super_admin"], [])

    def test_admin_cannot_edit_peer(self):
        with pytest.raises(RoleAssignmentError, match="at or above"):
            check_assignment(["admin"], ["buyer"], ["admin"])

    def test_unknown_requested_role(self):
        with pytest.raises(UnknownRoleError):
            check_assignment(["super_admin"], ["owner"])

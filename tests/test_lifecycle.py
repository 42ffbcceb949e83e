from datetime import date
from unittest.mock import patch

import pytest
from django.db import DatabaseError

from accounts import directory, lifecycle
from accounts.models import ApprovalStatus, Role, User
from accounts.principal import Principal
from accounts.results import UNEXPECTED_ERROR
from students.models import Assignment, ParentStudentLink, Student
from tests.conftest import principal_for

pytestmark = pytest.mark.django_db


class TestSelfService:
    def test_deactivate_keeps_data(self, make_student):
        student = make_student()
        Assignment.objects.create(student=student, title="Ch.1", due_date=date(2026, 1, 10))

        assert lifecycle.deactivate_self(principal_for(student), student.uid).success
        student.refresh_from_db()
        assert student.account_status == Student.AccountStatus.INACTIVE
        assert student.assignments.count() == 1

    def test_only_an_admin_can_reactivate(self, make_admin, make_student):
        student = make_student(account=Student.AccountStatus.INACTIVE)
        assert not lifecycle.set_account_status(
            principal_for(student), str(student.pk), Student.AccountStatus.ACTIVE
        ).success
        student.refresh_from_db()
        assert student.is_inactive

        assert lifecycle.set_account_status(
            principal_for(make_admin()), str(student.pk), Student.AccountStatus.ACTIVE
        ).success
        student.refresh_from_db()
        assert not student.is_inactive

    def test_caller_must_be_target(self, make_student):
        me, other = make_student(), make_student()
        result = lifecycle.deactivate_self(principal_for(me), other.uid)
        assert not result.success
        other.refresh_from_db()
        assert other.account_status == Student.AccountStatus.ACTIVE

    def test_no_principal(self, make_student):
        student = make_student()
        assert not lifecycle.deactivate_self(None, student.uid).success
        assert not lifecycle.withdraw_self(None, student.uid).success

    def test_reapplying_same_status_skips_the_write(self, make_student):
        student = make_student(account=Student.AccountStatus.INACTIVE)
        with patch.object(Student, "save") as save:
            result = lifecycle.deactivate_self(principal_for(student), student.uid)
        assert result.success
        save.assert_not_called()

    def test_withdraw_cascades(self, make_student, make_parent, link):
        student, parent = make_student(), make_parent()
        link(parent, student)
        Assignment.objects.create(student=student, title="Ch.1", due_date=date(2026, 1, 10))

        assert lifecycle.withdraw_self(principal_for(student), student.uid).success
        assert not Student.objects.filter(pk=student.pk).exists()
        assert not User.objects.filter(uid=student.uid).exists()
        assert not Assignment.objects.exists()
        assert not ParentStudentLink.objects.exists()
        assert User.objects.filter(pk=parent.pk).exists()

    def test_database_failure_is_reported_not_raised(self, make_student):
        student = make_student()
        with patch("accounts.directory.get_student", side_effect=DatabaseError("down")):
            result = lifecycle.deactivate_self(principal_for(student), student.uid)
        assert result.as_dict() == {"success": False, "message": UNEXPECTED_ERROR}


class TestAdminActions:
    def test_approved_admin_changes_student_status(self, make_admin, make_student):
        admin, student = make_admin(), make_student()
        result = lifecycle.set_account_status(
            principal_for(admin), str(student.pk), Student.AccountStatus.INACTIVE
        )
        assert result.success
        student.refresh_from_db()
        assert student.is_inactive

    def test_role_claim_in_token_is_not_trusted(self, make_admin, make_student):
        pending = make_admin(status=ApprovalStatus.PENDING)
        student = make_student()
        forged = Principal(pending.uid, Role.ADMIN, ApprovalStatus.APPROVED)
        assert not lifecycle.set_account_status(forged, str(student.pk), "INACTIVE").success
        ghost = Principal("admin_ghost", Role.SUPER_ADMIN, ApprovalStatus.APPROVED)
        assert not lifecycle.set_account_status(ghost, str(student.pk), "INACTIVE").success

    def test_unknown_status_is_refused(self, make_admin, make_student):
        admin, student = make_admin(), make_student()
        assert not lifecycle.set_account_status(principal_for(admin), str(student.pk), "DELETED").success

    def test_students_are_targeted_by_internal_id_only(self, make_admin, make_student):
        admin = make_admin()
        first = make_student()
        # a numeric provider subject that happens to equal another student's id
        second = make_student(uid=str(first.pk))
        assert not lifecycle.set_account_status(principal_for(admin), first.uid, "INACTIVE").success

        assert lifecycle.set_account_status(principal_for(admin), second.uid, "INACTIVE").success
        first.refresh_from_db()
        second.refresh_from_db()
        assert first.is_inactive
        assert not second.is_inactive

        assert directory.get_student_by_id(str(second.pk)) == second
        assert directory.get_student_by_id("kakao_1") is None

    def test_approve_student(self, make_admin, make_student):
        admin = make_admin()
        student = make_student(approval=Student.ApprovalStatus.PENDING)
        assert lifecycle.approve_student(principal_for(admin), student.pk).success
        student.refresh_from_db()
        assert student.approval_status == Student.ApprovalStatus.APPROVED

    def test_student_cannot_approve(self, make_student):
        me = make_student()
        other = make_student(approval=Student.ApprovalStatus.PENDING)
        assert not lifecycle.approve_student(principal_for(me), other.pk).success


class TestAdminFloor:
    def test_last_approved_admin_cannot_withdraw(self, make_admin):
        admin = make_admin()
        make_admin(status=ApprovalStatus.PENDING)
        result = lifecycle.withdraw_admin(principal_for(admin), admin.uid)
        assert not result.success
        assert result.message == lifecycle.ADMIN_FLOOR_MESSAGE
        assert User.objects.filter(pk=admin.pk).exists()

    def test_withdraw_with_two_approved_decrements_by_one(self, make_admin):
        admin = make_admin()
        make_admin()
        before = directory.count_approved_admins()
        assert lifecycle.withdraw_admin(principal_for(admin), admin.uid).success
        assert directory.count_approved_admins() == before - 1

    def test_super_admin_counts_toward_floor(self, make_admin):
        make_admin(role=Role.SUPER_ADMIN)
        admin = make_admin()
        assert directory.count_approved_admins() == 2
        assert lifecycle.withdraw_admin(principal_for(admin), admin.uid).success

    def test_super_admin_cannot_withdraw(self, make_admin):
        boss = make_admin(role=Role.SUPER_ADMIN)
        make_admin()
        assert not lifecycle.withdraw_admin(principal_for(boss), boss.uid).success

    def test_only_self(self, make_admin):
        me, other = make_admin(), make_admin()
        assert not lifecycle.withdraw_admin(principal_for(me), other.uid).success
        assert User.objects.filter(pk=other.pk).exists()


class TestSuperAdminManagement:
    def test_approve_pending_admin(self, make_admin):
        boss = make_admin(role=Role.SUPER_ADMIN)
        newcomer = make_admin(status=ApprovalStatus.PENDING)
        assert lifecycle.update_admin_approval(
            principal_for(boss), newcomer.uid, ApprovalStatus.APPROVED
        ).success
        newcomer.refresh_from_db()
        assert newcomer.status == ApprovalStatus.APPROVED

    def test_plain_admin_cannot_approve(self, make_admin):
        admin = make_admin()
        newcomer = make_admin(status=ApprovalStatus.PENDING)
        assert not lifecycle.update_admin_approval(
            principal_for(admin), newcomer.uid, ApprovalStatus.APPROVED
        ).success

    def test_super_admin_target_is_refused(self, make_admin):
        boss = make_admin(role=Role.SUPER_ADMIN)
        other_boss = make_admin(role=Role.SUPER_ADMIN)
        assert not lifecycle.update_admin_approval(
            principal_for(boss), other_boss.uid, ApprovalStatus.PENDING
        ).success
        assert not lifecycle.delete_admin(principal_for(boss), other_boss.uid).success

    def test_delete_and_list(self, make_admin):
        boss = make_admin(role=Role.SUPER_ADMIN)
        admin = make_admin()
        result, admins = lifecycle.list_admins(principal_for(boss))
        assert result.success
        assert {a.uid for a in admins} == {boss.uid, admin.uid}

        assert lifecycle.delete_admin(principal_for(boss), admin.uid).success
        assert directory.get_admin(admin.uid) is None

    def test_list_refused_for_plain_admin(self, make_admin):
        admin = make_admin()
        result, admins = lifecycle.list_admins(principal_for(admin))
        assert not result.success
        assert admins == []

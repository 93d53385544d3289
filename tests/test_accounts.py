"""
Tests for registration, login checks and admin seeding
"""
import pytest

from teachclone.models.database_models import ApprovalStatus, UserRole
from teachclone.services.accounts import authenticate, ensure_admin, register_user
from teachclone.utils.config_loader import get_settings


class TestRegistration:

    def test_student_is_approved_immediately(self, db):
        result = register_user(db, "Ali Student", "ali@example.com", "secret123", UserRole.STUDENT)
        assert result.success
        assert result.user.status == ApprovalStatus.APPROVED
        assert result.message == "Registration successful! You may now login."

    def test_teacher_waits_for_approval(self, db):
        result = register_user(db, "Sarah Khan", "sarah@example.com", "secret123", UserRole.TEACHER)
        assert result.user.status == ApprovalStatus.PENDING
        assert "pending admin approval" in result.message

    def test_duplicate_email_case_insensitive(self, db):
        register_user(db, "Ali", "ali@example.com", "secret123", UserRole.STUDENT)
        result = register_user(db, "Ali Again", "ALI@Example.com", "secret123", UserRole.STUDENT)
        assert not result.success
        assert result.message == "Email already registered."

    def test_admin_cannot_self_register(self, db):
        result = register_user(db, "Mallory", "mallory@example.com", "secret123", UserRole.ADMIN)
        assert not result.success

    def test_failed_write_is_reported(self, db, failing_commit):
        failing_commit()
        result = register_user(db, "Ali Student", "ali@example.com", "secret123", UserRole.STUDENT)
        assert not result.success
        assert result.error_code == "storage_failure"


class TestAuthenticate:

    def test_login_success(self, db, student):
        result = authenticate(db, student.email, "secret123", UserRole.STUDENT)
        assert result.success
        assert result.user.id == student.id

    def test_wrong_password(self, db, student):
        assert authenticate(db, student.email, "wrong").message == "Invalid credentials."

    def test_role_mismatch(self, db, student):
        assert authenticate(db, student.email, "secret123", UserRole.TEACHER).message == \
            "Account not found for this role."

    @pytest.mark.parametrize("status,message", [
        (ApprovalStatus.PENDING, "Account is pending approval. Please wait for an administrator."),
        (ApprovalStatus.REJECTED, "Account has been rejected."),
    ])
    def test_unapproved_teacher_blocked(self, db, make_user, status, message):
        teacher = make_user(UserRole.TEACHER, "Blocked Teacher", status)
        result = authenticate(db, teacher.email, "secret123")
        assert not result.success
        assert result.message == message

    def test_admin_bypasses_status(self, db, make_user):
        admin = make_user(UserRole.ADMIN, "Admin", ApprovalStatus.PENDING)
        assert authenticate(db, admin.email, "secret123", UserRole.ADMIN).success


class TestEnsureAdmin:

    def test_seeds_once(self, db):
        first = ensure_admin(db)
        second = ensure_admin(db)
        assert first.id == second.id
        assert first.role == UserRole.ADMIN
        assert authenticate(db, get_settings().admin_email, get_settings().admin_password).success

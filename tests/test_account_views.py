import pytest
from django.conf import settings

from accounts import gate, lifecycle, registration
from accounts.models import ApprovalStatus, Role, User
from accounts.principal import read_token
from students.models import Student
from tests.conftest import principal_for

pytestmark = pytest.mark.django_db

MODEL_BACKEND = "django.contrib.auth.backends.ModelBackend"


def cookie_principal(response):
    return read_token(response.cookies[settings.PRINCIPAL_COOKIE_NAME].value)


class TestCredentialAdminLogin:
    def test_approved_admin_gets_principal_cookie(self, client, make_admin):
        admin = make_admin(password="s3cure-pass-42")
        response = client.post("/admin-login/", {"username": admin.username, "password": "s3cure-pass-42"})
        assert response.status_code == 302
        assert response["Location"] == gate.ADMIN_HOME_URL
        principal = cookie_principal(response)
        assert (principal.uid, principal.role, principal.status) == (
            admin.uid,
            Role.ADMIN,
            ApprovalStatus.APPROVED,
        )

    def test_pending_admin_lands_on_pending_page(self, client, make_admin):
        admin = make_admin(status=ApprovalStatus.PENDING, password="s3cure-pass-42")
        response = client.post("/admin-login/", {"username": admin.username, "password": "s3cure-pass-42"})
        assert response["Location"] == gate.ADMIN_PENDING_URL

    def test_wrong_password(self, client, make_admin):
        admin = make_admin(password="s3cure-pass-42")
        response = client.post("/admin-login/", {"username": admin.username, "password": "nope"})
        assert response.status_code == 200
        assert settings.PRINCIPAL_COOKIE_NAME not in response.cookies

    def test_credential_signup_form(self, client):
        response = client.post(
            "/admin-login/register/",
            {
                "username": "teacher9",
                "password": "s3cure-pass-42",
                "password_confirm": "s3cure-pass-42",
                "name": "Teacher Nine",
            },
        )
        assert response.status_code == 302
        assert response["Location"] == gate.ADMIN_PENDING_URL
        assert User.objects.get(username="teacher9").status == ApprovalStatus.PENDING


class TestProviderSuccessHook:
    def test_student_gets_cookie_and_dashboard(self, client, make_student):
        student = make_student()
        client.force_login(student.user, backend=MODEL_BACKEND)
        response = client.get("/auth/success/")
        assert response["Location"] == f"/student/{student.pk}/"
        assert cookie_principal(response).uid == student.uid

    def test_inactive_student_is_turned_away(self, client, make_student):
        student = make_student(account=Student.AccountStatus.INACTIVE)
        client.force_login(student.user, backend=MODEL_BACKEND)
        response = client.get("/auth/success/")
        assert response["Location"] == gate.ACCOUNT_INACTIVE_URL

    def test_admin_must_use_admin_flow(self, client, make_admin):
        admin = make_admin()
        client.force_login(admin, backend=MODEL_BACKEND)
        response = client.get("/auth/success/")
        assert response["Location"] == registration.ADMIN_LOGIN_REQUIRED_URL

    def test_admin_flow_flag_is_honoured(self, client, make_admin):
        admin = make_admin()
        client.force_login(admin, backend=MODEL_BACKEND)
        start = client.get("/admin-login/provider/")
        assert start["Location"] == f"/accounts/{settings.ADMIN_OAUTH_PROVIDER}/login/"
        response = client.get("/auth/success/")
        assert response["Location"] == gate.ADMIN_HOME_URL
        assert cookie_principal(response).role == Role.ADMIN

    def test_parent_signup_completion(self, client):
        user = User.objects.create(username="kakao_55", uid="kakao_55")
        client.force_login(user, backend=MODEL_BACKEND)
        assert client.get("/auth/success/")["Location"] == registration.SIGNUP_URL
        response = client.post("/signup/complete-parent/", {"name": "Parent Park"})
        assert response["Location"] == "/parent/kakao_55/dashboard/"
        assert cookie_principal(response).role == Role.PARENT


class TestAccountActions:
    def test_deactivate_clears_session(self, make_student, login_as):
        student = make_student()
        response = login_as(student).post("/account/deactivate/")
        assert response.json() == {"success": True}
        assert response.cookies[settings.PRINCIPAL_COOKIE_NAME]["max-age"] == 0
        student.refresh_from_db()
        assert student.is_inactive

    def test_deactivated_student_cannot_reactivate_with_old_cookie(self, make_admin, make_student, login_as):
        student = make_student()
        client = login_as(student)
        lifecycle.set_account_status(
            principal_for(make_admin()), str(student.pk), Student.AccountStatus.INACTIVE
        )
        response = client.post("/account/reactivate/")
        assert response.status_code == 404
        student.refresh_from_db()
        assert student.is_inactive
        assert client.get(f"/student/{student.pk}/")["Location"] == gate.ACCOUNT_INACTIVE_URL

    def test_withdraw_requires_session(self, client):
        response = client.post("/account/withdraw/")
        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_withdraw_removes_student(self, make_student, login_as):
        student = make_student()
        response = login_as(student).post("/account/withdraw/")
        assert response.json() == {"success": True}
        assert not Student.objects.filter(pk=student.pk).exists()

    def test_admin_withdraw_floor_message(self, make_admin, login_as):
        admin = make_admin()
        response = login_as(admin).post("/admin/account/withdraw/")
        assert response.status_code == 400
        assert "administrator" in response.json()["message"]

    def test_logout_clears_cookie(self, make_parent, login_as):
        response = login_as(make_parent()).get("/logout/")
        assert response["Location"] == gate.LOGIN_URL
        assert response.cookies[settings.PRINCIPAL_COOKIE_NAME]["max-age"] == 0


class TestAdminManagementViews:
    def test_super_admin_lists_and_approves(self, make_admin, login_as):
        boss = make_admin(role=Role.SUPER_ADMIN)
        newcomer = make_admin(status=ApprovalStatus.PENDING)
        client = login_as(boss)
        listing = client.get("/admin/admins/").json()
        assert {a["uid"] for a in listing["admins"]} == {boss.uid, newcomer.uid}

        response = client.post(f"/admin/admins/{newcomer.uid}/status/", {"status": "APPROVED"})
        assert response.json() == {"success": True}
        newcomer.refresh_from_db()
        assert newcomer.status == ApprovalStatus.APPROVED

    def test_plain_admin_is_redirected_to_default_area(self, make_admin, login_as):
        response = login_as(make_admin()).get("/admin/admins/")
        assert response.status_code == 302
        assert response["Location"] == gate.ADMIN_HOME_URL

    def test_login_page_renders(self, client):
        response = client.get("/login/?error=account_inactive")
        assert response.status_code == 200
        assert b"deactivated" in response.content

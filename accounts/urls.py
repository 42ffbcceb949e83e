from django.urls import path
from . import views

app_name = "accounts"

urlpatterns = [
    path("login/", views.login_page, name="login"),
    path("logout/", views.logout, name="logout"),
    path("admin-login/", views.admin_login, name="admin_login"),
    path("admin-login/provider/", views.admin_provider_login, name="admin_provider_login"),
    path("admin-login/register/", views.admin_signup, name="admin_signup"),
    path("admin-login/signup/", views.admin_provider_signup, name="admin_provider_signup"),
    path("auth/success/", views.auth_success, name="auth_success"),
    path("auth/admin-login-required/", views.admin_login_required, name="admin_login_required"),
    path("signup/", views.signup, name="signup"),
    path("signup/complete-student/", views.signup_student, name="signup_student"),
    path("signup/complete-parent/", views.signup_parent, name="signup_parent"),
    path("pending-approval/", views.pending_approval, name="pending_approval"),
    path("admin-pending/", views.admin_pending, name="admin_pending"),
    path("account/deactivate/", views.deactivate_account, name="deactivate"),
    path("account/withdraw/", views.withdraw_account, name="withdraw"),
    path("admin/account/withdraw/", views.withdraw_admin, name="admin_withdraw"),
    path("admin/admins/", views.admins, name="admins"),
    path("admin/admins/<str:uid>/status/", views.admin_status, name="admin_status"),
    path("admin/admins/<str:uid>/delete/", views.admin_delete, name="admin_delete"),
]

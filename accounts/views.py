import logging

from django.conf import settings
from django.contrib.auth import logout as django_logout
from django.contrib.auth.decorators import login_required
from django.db import DatabaseError
from django.http import JsonResponse
from django.shortcuts import redirect, render
from django.views.decorators.http import require_POST

from . import directory, lifecycle, registration
from .forms import (
    AdminLoginForm,
    AdminProviderSignupForm,
    AdminSignupForm,
    ParentSignupForm,
    StudentSignupForm,
)
from .gate import ACCOUNT_INACTIVE_URL, LOGIN_URL, home_path
from .models import ApprovalStatus, Role
from .principal import Principal, attach_principal, clear_principal

logger = logging.getLogger(__name__)

ADMIN_FLOW_KEY = "admin_login_flow"
ADMIN_SIGNUP_INTENT_KEY = "admin_signup_intent"

ERROR_MESSAGES = {
    "account_inactive": "This account is deactivated. Contact the academy to restore it.",
    "admin_required": "Please sign in with an administrator account.",
    "admin_not_found": "No administrator account is registered for this sign-in.",
    "invalid_credentials": "Invalid username or password.",
}


def action_response(result):
    return JsonResponse(result.as_dict(), status=200 if result.success else 400)


def _principal_home(principal):
    return home_path(principal.role, principal.status, principal.uid)


def _sign_in(principal, location):
    return attach_principal(redirect(location), principal)


def login_page(request):
    principal = request.principal
    if principal is not None:
        return redirect(_principal_home(principal))
    error = request.GET.get("error", "")
    return render(
        request,
        "accounts/login.html",
        {
            "error": ERROR_MESSAGES.get(error, ""),
            "callback_url": request.GET.get("callbackUrl", ""),
            "providers": list(settings.SOCIALACCOUNT_PROVIDERS),
        },
    )


def admin_login(request):
    form = AdminLoginForm(request.POST or None)
    error = ERROR_MESSAGES.get(request.GET.get("error", ""), "")
    if request.method == "POST" and form.is_valid():
        principal = registration.authenticate_admin(
            request, form.cleaned_data["username"], form.cleaned_data["password"]
        )
        if principal is not None:
            logger.info("Admin %s signed in with credentials", principal.uid)
            return _sign_in(principal, _principal_home(principal))
        error = ERROR_MESSAGES["invalid_credentials"]
    return render(
        request,
        "accounts/admin_login.html",
        {"form": form, "error": error, "provider": settings.ADMIN_OAUTH_PROVIDER},
    )


def admin_provider_login(request):
    """Start the provider round-trip with the privileged flow flag set."""
    request.session[ADMIN_FLOW_KEY] = True
    request.session[ADMIN_SIGNUP_INTENT_KEY] = request.GET.get("signup") == "1"
    return redirect(f"/accounts/{settings.ADMIN_OAUTH_PROVIDER}/login/")


def admin_signup(request):
    form = AdminSignupForm(request.POST or None)
    error = ""
    if request.method == "POST" and form.is_valid():
        result = registration.create_admin(
            form.cleaned_data["username"],
            form.cleaned_data["password"],
            form.cleaned_data["name"],
            form.cleaned_data.get("phone_number", ""),
        )
        if result.success:
            return redirect(result.redirect)
        error = result.message
    return render(request, "accounts/signup.html", {"form": form, "error": error, "kind": "admin"})


@login_required
def admin_provider_signup(request):
    form = AdminProviderSignupForm(request.POST or None, initial={"name": request.user.name})
    error = ""
    if request.method == "POST" and form.is_valid():
        result = registration.create_admin_with_provider(
            request.user, form.cleaned_data["name"], form.cleaned_data.get("phone_number", "")
        )
        if result.success:
            principal = Principal(request.user.uid, Role.ADMIN, ApprovalStatus.PENDING)
            return _sign_in(principal, result.redirect)
        error = result.message
    return render(request, "accounts/signup.html", {"form": form, "error": error, "kind": "admin"})


@login_required
def auth_success(request):
    """Landing hook after a provider login; issues the principal cookie."""
    admin_flow = bool(request.session.pop(ADMIN_FLOW_KEY, False))
    signup_intent = bool(request.session.pop(ADMIN_SIGNUP_INTENT_KEY, False))
    try:
        principal, location = registration.resolve_sign_in(request.user, admin_flow, signup_intent)
    except DatabaseError:
        logger.exception("Sign-in resolution failed for user %s", request.user.pk)
        return redirect(LOGIN_URL)
    if principal is None:
        if location == ACCOUNT_INACTIVE_URL:
            django_logout(request)
        return clear_principal(redirect(location))
    return _sign_in(principal, location)


def admin_login_required(request):
    return render(request, "accounts/admin_login_required.html")


@login_required
def signup(request):
    return render(request, "accounts/signup.html", {"kind": None})


@login_required
def signup_student(request):
    form = StudentSignupForm(request.POST or None, initial={"name": request.user.name})
    error = ""
    if request.method == "POST" and form.is_valid():
        result = registration.register_student(request.user, **form.cleaned_data)
        if result.success:
            student = directory.get_student(request.user.uid)
            return _sign_in(registration.student_principal(student), result.redirect)
        error = result.message
    return render(request, "accounts/signup.html", {"form": form, "error": error, "kind": "student"})


@login_required
def signup_parent(request):
    form = ParentSignupForm(request.POST or None, initial={"name": request.user.name})
    error = ""
    if request.method == "POST" and form.is_valid():
        result = registration.register_parent(request.user, form.cleaned_data.get("name", ""))
        if result.success:
            return _sign_in(Principal(request.user.uid, Role.PARENT), result.redirect)
        error = result.message
    return render(request, "accounts/signup.html", {"form": form, "error": error, "kind": "parent"})


def pending_approval(request):
    return render(request, "accounts/pending_approval.html")


def admin_pending(request):
    return render(request, "accounts/admin_pending.html")


def logout(request):
    django_logout(request)
    return clear_principal(redirect(LOGIN_URL))


@require_POST
def deactivate_account(request):
    principal = request.principal
    result = lifecycle.deactivate_self(principal, principal.uid if principal else None)
    response = action_response(result)
    if result.success:
        clear_principal(response)
    return response


@require_POST
def withdraw_account(request):
    principal = request.principal
    result = lifecycle.withdraw_self(principal, principal.uid if principal else None)
    response = action_response(result)
    if result.success:
        django_logout(request)
        clear_principal(response)
    return response


@require_POST
def withdraw_admin(request):
    principal = request.principal
    result = lifecycle.withdraw_admin(principal, principal.uid if principal else None)
    response = action_response(result)
    if result.success:
        django_logout(request)
        clear_principal(response)
    return response


def admins(request):
    result, rows = lifecycle.list_admins(request.principal)
    if not result.success:
        return action_response(result)
    return JsonResponse(
        {
            "admins": [
                {
                    "uid": a.uid,
                    "username": a.username,
                    "name": a.name,
                    "phone_number": a.phone_number,
                    "role": a.role,
                    "status": a.status,
                    "date_joined": a.date_joined.isoformat(),
                }
                for a in rows
            ]
        }
    )


@require_POST
def admin_status(request, uid):
    return action_response(
        lifecycle.update_admin_approval(request.principal, uid, request.POST.get("status", ""))
    )


@require_POST
def admin_delete(request, uid):
    return action_response(lifecycle.delete_admin(request.principal, uid))


def not_found(request, exception=None):
    return render(request, "404.html", status=404)


def server_error(request):
    return render(request, "500.html", {"login_url": LOGIN_URL}, status=500)

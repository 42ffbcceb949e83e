from django.conf import settings
from django.core import signing
from django.http import HttpResponse
from django.test import RequestFactory

from accounts.middleware import PrincipalMiddleware
from accounts.models import Role
from accounts.principal import (
    TOKEN_SALT,
    Principal,
    attach_principal,
    clear_principal,
    issue_token,
    read_token,
)


def test_token_round_trip():
    principal = Principal("kakao-1", Role.STUDENT, "APPROVED")
    assert read_token(issue_token(principal)) == principal


def test_parent_principal_has_no_status():
    principal = Principal("kakao-2", Role.PARENT)
    restored = read_token(issue_token(principal))
    assert restored.status is None
    assert not restored.is_admin


def test_missing_token_is_no_session():
    assert read_token(None) is None
    assert read_token("") is None


def test_tampered_token_is_rejected():
    token = issue_token(Principal("kakao-1", Role.ADMIN, "APPROVED"))
    assert read_token(token[:-2] + "xx") is None
    assert read_token("not-a-token") is None


def test_token_signed_with_other_salt_is_rejected():
    token = signing.dumps({"uid": "kakao-1", "role": "SUPER_ADMIN", "status": "APPROVED"})
    assert read_token(token) is None


def test_expired_token_is_rejected(settings):
    token = issue_token(Principal("kakao-1", Role.STUDENT, "APPROVED"))
    settings.PRINCIPAL_SESSION_MAX_AGE = -1
    assert read_token(token) is None


def test_unknown_role_or_status_is_rejected():
    bad_role = signing.dumps({"uid": "u", "role": "TEACHER", "status": None}, salt=TOKEN_SALT)
    bad_status = signing.dumps({"uid": "u", "role": "ADMIN", "status": "MAYBE"}, salt=TOKEN_SALT)
    no_uid = signing.dumps({"uid": "", "role": "ADMIN", "status": None}, salt=TOKEN_SALT)
    assert read_token(bad_role) is None
    assert read_token(bad_status) is None
    assert read_token(no_uid) is None


def test_middleware_attaches_principal_per_request():
    principal = Principal("kakao-9", Role.PARENT)
    rf = RequestFactory()
    seen = []
    middleware = PrincipalMiddleware(lambda request: seen.append(request.principal) or HttpResponse())

    with_cookie = rf.get("/")
    with_cookie.COOKIES[settings.PRINCIPAL_COOKIE_NAME] = issue_token(principal)
    middleware(with_cookie)
    middleware(rf.get("/"))

    assert seen == [principal, None]


def test_attach_and_clear_cookie():
    response = attach_principal(HttpResponse(), Principal("kakao-1", Role.PARENT))
    morsel = response.cookies[settings.PRINCIPAL_COOKIE_NAME]
    assert morsel["httponly"]
    assert morsel["samesite"] == "Lax"
    assert read_token(morsel.value).uid == "kakao-1"

    cleared = clear_principal(HttpResponse())
    assert cleared.cookies[settings.PRINCIPAL_COOKIE_NAME]["max-age"] == 0

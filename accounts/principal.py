"""Signed session artifact carrying the caller's identity.

The token is a ``django.core.signing`` payload ``{"uid", "role", "status"}``
stored in an HttpOnly cookie. Reading it never raises: any missing, expired,
tampered or malformed token resolves to "no session".
"""
import logging
from dataclasses import dataclass, asdict
from typing import Optional

from django.conf import settings
from django.core import signing

from .models import ADMIN_ROLES, ApprovalStatus, Role

logger = logging.getLogger(__name__)

TOKEN_SALT = "accounts.principal"
_ROLES = {r.value for r in Role}
_STATUSES = {s.value for s in ApprovalStatus}


@dataclass(frozen=True)
class Principal:
    uid: str
    role: str
    status: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    @property
    def is_pending(self) -> bool:
        return self.status == ApprovalStatus.PENDING


def issue_token(principal: Principal) -> str:
    return signing.dumps(asdict(principal), salt=TOKEN_SALT, compress=True)


def read_token(token: Optional[str]) -> Optional[Principal]:
    if not token:
        return None
    try:
        payload = signing.loads(
            token, salt=TOKEN_SALT, max_age=settings.PRINCIPAL_SESSION_MAX_AGE
        )
    except signing.SignatureExpired:
        logger.info("Principal token expired")
        return None
    except (signing.BadSignature, ValueError):
        logger.warning("Rejected principal token with invalid signature")
        return None
    if not isinstance(payload, dict):
        return None
    uid = payload.get("uid")
    role = payload.get("role")
    status = payload.get("status") or None
    if not uid or not isinstance(uid, str) or role not in _ROLES:
        return None
    if status is not None and status not in _STATUSES:
        return None
    return Principal(uid=uid, role=role, status=status)


def resolve_principal(request) -> Optional[Principal]:
    return read_token(request.COOKIES.get(settings.PRINCIPAL_COOKIE_NAME))


def attach_principal(response, principal: Principal):
    response.set_cookie(
        settings.PRINCIPAL_COOKIE_NAME,
        issue_token(principal),
        max_age=settings.PRINCIPAL_SESSION_MAX_AGE,
        httponly=True,
        samesite="Lax",
        secure=settings.PRINCIPAL_COOKIE_SECURE,
    )
    return response


def clear_principal(response):
    response.delete_cookie(settings.PRINCIPAL_COOKIE_NAME, samesite="Lax")
    return response

import logging

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from django.db import DatabaseError, transaction

from accounts import directory
from accounts.results import LOGIN_REQUIRED, UNEXPECTED_ERROR, fail, ok

from .models import SystemSetting

logger = logging.getLogger(__name__)

SUPPORT_EMAIL = "support_email"
SUPPORT_PHONE = "support_phone"


def fallback_settings():
    return {SUPPORT_EMAIL: settings.SUPPORT_EMAIL, SUPPORT_PHONE: settings.SUPPORT_PHONE}


def get_system_settings():
    """Support contact details; configured fallbacks when storage is unreachable."""
    values = fallback_settings()
    try:
        stored = dict(
            SystemSetting.objects.filter(key__in=values).values_list("key", "value")
        )
    except DatabaseError:
        logger.warning("System settings unavailable, serving fallbacks", exc_info=True)
        return values
    for key, value in stored.items():
        if value:
            values[key] = value
    return values


def update_system_settings(principal, email, phone):
    if principal is None:
        return fail(LOGIN_REQUIRED)
    email = (email or "").strip()
    phone = (phone or "").strip()
    try:
        validate_email(email)
    except ValidationError:
        return fail("Enter a valid support email.")
    if not phone:
        return fail("Enter a support phone number.")
    try:
        if not directory.is_approved_admin(directory.get_admin(principal.uid)):
            return fail("Only administrators can do this.")
        with transaction.atomic():
            for key, value in ((SUPPORT_EMAIL, email), (SUPPORT_PHONE, phone)):
                SystemSetting.objects.update_or_create(key=key, defaults={"value": value})
    except DatabaseError:
        logger.exception("Updating system settings failed")
        return fail(UNEXPECTED_ERROR)
    logger.info("System settings updated by %s", principal.uid)
    return ok()

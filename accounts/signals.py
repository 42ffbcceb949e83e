import logging
from urllib.parse import urlparse

from allauth.account.signals import user_logged_in
from django.conf import settings
from django.contrib.sites.models import Site
from django.db import DatabaseError
from django.db.models.signals import post_migrate
from django.dispatch import receiver

from .adapter import provider_uid

logger = logging.getLogger(__name__)


@receiver(user_logged_in)
def on_user_logged_in(sender, request, user, **kwargs):
    # users created before provider linking may still lack a uid
    sociallogin = kwargs.get("sociallogin")
    if sociallogin is None or user.uid:
        return
    account = sociallogin.account
    user.uid = provider_uid(account.provider, account.uid)
    user.save(update_fields=["uid"])


@receiver(post_migrate)
def sync_site_domain(sender, **kwargs):
    site_url = getattr(settings, "SITE_URL", "")
    if not site_url:
        return
    host = urlparse(site_url).hostname or "example.com"
    sid = getattr(settings, "SITE_ID", 1)
    try:
        Site.objects.update_or_create(id=sid, defaults={"domain": host, "name": host})
    except DatabaseError:
        logger.warning("Could not sync Site %s to %s", sid, host)

from allauth.account.adapter import DefaultAccountAdapter
from allauth.socialaccount.adapter import DefaultSocialAccountAdapter


def provider_uid(provider, subject):
    """Directory uid for a provider subject; subjects are only unique per provider."""
    return f"{provider}_{subject}"


class ClosedAccountAdapter(DefaultAccountAdapter):
    """Local username/password signup is closed; identities come from providers."""

    def is_open_for_signup(self, request):
        return False


class ProviderAccountAdapter(DefaultSocialAccountAdapter):
    def is_open_for_signup(self, request, sociallogin):
        return True

    def populate_user(self, request, sociallogin, data):
        user = super().populate_user(request, sociallogin, data)
        account = sociallogin.account
        # provider subject is the identity key for every role
        user.uid = provider_uid(account.provider, account.uid)
        if not user.username:
            user.username = user.uid
        if not user.name:
            user.name = (
                data.get("name")
                or " ".join(p for p in (data.get("first_name"), data.get("last_name")) if p)
                or data.get("username")
                or ""
            )
        return user

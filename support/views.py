from django.http import JsonResponse
from django.views.decorators.http import require_http_methods

from accounts.views import action_response

from .services import get_system_settings, update_system_settings


def index(request):
    return JsonResponse(get_system_settings())


@require_http_methods(["GET", "POST"])
def admin_settings(request):
    if request.method == "POST":
        return action_response(
            update_system_settings(
                request.principal,
                request.POST.get("support_email"),
                request.POST.get("support_phone"),
            )
        )
    return JsonResponse(get_system_settings())

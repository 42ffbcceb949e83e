import logging

from django.conf import settings
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from .status import run_all

logger = logging.getLogger(__name__)


def _presented_secret(request):
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        bearer = auth[len("Bearer "):].strip()
        if bearer:
            return bearer
    return request.headers.get("X-Cron-Secret", "")


@csrf_exempt
@require_http_methods(["GET", "POST"])
def update_status(request):
    if request.method == "GET":
        return JsonResponse({"message": "Use POST with the cron secret to run status updates."})
    secret = settings.CRON_SECRET
    if secret:
        if _presented_secret(request) != secret:
            logger.warning("Rejected status update call with a bad secret")
            return JsonResponse({"error": "Unauthorized"}, status=401)
    else:
        logger.warning("CRON_SECRET is not set; running status update unauthenticated")
    try:
        result = run_all()
    except Exception:
        logger.exception("Status update run failed")
        return JsonResponse({"error": "Internal error"}, status=500)
    return JsonResponse(result.as_dict())

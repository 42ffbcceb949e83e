from django.http import Http404
from django.shortcuts import redirect

from .gate import evaluate
from .principal import resolve_principal


class PrincipalMiddleware:
    """Attach the caller's signed identity to ``request.principal``."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request.principal = resolve_principal(request)
        return self.get_response(request)


class AuthorizationGateMiddleware:
    """Short-circuit protected areas before any view touches data."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        decision = evaluate(request.path_info, getattr(request, "principal", None))
        if decision.is_redirect:
            return redirect(decision.location)
        if decision.is_not_found:
            raise Http404("Not found")
        return self.get_response(request)

"""
Per-request user handling for the GoalTipp JSON API.

The acting user always comes from Django's session authentication on the
request; nothing is kept at module level.
"""

from functools import wraps

from django.http import HttpRequest, JsonResponse


def get_active_user(request: HttpRequest):
    """Return ``request.user`` when authenticated, ``None`` otherwise."""
    return request.user if request.user.is_authenticated else None


def api_login_required(view_func):
    """Reject anonymous requests with a JSON 401 instead of a login redirect."""

    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        if get_active_user(request) is None:
            return JsonResponse({'error': 'Authentication required'}, status=401)
        return view_func(request, *args, **kwargs)

    return wrapper


def api_staff_required(view_func):
    """Restrict a view to staff accounts (the game administrators)."""

    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        user = get_active_user(request)
        if user is None:
            return JsonResponse({'error': 'Authentication required'}, status=401)
        if not user.is_staff:
            return JsonResponse({'error': 'Administrator access required'}, status=403)
        return view_func(request, *args, **kwargs)

    return wrapper

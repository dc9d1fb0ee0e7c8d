"""Cache-backed rate limiting for the signup, activation and login endpoints."""

import logging

from django.core.cache import cache
from django.http import JsonResponse

from accounts.utils import normalize_login

logger = logging.getLogger(__name__)


class RateLimitMiddleware:
    """Limit POSTs per client IP on selected path prefixes."""

    RATE_LIMITS = {
        "/users": {"requests": 5, "window": 60, "scope": "ip"},
        "/activate/": {"requests": 10, "window": 60, "scope": "ip"},
        "/login/": {"requests": 5, "window": 60, "scope": "ip+username"},
    }

    def __init__(self, get_response):
        self.get_response = get_response

    @staticmethod
    def _get_client_ip(request):
        """Return best-effort client IP."""
        x_forwarded_for = request.META.get("HTTP_X_FORWARDED_FOR")
        if x_forwarded_for:
            return x_forwarded_for.split(",")[0].strip()
        return request.META.get("REMOTE_ADDR", "")

    def _limit_for(self, path):
        for prefix, limits in self.RATE_LIMITS.items():
            if path == prefix or (prefix.endswith("/") and path.startswith(prefix)):
                return prefix, limits
        return None, None

    def __call__(self, request):
        if request.method == "POST":
            prefix, limits = self._limit_for(request.path)
            if limits:
                identifier = self._get_client_ip(request)
                if limits["scope"] == "ip+username":
                    identifier = f"{identifier}:{normalize_login(request.POST.get('username'))}"
                cache_key = f"rate_limit:{identifier}:{prefix}"
                # Initialize key with timeout if absent, then increment atomically
                cache.add(cache_key, 0, limits["window"])
                count = cache.incr(cache_key)
                if count > limits["requests"]:
                    logger.warning("Rate limit hit for %s on %s", identifier, prefix)
                    return JsonResponse({"detail": "Too many requests"}, status=429)
        return self.get_response(request)

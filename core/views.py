from django.http import HttpResponse
from django.views.generic import TemplateView


class HomeView(TemplateView):
    template_name = "core/home.html"


def healthz(_request):
    """
    Lightweight health endpoint used by external monitors.
    Must not touch the database or perform expensive work.
    """
    response = HttpResponse("ok", content_type="text/plain", status=200)
    # Avoid intermediary caches; make sure the request reaches the app
    response["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
    response["X-Robots-Tag"] = "noindex, nofollow"
    return response

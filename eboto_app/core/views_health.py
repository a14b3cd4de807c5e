from django.http import HttpResponse

from core.backends import EBotoClient


def healthz(request):
    return HttpResponse("ok", content_type="text/plain")


def readyz(request):
    if not EBotoClient().ping():
        return HttpResponse("api unavailable", status=503, content_type="text/plain")

    return HttpResponse("ok", content_type="text/plain")

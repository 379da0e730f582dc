"""
Themis URL Configuration
"""
import time

from django.contrib import admin
from django.http import JsonResponse
from django.urls import include, path, re_path

PROCESS_STARTED_AT = time.monotonic()


# Simple healthcheck for Railway and production load balancers
def health(request):
    return JsonResponse({"status": "ok", "uptime_s": int(time.monotonic() - PROCESS_STARTED_AT)}, status=200)


urlpatterns = [
    path('admin/', admin.site.urls),

    # Healthchecks (accept with and without trailing slash)
    path('health/', health, name='health'),
    path('healthz/', health, name='healthz_root'),
    path('livez/', health, name='livez'),
    path('readyz/', health, name='readyz'),
    re_path(r'^(?:health|healthz|livez|readyz)$', health),

    # Claims API
    path('api/', include('claims.urls')),
]

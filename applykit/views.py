"""
Project-level views: health checks and JSON error handlers.
"""
from django.conf import settings
from django.http import JsonResponse
from django.utils import timezone
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from .errors import ErrorCode, error_response_payload


@api_view(["GET"])
@authentication_classes([])
@permission_classes([AllowAny])
def health(request):
    """Public liveness probe."""
    return Response(
        {
            "status": "ok",
            "timestamp": timezone.now().isoformat(),
            "version": getattr(settings, "APP_VERSION", "1.0.0"),
        }
    )


@api_view(["GET"])
@authentication_classes([])
@permission_classes([AllowAny])
def api_health(request):
    """Liveness probe under the /api prefix."""
    return Response(
        {
            "status": "ok",
            "api": "running",
            "timestamp": timezone.now().isoformat(),
        }
    )


def not_found(request, exception=None):
    payload = error_response_payload(
        ErrorCode.NOT_FOUND,
        f"Route {request.method} {request.path} not found",
    )
    return JsonResponse(payload, status=404)


def server_error(request):
    payload = error_response_payload(
        ErrorCode.INTERNAL_SERVER_ERROR,
        "An unexpected error occurred",
    )
    return JsonResponse(payload, status=500)

"""
Audit app views

Daily usage derived from the audit trail: generation calls made today
against ``DAILY_USAGE_LIMIT``.
"""
from django.conf import settings
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.authentication import get_api_key_header, resolve_api_key
from accounts.serializers import ApiKeySummarySerializer

from .models import AuditRecord

DEFAULT_DAILY_LIMIT = 20


def daily_usage(user_id) -> dict:
    limit = int(getattr(settings, 'DAILY_USAGE_LIMIT', DEFAULT_DAILY_LIMIT))
    today = (
        AuditRecord.objects.active()
        .for_user(user_id)
        .created_today()
        .generation_calls()
        .count()
    )
    return {
        'today': today,
        'limit': limit,
        'remaining': max(0, limit - today),
        'exceeded': today >= limit,
    }


class DailyUsageView(APIView):
    """GET /api/usage/daily"""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response({'success': True, 'usage': daily_usage(request.user.pk)})


class ApiKeyUsageView(APIView):
    """
    GET /api/usage

    Public; the key only has to exist, account status is not checked.
    """

    authentication_classes = []
    permission_classes = [AllowAny]

    def get(self, request):
        api_key = resolve_api_key(get_api_key_header(request), enforce_status=False)
        return Response(
            {
                'success': True,
                'usage': daily_usage(api_key.user_id),
                'apiKey': ApiKeySummarySerializer(api_key).data,
            }
        )

"""
Accounts app views

Public API key validation used by the extension's options page.
"""
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from .authentication import get_api_key_header, resolve_api_key, touch_last_used
from .serializers import UserSummarySerializer


class ValidateApiKeyView(APIView):
    """
    POST /api/auth/validate

    Runs the same checks as the authentication class, but without DRF
    authentication so failures carry the specific error code.
    """

    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request):
        api_key = resolve_api_key(get_api_key_header(request))
        touch_last_used(api_key)
        return Response(
            {
                'success': True,
                'message': 'API key is valid',
                'user': UserSummarySerializer(api_key.user).data,
            }
        )

"""
Generation app views

API endpoints used by the browser extension. All require an API key and
answer ``{"success": true, "result": ...}``; failures are rendered by the
project exception handler.
"""
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from applykit.errors import ValidationError

from . import services
from .serializers import (
    ChatRequestSerializer,
    CoverLetterRequestSerializer,
    ExperienceRequestSerializer,
    KeywordsRequestSerializer,
)


class GenerationView(APIView):
    """
    Validates the payload with ``serializer_class`` and hands it to ``generate``.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = None

    def post(self, request):
        serializer = self.serializer_class(data=request.data)
        if not serializer.is_valid():
            raise ValidationError(
                self.serializer_class.missing_message,
                details={"fields": serializer.errors},
            )
        result = self.generate(serializer.validated_data)
        return Response({"success": True, "result": result})

    def generate(self, data):
        raise NotImplementedError


class KeywordsView(GenerationView):
    """POST /api/keywords"""

    serializer_class = KeywordsRequestSerializer

    def generate(self, data):
        return services.generate_keywords(data["jobDescription"], data["skills"])


class CoverLetterView(GenerationView):
    """POST /api/coverletter"""

    serializer_class = CoverLetterRequestSerializer

    def generate(self, data):
        return services.generate_cover_letter(data["jobDescription"], data["resume"])


class ExperienceView(GenerationView):
    """POST /api/experience"""

    serializer_class = ExperienceRequestSerializer

    def generate(self, data):
        return services.generate_experience(data["jobDescription"], data["experience"])


class ChatView(GenerationView):
    """POST /api/chat"""

    serializer_class = ChatRequestSerializer

    def generate(self, data):
        return services.answer_question(
            data["jobDescription"], data["resume"], data["question"]
        )

"""
Generation app serializers

Request validation for the generation endpoints. Field names follow the
browser extension's camelCase payloads.
"""
from rest_framework import serializers


class GenerationRequestSerializer(serializers.Serializer):
    """
    Base request serializer; every field in ``required_fields`` must be truthy.
    """

    required_fields = ()
    missing_message = "Missing required fields"

    jobDescription = serializers.CharField(required=False, allow_blank=True, trim_whitespace=True)

    def validate(self, attrs):
        missing = [name for name in self.required_fields if not attrs.get(name)]
        if missing:
            raise serializers.ValidationError(
                {name: ["This field is required."] for name in missing}
            )
        return attrs


class KeywordsRequestSerializer(GenerationRequestSerializer):
    required_fields = ("jobDescription", "skills")
    missing_message = "Missing required fields: jobDescription and skills are required"

    skills = serializers.JSONField(required=False)


class CoverLetterRequestSerializer(GenerationRequestSerializer):
    required_fields = ("jobDescription", "resume")
    missing_message = "Missing or invalid jobDescription or resume"

    resume = serializers.JSONField(required=False)


class ExperienceRequestSerializer(GenerationRequestSerializer):
    required_fields = ("jobDescription", "experience")
    missing_message = "Missing required fields: jobDescription and experience are required"

    experience = serializers.JSONField(required=False)


class ChatRequestSerializer(GenerationRequestSerializer):
    required_fields = ("question", "jobDescription", "resume")
    missing_message = (
        "Missing required fields: question, jobDescription, and resume are required"
    )

    resume = serializers.JSONField(required=False)
    question = serializers.CharField(required=False, allow_blank=True, trim_whitespace=True)

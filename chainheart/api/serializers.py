"""DRF serializers for form and query input of the HTTP API.

JSON bodies of ledger records are validated by the pydantic schemas in
``chainheart.schemas``; these serializers cover multipart forms and query
parameters.
"""

from rest_framework import serializers

from chainheart.errors import ValidationError
from chainheart.schemas import RequestStatus, TransactionStatus
from chainheart.services.storage import Upload

LEADERBOARD_MAX_LIMIT = 100


def validated(serializer: serializers.Serializer) -> dict:
    """Validate a serializer, raising the ledger ValidationError on failure."""
    if not serializer.is_valid():
        problems = "; ".join(
            f"{field}: {' '.join(str(message) for message in messages)}"
            for field, messages in serializer.errors.items()
        )
        raise ValidationError(problems)
    return serializer.validated_data


def to_upload(uploaded_file) -> Upload:
    """Read a Django uploaded file into an Upload."""
    if uploaded_file is None:
        return None
    return Upload(filename=uploaded_file.name, data=uploaded_file.read())


class CharityRegistrationSerializer(serializers.Serializer):
    """Multipart form of POST /api/charity/register."""

    name = serializers.CharField(max_length=255)
    wallet = serializers.CharField(max_length=42)
    description = serializers.CharField()
    email = serializers.EmailField()
    websiteUrl = serializers.CharField(max_length=512, required=False, allow_blank=True)
    verification = serializers.FileField()
    logo = serializers.FileField(required=False)


class CharityUpdateSerializer(serializers.Serializer):
    """Form of PUT /api/charityRequests/{id}; every field is optional."""

    name = serializers.CharField(max_length=255, required=False)
    wallet = serializers.CharField(max_length=42, required=False)
    description = serializers.CharField(required=False)
    email = serializers.EmailField(required=False)
    websiteUrl = serializers.CharField(max_length=512, required=False, allow_blank=True)
    logo = serializers.FileField(required=False)
    logoChanged = serializers.BooleanField(required=False, default=False)


class TransactionStatusSerializer(serializers.Serializer):
    """Body of PATCH /api/transactions/{txHash}/status."""

    status = serializers.ChoiceField(choices=[s.value for s in TransactionStatus])


class AdminStatusSerializer(serializers.Serializer):
    """Query of PATCH /api/charityRequests/adminapprove/{id}."""

    status = serializers.ChoiceField(choices=[s.value for s in RequestStatus])


class LeaderboardQuerySerializer(serializers.Serializer):
    """Query of GET /api/statistics/leaderboard."""

    limit = serializers.IntegerField(min_value=0, required=False, default=10)

    def validate_limit(self, value):
        return min(value, LEADERBOARD_MAX_LIMIT)

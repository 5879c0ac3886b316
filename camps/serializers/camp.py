import bleach
from decimal import Decimal
from rest_framework import serializers

from camps.services.camps import SORT_FIELDS


def _clean(v):
    return bleach.clean((v or '').strip(), strip=True)


class CampWriteSerializer(serializers.Serializer):
    """Organizer input for create/update; ``participants`` is never writable."""
    name = serializers.CharField(max_length=255)
    imageUrl = serializers.URLField(max_length=512, required=False, allow_blank=True, source='image_url')
    fee = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0.00'))
    scheduledAt = serializers.DateTimeField(required=False, allow_null=True, source='scheduled_at')
    location = serializers.CharField(max_length=255)
    healthcareProfessional = serializers.CharField(
        max_length=255, required=False, allow_blank=True, source='healthcare_professional'
    )
    description = serializers.CharField(max_length=5000, required=False, allow_blank=True)

    def validate_name(self, v):
        v = _clean(v)
        if len(v) < 2:
            raise serializers.ValidationError('name must be at least 2 characters')
        return v

    def validate_location(self, v):
        v = _clean(v)
        if not v:
            raise serializers.ValidationError('location must not be empty')
        return v

    def validate_healthcareProfessional(self, v):
        return _clean(v)

    def validate_description(self, v):
        return _clean(v)


class CampListQuerySerializer(serializers.Serializer):
    q = serializers.CharField(max_length=64, required=False)
    sort = serializers.ChoiceField(choices=sorted(SORT_FIELDS), required=False)
    page = serializers.IntegerField(min_value=1, required=False)
    pageSize = serializers.IntegerField(min_value=1, max_value=100, required=False)

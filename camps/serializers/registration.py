import bleach
from rest_framework import serializers

from camps.models import ConfirmationStatus, PaymentStatus
from camps.serializers.fields import EnumChoiceField
from camps.services.registrations import RegistrationPayload


def _clean(v):
    return bleach.clean((v or '').strip(), strip=True)


class JoinCampSerializer(serializers.Serializer):
    participantName = serializers.CharField(max_length=255, required=False, allow_blank=True)
    age = serializers.IntegerField(min_value=0, max_value=130, required=False, allow_null=True)
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True)
    gender = serializers.CharField(max_length=16, required=False, allow_blank=True)
    emergencyContact = serializers.CharField(max_length=64, required=False, allow_blank=True)

    def validate_participantName(self, v):
        return _clean(v)

    def validate_phone(self, v):
        return _clean(v)

    def validate_gender(self, v):
        return _clean(v).lower()

    def validate_emergencyContact(self, v):
        return _clean(v)

    def to_payload(self) -> RegistrationPayload:
        vd = self.validated_data
        return RegistrationPayload(
            participant_name=vd.get('participantName', ''),
            age=vd.get('age'),
            phone=vd.get('phone', ''),
            gender=vd.get('gender', ''),
            emergency_contact=vd.get('emergencyContact', ''),
        )


class PaymentStatusSerializer(serializers.Serializer):
    status = EnumChoiceField(PaymentStatus)
    transactionId = serializers.CharField(max_length=128, required=False, allow_blank=True, allow_null=True)

    def validate(self, attrs):
        if attrs['status'] == PaymentStatus.PAID and not attrs.get('transactionId'):
            raise serializers.ValidationError({'transactionId': 'required when status is paid'})
        return attrs


class ConfirmationStatusSerializer(serializers.Serializer):
    status = EnumChoiceField(ConfirmationStatus)


class PaymentIntentSerializer(serializers.Serializer):
    registrationId = serializers.IntegerField(min_value=1)


class RegistrationListQuerySerializer(serializers.Serializer):
    campId = serializers.IntegerField(min_value=1, required=False)
    q = serializers.CharField(max_length=64, required=False)
    page = serializers.IntegerField(min_value=1, required=False)
    pageSize = serializers.IntegerField(min_value=1, max_value=100, required=False)

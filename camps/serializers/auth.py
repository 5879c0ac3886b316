import bleach
from django.conf import settings
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

from camps.models import Role, User
from camps.serializers.fields import EnumChoiceField


class LoginSerializer(serializers.Serializer):
    # username or email
    username = serializers.CharField()
    password = serializers.CharField()

    def validate_username(self, v):
        v = (v or '').strip()
        if not v:
            raise serializers.ValidationError('username must not be empty')
        return v

    def validate_password(self, v):
        if not v:
            raise serializers.ValidationError('password must not be empty')
        return v


class SignupSerializer(serializers.Serializer):
    username = serializers.CharField(max_length=150)
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)
    name = serializers.CharField(max_length=150, required=False, allow_blank=True)
    role = EnumChoiceField(Role, required=False)
    photoUrl = serializers.URLField(required=False, allow_blank=True, max_length=512)

    def validate_username(self, v):
        v = bleach.clean((v or '').strip(), strip=True)
        if User.objects.filter(username__iexact=v).exists():
            raise serializers.ValidationError('username already taken')
        return v

    def validate_email(self, v):
        v = (v or '').strip().lower()
        if User.objects.filter(email__iexact=v).exists():
            raise serializers.ValidationError('email already registered')
        return v

    def validate_role(self, v):
        if v == Role.ORGANIZER and not settings.ALLOW_ORGANIZER_SIGNUP:
            raise serializers.ValidationError('organizer accounts cannot be self-registered')
        return v

    def validate(self, attrs):
        try:
            validate_password(attrs['password'], User(username=attrs['username'], email=attrs['email']))
        except DjangoValidationError as e:
            raise serializers.ValidationError({'password': e.messages})
        return attrs


class ProfileUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=150, required=False, allow_blank=True)
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True)
    photoUrl = serializers.URLField(required=False, allow_blank=True, max_length=512)

    def validate_name(self, v):
        return bleach.clean((v or '').strip(), strip=True)

    def validate_phone(self, v):
        return bleach.clean((v or '').strip(), strip=True)

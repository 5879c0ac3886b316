"""
Database models for the MediCamp backend.

Organizers publish medical camps; participants register for them and pay
the camp fee.  Each camp carries a ``participants`` counter which is kept
equal to the number of live (non-cancelled) registrations by
:class:`camps.services.registrations.RegistrationCoordinator`.  Nothing
else writes that column.
"""
from __future__ import annotations

from decimal import Decimal

from django.contrib.auth.models import AbstractUser
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q


class Role(models.TextChoices):
    PARTICIPANT = 'participant', 'Participant'
    ORGANIZER = 'organizer', 'Organizer'


class PaymentStatus(models.TextChoices):
    UNPAID = 'unpaid', 'Unpaid'
    PAID = 'paid', 'Paid'


class ConfirmationStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    CONFIRMED = 'confirmed', 'Confirmed'
    CANCELLED = 'cancelled', 'Cancelled'


class User(AbstractUser):
    """Custom user model with a unique email and a platform role.

    The email is the participant identifier shown to organizers and used
    as an alternative login name.
    """
    email = models.EmailField(unique=True)
    role = models.CharField(max_length=16, choices=Role.choices, default=Role.PARTICIPANT, db_index=True)
    phone = models.CharField(max_length=32, blank=True)
    photo_url = models.URLField(max_length=512, blank=True)

    @property
    def is_organizer(self) -> bool:
        return self.role == Role.ORGANIZER

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class Camp(models.Model):
    """A medical camp published by an organizer."""
    name = models.CharField(max_length=255)
    image_url = models.URLField(max_length=512, blank=True)
    fee = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))],
    )
    # Stored as a real timestamp so "upcoming" is a typed comparison
    scheduled_at = models.DateTimeField(null=True, blank=True, db_index=True)
    location = models.CharField(max_length=255)
    healthcare_professional = models.CharField(max_length=255, blank=True)
    description = models.TextField(blank=True)
    organizer = models.ForeignKey(User, on_delete=models.PROTECT, related_name='organized_camps')
    participants = models.PositiveIntegerField(default=0, editable=False, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.CheckConstraint(condition=Q(fee__gte=0), name='camp_fee_non_negative'),
        ]
        indexes = [
            models.Index(fields=['organizer', 'created_at'], name='camps_camp_organiz_3f0d9e_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.id})"


class Registration(models.Model):
    """A participant's enrollment in a camp.

    ``camp`` is a reference, not an ownership relation: the row keeps its
    camp id even if the camp disappears, so there is no database-level
    constraint or cascade.
    """
    participant = models.ForeignKey(User, on_delete=models.PROTECT, related_name='registrations')
    camp = models.ForeignKey(
        Camp, on_delete=models.DO_NOTHING, db_constraint=False, related_name='registrations'
    )
    participant_name = models.CharField(max_length=255, blank=True)
    age = models.PositiveIntegerField(null=True, blank=True)
    phone = models.CharField(max_length=32, blank=True)
    gender = models.CharField(max_length=16, blank=True)
    emergency_contact = models.CharField(max_length=64, blank=True)
    fee = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))

    payment_status = models.CharField(
        max_length=16, choices=PaymentStatus.choices, default=PaymentStatus.UNPAID, db_index=True
    )
    confirmation_status = models.CharField(
        max_length=16, choices=ConfirmationStatus.choices, default=ConfirmationStatus.PENDING, db_index=True
    )
    transaction_id = models.CharField(max_length=128, blank=True, null=True)
    registered_at = models.DateTimeField()
    paid_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['participant', 'camp'],
                condition=~Q(confirmation_status='cancelled'),
                name='one_live_registration_per_participant_camp',
            ),
        ]
        indexes = [
            models.Index(fields=['camp', 'confirmation_status'], name='camps_regis_camp_id_5b1c2a_idx'),
            models.Index(fields=['participant', 'registered_at'], name='camps_regis_partici_8e4f71_idx'),
        ]

    @property
    def is_live(self) -> bool:
        return self.confirmation_status != ConfirmationStatus.CANCELLED

    def __str__(self) -> str:
        return f"reg {self.id}: u={self.participant_id} camp={self.camp_id} ({self.payment_status})"


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.BigIntegerField(blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='camps_audit_action_2c7d40_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='camps_audit_object__9a13e6_idx'),
        ]

    def __str__(self):
        return f"{self.action}:{self.object_type}#{self.object_id}"

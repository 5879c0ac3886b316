"""
Registration coordinator.

The coordinator is the only writer of ``Camp.participants``.  Every
operation that changes the set of live registrations for a camp runs as
a single atomic unit which also moves the counter, so that for every camp

    participants == count(registrations where confirmation_status != cancelled)

holds after each commit.  Counter changes are ``UPDATE ... SET
participants = participants +/- 1`` statements: the database serializes
them per camp row and concurrent units never lose an update.

Side effects outside the database (cache invalidation, WebSocket push)
are deferred to ``transaction.on_commit``.  Calls to the payment
processor never happen inside a unit; the coordinator only records their
outcome through :meth:`RegistrationCoordinator.update_payment_status`.
"""
from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from django.conf import settings
from django.db import DatabaseError, IntegrityError, InterfaceError, OperationalError, transaction
from django.db.models import F
from django.utils import timezone
from rest_framework.exceptions import PermissionDenied

from camps.authentication import Identity
from camps.exceptions import (
    CampError,
    CampNotFound,
    DuplicateRegistration,
    PaidRegistrationImmutable,
    RegistrationAlreadyPaid,
    RegistrationNotFound,
    StoreUnavailable,
    TransactionAborted,
)
from camps.models import Camp, ConfirmationStatus, PaymentStatus, Registration
from camps.services import events
from camps.services.audit import log_action

logger = logging.getLogger(__name__)

T = TypeVar('T')

# Lock timeouts, deadlocks and serialization failures abort the unit but
# leave the store healthy; the whole unit may be run again.
_ABORT_SQLSTATES = {'40001', '40P01', '55P03'}
_ABORT_MYSQL_CODES = {1205, 1213}
_ABORT_MESSAGES = (
    'database is locked',
    'database table is locked',
    'deadlock',
    'could not serialize',
    'lock wait timeout',
)


def classify_db_error(exc: DatabaseError) -> CampError:
    """Map a driver-level failure onto the retryable error taxonomy."""
    cause = exc.__cause__
    sqlstate = getattr(cause, 'sqlstate', None) or getattr(cause, 'pgcode', None)
    code = exc.args[0] if exc.args and isinstance(exc.args[0], int) else None
    message = str(exc).lower()
    if (
        sqlstate in _ABORT_SQLSTATES
        or code in _ABORT_MYSQL_CODES
        or any(marker in message for marker in _ABORT_MESSAGES)
    ):
        return TransactionAborted()
    return StoreUnavailable()


@dataclass(frozen=True)
class RegistrationPayload:
    """Join-form fields stored alongside a registration."""
    participant_name: str = ''
    age: Optional[int] = None
    phone: str = ''
    gender: str = ''
    emergency_contact: str = ''


class RegistrationCoordinator:
    """Keeps ``Camp.participants`` consistent with live registrations.

    ``using`` is the database alias every read and write goes through.
    """

    def __init__(self, using: str = 'default', *, max_attempts: Optional[int] = None,
                 backoff: Optional[float] = None, sleep: Callable[[float], None] = time.sleep):
        self.using = using
        self.max_attempts = max(1, max_attempts or settings.REGISTRATION_MAX_ATTEMPTS)
        self.backoff = settings.REGISTRATION_RETRY_BACKOFF if backoff is None else backoff
        self._sleep = sleep

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    def register(self, identity: Identity, camp_id: int, payload: Optional[RegistrationPayload] = None) -> int:
        """Register ``identity`` for ``camp_id`` and return the registration id.

        Transient aborts are retried here; each attempt re-runs the
        duplicate check, so a retry can never count a participant twice.
        """
        payload = payload or RegistrationPayload()
        return self._retrying('register', lambda: self._register_once(identity, camp_id, payload))

    def cancel_registration(self, registration_id: int, identity: Optional[Identity] = None) -> None:
        """Delete an unpaid registration and release its place in the camp.

        With an ``identity`` the caller must be the registered participant
        or the organizer of the camp.
        """
        with self._unit():
            reg = self._locked(registration_id)
            if identity is not None:
                self._ensure_can_cancel(identity, reg)
            if reg.payment_status == PaymentStatus.PAID:
                raise PaidRegistrationImmutable()
            was_live = reg.is_live
            reg.delete(using=self.using)
            if was_live:
                # the camp may be gone already; releasing the registration is what matters
                self._move_counter(reg.camp_id, -1)
            log_action(user_id=identity.user_id if identity else None, action='registration_cancel',
                       object_type='registration', object_id=registration_id,
                       detail={'campId': reg.camp_id}, using=self.using)
        logger.info('registration %s cancelled (camp %s)', registration_id, reg.camp_id)

    def update_payment_status(self, registration_id: int, status: PaymentStatus | str,
                              transaction_id: Optional[str] = None, identity: Optional[Identity] = None) -> None:
        """Record the payment outcome; the participant counter is not involved.

        Payment only moves forward: once a registration is paid its status
        is final and any further update raises ``RegistrationAlreadyPaid``.
        """
        status = PaymentStatus(status)
        with self._unit():
            reg = self._locked(registration_id)
            if identity is not None and reg.participant_id != identity.user_id:
                raise RegistrationNotFound()
            if reg.payment_status == PaymentStatus.PAID:
                raise RegistrationAlreadyPaid()
            reg.payment_status = status
            reg.transaction_id = transaction_id or None
            reg.paid_at = timezone.now() if status == PaymentStatus.PAID else None
            reg.save(using=self.using, update_fields=['payment_status', 'transaction_id', 'paid_at'])
            log_action(user_id=identity.user_id if identity else None, action='registration_payment',
                       object_type='registration', object_id=registration_id,
                       detail={'status': status.value, 'transactionId': transaction_id}, using=self.using)
        logger.info('registration %s payment status -> %s', registration_id, status.value)

    def update_confirmation_status(self, registration_id: int, confirmation_status: ConfirmationStatus | str,
                                   identity: Optional[Identity] = None) -> None:
        """Set the organizer-controlled confirmation status.

        Moving a registration into or out of ``cancelled`` changes the set
        of live registrations, so the counter moves in the same unit.
        """
        new_status = ConfirmationStatus(confirmation_status)
        with self._unit():
            reg = self._locked(registration_id)
            if identity is not None and not self._organizes(identity, reg.camp_id):
                raise PermissionDenied('only the camp organizer may change confirmation status')
            if reg.confirmation_status == new_status:
                return
            was_live = reg.is_live
            reg.confirmation_status = new_status
            if reg.is_live and not was_live:
                if self._locked_camp(reg.camp_id).values_list('pk', flat=True).first() is None:
                    raise CampNotFound()
                if self._live_registrations(reg.participant_id, reg.camp_id).exclude(pk=reg.pk).exists():
                    raise DuplicateRegistration()
            try:
                with transaction.atomic(using=self.using):
                    reg.save(using=self.using, update_fields=['confirmation_status'])
            except IntegrityError as exc:
                # reviving a cancelled row while another live one exists
                raise DuplicateRegistration() from exc
            if was_live and not reg.is_live:
                self._move_counter(reg.camp_id, -1)
            elif reg.is_live and not was_live:
                if not self._move_counter(reg.camp_id, +1):
                    raise CampNotFound()
            log_action(user_id=identity.user_id if identity else None, action='registration_confirmation',
                       object_type='registration', object_id=registration_id,
                       detail={'status': new_status.value}, using=self.using)
        logger.info('registration %s confirmation -> %s', registration_id, new_status.value)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _register_once(self, identity: Identity, camp_id: int, payload: RegistrationPayload) -> int:
        with self._unit():
            # registers for one camp serialize on its row lock
            fee = self._locked_camp(camp_id).values_list('fee', flat=True).first()
            if fee is None:
                raise CampNotFound()
            if self._live_registrations(identity.user_id, camp_id).exists():
                raise DuplicateRegistration()
            try:
                with transaction.atomic(using=self.using):
                    reg = Registration.objects.using(self.using).create(
                        participant_id=identity.user_id,
                        camp_id=camp_id,
                        participant_name=payload.participant_name,
                        age=payload.age,
                        phone=payload.phone,
                        gender=payload.gender,
                        emergency_contact=payload.emergency_contact,
                        fee=fee,
                        payment_status=PaymentStatus.UNPAID,
                        confirmation_status=ConfirmationStatus.PENDING,
                        registered_at=timezone.now(),
                    )
            except IntegrityError as exc:
                raise DuplicateRegistration() from exc
            # The camp can vanish between the fee read and here; zero rows
            # updated aborts the unit and takes the insert with it.
            if not self._move_counter(camp_id, +1):
                raise CampNotFound()
            log_action(user_id=identity.user_id, action='registration_create',
                       object_type='registration', object_id=reg.pk,
                       detail={'campId': camp_id}, using=self.using)
        logger.info('participant %s registered for camp %s (registration %s)', identity.user_id, camp_id, reg.pk)
        return reg.pk

    def _live_registrations(self, participant_id: int, camp_id: int):
        return (
            Registration.objects.using(self.using)
            .filter(participant_id=participant_id, camp_id=camp_id)
            .exclude(confirmation_status=ConfirmationStatus.CANCELLED)
        )

    def _locked(self, registration_id: int) -> Registration:
        reg = Registration.objects.using(self.using).select_for_update().filter(pk=registration_id).first()
        if reg is None:
            raise RegistrationNotFound()
        return reg

    def _locked_camp(self, camp_id: int):
        return Camp.objects.using(self.using).select_for_update().filter(pk=camp_id)

    def _organizes(self, identity: Identity, camp_id: int) -> bool:
        return Camp.objects.using(self.using).filter(pk=camp_id, organizer_id=identity.user_id).exists()

    def _ensure_can_cancel(self, identity: Identity, reg: Registration) -> None:
        if reg.participant_id == identity.user_id:
            return
        if identity.is_organizer and self._organizes(identity, reg.camp_id):
            return
        raise PermissionDenied('not allowed to cancel this registration')

    def _move_counter(self, camp_id: int, delta: int) -> bool:
        """Apply ``delta`` to the camp counter; False when the camp is gone."""
        qs = Camp.objects.using(self.using).filter(pk=camp_id)
        if delta < 0:
            qs = qs.filter(participants__gte=-delta)
        updated = qs.update(participants=F('participants') + delta)
        if not updated:
            return False
        participants = Camp.objects.using(self.using).values_list('participants', flat=True).get(pk=camp_id)
        transaction.on_commit(lambda: events.participants_changed(camp_id, participants), using=self.using)
        return True

    @contextmanager
    def _unit(self):
        """One atomic unit; driver failures surface as retryable errors."""
        try:
            with transaction.atomic(using=self.using):
                yield
        except (OperationalError, InterfaceError) as exc:
            error = classify_db_error(exc)
            logger.warning('atomic unit failed (%s): %s', error.default_code, exc)
            raise error from exc

    def _retrying(self, op: str, fn: Callable[[], T]) -> T:
        # Inside a caller's transaction a failed unit has poisoned the
        # outer block, so only the outermost caller may retry.
        attempts = 1 if transaction.get_connection(self.using).in_atomic_block else self.max_attempts
        attempt = 1
        while True:
            try:
                return fn()
            except (TransactionAborted, StoreUnavailable):
                if attempt >= attempts:
                    logger.warning('%s gave up after %d attempt(s)', op, attempt)
                    raise
                logger.warning('%s attempt %d/%d aborted, retrying', op, attempt, attempts)
                self._sleep(self.backoff * attempt)
                attempt += 1

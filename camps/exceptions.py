"""
Error taxonomy for the registration core and the project-wide DRF
exception handler.

Every failure reaches the client as
``{'ok': False, 'error': {'code', 'message', 'retryable'}}``.
"""
import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class CampError(APIException):
    """Base class for domain failures raised by the services."""
    retryable = False


class DuplicateRegistration(CampError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'participant already has an active registration for this camp'
    default_code = 'duplicate_registration'


class CampNotFound(CampError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'camp not found'
    default_code = 'camp_not_found'


class RegistrationNotFound(CampError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'registration not found'
    default_code = 'registration_not_found'


class PaidRegistrationImmutable(CampError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'paid registrations cannot be cancelled'
    default_code = 'paid_registration_immutable'


class RegistrationAlreadyPaid(CampError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'registration is already paid'
    default_code = 'already_paid'


class CampHasRegistrations(CampError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'camp still has active registrations'
    default_code = 'camp_has_registrations'


class StoreUnavailable(CampError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'storage temporarily unavailable, retry later'
    default_code = 'store_unavailable'
    retryable = True


class TransactionAborted(CampError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'transaction aborted by a concurrent update, retry'
    default_code = 'transaction_aborted'
    retryable = True


class PaymentProviderError(CampError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = 'payment provider request failed'
    default_code = 'payment_provider_error'


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is None:
        logger.exception('unhandled error in %s', context.get('view'), exc_info=exc)
        return Response(
            {'ok': False, 'error': {'code': 'server_error', 'message': str(exc), 'retryable': False}},
            status=500,
        )
    # normalize response
    if isinstance(exc, CampError):
        code = exc.default_code
    elif isinstance(exc, APIException):
        codes = exc.get_codes()
        code = codes if isinstance(codes, str) else 'invalid'
    else:
        code = 'api_error'
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
    else:
        detail = resp.data
    resp.data = {
        'ok': False,
        'error': {'code': code, 'message': detail, 'retryable': getattr(exc, 'retryable', False)},
    }
    if getattr(exc, 'retryable', False):
        resp['Retry-After'] = '1'
    return resp

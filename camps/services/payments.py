"""
Payment processor client.

Creates Stripe-compatible payment intents over plain HTTPS.  The client
secret goes back to the browser, which confirms the payment directly with
the processor and then reports the outcome through the registration
payment endpoint.  Nothing here runs inside a database transaction.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

import requests
from django.conf import settings

from camps.exceptions import PaymentProviderError

logger = logging.getLogger(__name__)


@dataclass
class PaymentIntent:
    id: str
    client_secret: str
    amount: int
    currency: str


def to_minor_units(amount: Decimal) -> int:
    """``Decimal('12.50')`` -> ``1250``."""
    return int((Decimal(amount) * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def create_payment_intent(amount: Decimal, *, metadata: dict | None = None) -> PaymentIntent:
    if not settings.STRIPE_SECRET_KEY:
        raise PaymentProviderError('payments are not configured on this server')
    minor = to_minor_units(amount)
    if minor <= 0:
        raise PaymentProviderError('nothing to pay for a free camp')
    data = {
        'amount': minor,
        'currency': settings.PAYMENT_CURRENCY,
        'payment_method_types[]': 'card',
    }
    for key, value in (metadata or {}).items():
        data[f'metadata[{key}]'] = str(value)
    try:
        r = requests.post(
            f"{settings.STRIPE_API_BASE.rstrip('/')}/payment_intents",
            data=data,
            auth=(settings.STRIPE_SECRET_KEY, ''),
            timeout=settings.PAYMENT_TIMEOUT,
        )
        r.raise_for_status()
        body = r.json()
    except requests.RequestException as exc:
        logger.warning('payment intent request failed: %s', exc)
        raise PaymentProviderError(f'payment provider error: {exc}') from exc
    intent_id = body.get('id')
    secret = body.get('client_secret')
    if not intent_id or not secret:
        raise PaymentProviderError('invalid response from payment provider: missing client_secret')
    return PaymentIntent(id=intent_id, client_secret=secret, amount=minor, currency=settings.PAYMENT_CURRENCY)

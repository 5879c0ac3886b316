from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from camps.exceptions import RegistrationAlreadyPaid, RegistrationNotFound
from camps.models import ConfirmationStatus, PaymentStatus, Registration
from camps.permissions import IsParticipant
from camps.serializers.registration import PaymentIntentSerializer
from camps.services.payments import create_payment_intent


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsParticipant])
def payment_intent(request):
    """Create a payment intent for one of the caller's unpaid registrations.

    The amount is the fee recorded on the registration, never a value
    supplied by the client.
    """
    s = PaymentIntentSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    reg = (
        Registration.objects.filter(pk=s.validated_data['registrationId'], participant=request.user)
        .exclude(confirmation_status=ConfirmationStatus.CANCELLED)
        .first()
    )
    if reg is None:
        raise RegistrationNotFound()
    if reg.payment_status == PaymentStatus.PAID:
        raise RegistrationAlreadyPaid()
    intent = create_payment_intent(reg.fee, metadata={'registrationId': reg.id, 'campId': reg.camp_id})
    return Response({
        'ok': True,
        'clientSecret': intent.client_secret,
        'paymentIntentId': intent.id,
        'amount': intent.amount,
        'currency': intent.currency,
    })

payment_intent.cls.throttle_scope = 'payment'

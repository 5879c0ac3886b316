from rest_framework import serializers


class EnumChoiceField(serializers.ChoiceField):
    """ChoiceField over a ``TextChoices`` enum, matched case-insensitively.

    ``'Paid'``, ``'PAID'`` and ``'paid'`` all become ``PaymentStatus.PAID``.
    """

    def __init__(self, enum, **kwargs):
        self.enum = enum
        super().__init__(choices=enum.choices, **kwargs)

    def to_internal_value(self, data):
        if isinstance(data, str):
            data = data.strip().lower()
        return self.enum(super().to_internal_value(data))

from rest_framework import serializers

PARTY_TYPE_CHOICES = [
    ('Miller', 'Miller'),
    ('Buyer', 'Buyer'),
    ('Expense', 'Expense'),
]

PHONE_PREFIX = '+92 '


def normalize_phone(value):
    """Phone numbers are stored with the ``+92 `` country prefix"""
    value = (value or '').strip()
    if not value or value == PHONE_PREFIX.strip():
        return ''
    if value.startswith(PHONE_PREFIX):
        return value
    if value.startswith('+92'):
        value = value[3:].lstrip()
    return f"{PHONE_PREFIX}{value}"


class PartySerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    type = serializers.ChoiceField(choices=PARTY_TYPE_CHOICES, default='Buyer')
    phone = serializers.CharField(max_length=30, required=False, allow_blank=True)
    address = serializers.CharField(required=False, allow_blank=True)

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Name is required')
        return value

    def validate_phone(self, value):
        return normalize_phone(value)


class LedgerEntrySerializer(serializers.Serializer):
    """Manual Khata Book line for one party"""
    date = serializers.DateField()
    particulars = serializers.CharField(max_length=500)
    debit = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0, default=0)
    credit = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0, default=0)
    billNo = serializers.CharField(required=False, allow_blank=True)
    katte = serializers.IntegerField(required=False, min_value=0)
    weight = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, min_value=0)
    rate = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, min_value=0)

    def validate(self, attrs):
        if not self.partial and not attrs.get('debit') and not attrs.get('credit'):
            raise serializers.ValidationError('Enter a debit or a credit amount')
        return attrs

    def to_payload(self):
        payload = {}
        for key, value in self.validated_data.items():
            if key == 'date':
                payload[key] = value.isoformat()
            elif key in ('debit', 'credit', 'weight', 'rate'):
                payload[key] = float(value)
            else:
                payload[key] = value
        return payload


class PartyPaymentSerializer(serializers.Serializer):
    """Payment received from a buyer or made to a miller/expense party"""
    date = serializers.DateField(required=False)
    amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=1)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    bill_id = serializers.CharField(required=False, allow_blank=True, default='')
    stock_id = serializers.CharField(required=False, allow_blank=True, default='')

    def validate(self, attrs):
        if attrs.get('bill_id') and attrs.get('stock_id'):
            raise serializers.ValidationError('Link the payment to a bill or a receipt, not both')
        return attrs

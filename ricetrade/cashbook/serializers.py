from decimal import Decimal
from rest_framework import serializers

CASH_TYPE_CHOICES = [
    ('in', 'Cash In'),
    ('out', 'Cash Out'),
]


class CashEntrySerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=CASH_TYPE_CHOICES)
    description = serializers.CharField(max_length=500)
    amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal('0.01'))
    bill_reference = serializers.CharField(required=False, allow_blank=True)
    date = serializers.DateField()

    def to_payload(self):
        """Inflows are credits, outflows are debits"""
        data = self.validated_data
        amount = float(data['amount'])
        payload = {
            'date': data['date'].isoformat(),
            'type': data['type'],
            'description': data['description'].strip(),
            'debit': amount if data['type'] == 'out' else 0,
            'credit': amount if data['type'] == 'in' else 0,
        }
        if data.get('bill_reference'):
            payload['billReference'] = data['bill_reference'].strip()
        return payload

from decimal import Decimal
from rest_framework import serializers

from ricetrade.core.calculations import RATE_TYPES, PER_KG, due_date, stock_totals

PAYMENT_TYPE_CHOICES = [
    ('cash', 'Cash'),
    ('credit', 'Credit'),
]


class StockSerializer(serializers.Serializer):
    """Purchase lot bought from a miller"""
    date = serializers.DateField()
    miller_id = serializers.CharField()
    item_name = serializers.CharField(max_length=200)
    katte = serializers.IntegerField(min_value=1)
    weight_per_katta = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0.01'))
    purchase_rate = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    bhardana_rate = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, default=0)
    rate_type = serializers.ChoiceField(choices=RATE_TYPES, default=PER_KG)
    payment_type = serializers.ChoiceField(choices=PAYMENT_TYPE_CHOICES, default='cash')
    due_days = serializers.IntegerField(min_value=0, required=False)
    receipt_number = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        if attrs.get('payment_type') == 'credit' and attrs.get('due_days') is None:
            raise serializers.ValidationError({'due_days': ['Credit purchases need due days']})
        return attrs

    def to_payload(self, miller):
        """Backend record for this lot, totals included"""
        data = self.validated_data
        totals = stock_totals(
            data['katte'], data['weight_per_katta'], data['purchase_rate'],
            data['rate_type'], data['bhardana_rate'],
        )
        payload = {
            'date': data['date'].isoformat(),
            'millerId': miller['id'],
            'millerName': miller.get('name'),
            'itemName': data['item_name'].strip(),
            'katte': data['katte'],
            'weightPerKatta': float(data['weight_per_katta']),
            'totalWeight': totals['totalWeight'],
            'purchaseRate': float(data['purchase_rate']),
            'rateType': data['rate_type'],
            'totalAmount': totals['totalAmount'],
            'bhardanaRate': float(data['bhardana_rate']),
            'bhardana': totals['bhardana'],
            'paymentType': data['payment_type'],
        }
        if data['payment_type'] == 'credit':
            payload['dueDays'] = data['due_days']
            payload['dueDate'] = due_date(data['date'], data['due_days'])
        if data.get('receipt_number'):
            payload['receiptNumber'] = data['receipt_number']
        return payload

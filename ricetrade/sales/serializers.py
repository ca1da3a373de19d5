from rest_framework import serializers

from ricetrade.core.calculations import RATE_TYPES, PER_KG, bill_totals, due_date

PAYMENT_TYPE_CHOICES = [
    ('cash', 'Cash'),
    ('credit', 'Credit'),
]


class BillSerializer(serializers.Serializer):
    """Sale of bags from one stock lot to a buyer"""
    buyer_id = serializers.CharField()
    stock_id = serializers.CharField()
    katte = serializers.IntegerField(min_value=1)
    rate = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    bhardana_rate = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, default=0)
    rate_type = serializers.ChoiceField(choices=RATE_TYPES, default=PER_KG)
    date = serializers.DateField(required=False)
    bill_no = serializers.CharField(required=False, allow_blank=True)
    payment_type = serializers.ChoiceField(choices=PAYMENT_TYPE_CHOICES, default='cash')
    due_days = serializers.IntegerField(min_value=0, required=False)

    def validate(self, attrs):
        if attrs.get('payment_type') == 'credit' and attrs.get('due_days') is None:
            raise serializers.ValidationError({'due_days': ['Credit sales need due days']})
        return attrs

    def totals(self, stock):
        data = self.validated_data
        return bill_totals(stock, data['katte'], data['rate'], data['rate_type'], data['bhardana_rate'])

    def to_payload(self, buyer, stock, bill_date):
        """Backend bill record; stock, ledger, cash and profit follow-ups happen server side"""
        data = self.validated_data
        totals = self.totals(stock)
        payload = {
            'buyerId': buyer['id'],
            'buyerName': buyer.get('name'),
            'millerId': stock.get('millerId'),
            'millerName': stock.get('millerName'),
            'date': bill_date,
            'itemName': stock.get('itemName'),
            'stockId': stock['id'],
            'katte': data['katte'],
            'weightPerKatta': totals['weightPerKatta'],
            'weight': totals['weight'],
            'rate': float(data['rate']),
            'rateType': data['rate_type'],
            'bhardanaRate': float(data['bhardana_rate']),
            'bhardana': totals['bhardana'],
            'totalAmount': totals['totalAmount'],
            'purchaseCost': totals['purchaseCost'],
            'profit': totals['profit'],
            'paymentType': data['payment_type'],
        }
        if data['payment_type'] == 'credit':
            payload['dueDays'] = data['due_days']
            payload['dueDate'] = due_date(bill_date, data['due_days'])
        if data.get('bill_no'):
            payload['billNumber'] = data['bill_no'].strip()
        return payload

from rest_framework import serializers


class DirectPaymentSerializer(serializers.Serializer):
    """Settle a single bill or purchase receipt straight from its row"""
    amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=1)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    date = serializers.DateField(required=False)

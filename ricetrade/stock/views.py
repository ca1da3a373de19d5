import logging
from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response
from decimal import Decimal

from ricetrade.core.calculations import (
    format_currency, outstanding, remaining_value, stock_status, to_decimal,
)
from ricetrade.core.data_store import data_store
from ricetrade.core.serializers import DirectPaymentSerializer
from ricetrade.core.utils import matches_search, newest_first, require, today_iso
from .serializers import StockSerializer

logger = logging.getLogger(__name__)


def stock_row(item):
    value = remaining_value(item)
    return {
        **item,
        'status': stock_status(item),
        'remainingValue': float(value),
        'outstanding': outstanding(item),
    }


def find_miller(miller_id):
    return next((m for m in data_store.get_millers() if m.get('id') == miller_id), None)


@api_view(['GET', 'POST'])
def stock_list_create(request):
    """List purchase lots with stock summary or add a new lot"""
    if request.method == 'GET':
        search = request.query_params.get('search', '')
        stock = data_store.get_stock()

        total_katte = sum(to_decimal(s.get('remainingKatte')) for s in stock)
        total_weight = sum(to_decimal(s.get('remainingWeight')) for s in stock)
        total_value = sum((remaining_value(s) for s in stock), Decimal('0'))

        filtered = [
            s for s in stock
            if matches_search(search, s.get('itemName'), s.get('millerName'))
        ]
        return Response({
            'summary': {
                'remainingKatte': float(total_katte),
                'remainingWeight': round(float(total_weight), 2),
                'remainingValue': float(total_value),
                'remainingValueDisplay': format_currency(total_value),
            },
            'results': [stock_row(s) for s in newest_first(filtered, 'date')],
        })
    else:
        serializer = StockSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        miller = find_miller(serializer.validated_data['miller_id'])
        if not miller:
            return Response({'miller_id': ['Select a miller']}, status=status.HTTP_400_BAD_REQUEST)
        item = data_store.add_stock(serializer.to_payload(miller))
        logger.info(f"Added stock {serializer.validated_data['item_name']} from {miller.get('name')}")
        return Response(item, status=status.HTTP_201_CREATED)


@api_view(['GET'])
def stock_available(request):
    """Lots that still have bags to sell"""
    results = [
        {
            'id': s['id'],
            'label': f"{s.get('itemName')} ({s.get('remainingKatte')} left)",
            'itemName': s.get('itemName'),
            'millerId': s.get('millerId'),
            'millerName': s.get('millerName'),
            'remainingKatte': s.get('remainingKatte'),
            'weightPerKatta': s.get('weightPerKatta'),
            'totalAmount': s.get('totalAmount'),
            'totalWeight': s.get('totalWeight'),
        }
        for s in data_store.get_available_stock()
    ]
    return Response(results)


@api_view(['GET', 'PUT', 'DELETE'])
def stock_detail(request, stock_id):
    """Purchase receipt, or edit/delete a lot"""
    item = require(data_store.get_stock_item(stock_id), 'Stock')

    if request.method == 'GET':
        return Response({
            'stock': stock_row(item),
            'ledger': data_store.get_stock_ledger(stock_id),
        })
    elif request.method == 'PUT':
        serializer = StockSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        miller = find_miller(serializer.validated_data['miller_id'])
        if not miller:
            return Response({'miller_id': ['Select a miller']}, status=status.HTTP_400_BAD_REQUEST)
        payload = serializer.to_payload(miller)
        # Remaining quantities are owned by the backend's sales bookkeeping
        payload['remainingKatte'] = item.get('remainingKatte')
        payload['remainingWeight'] = item.get('remainingWeight')
        updated = data_store.update_stock(stock_id, payload)
        return Response(updated)
    else:  # DELETE
        data_store.delete_stock(stock_id)
        logger.info(f"Deleted stock {item.get('itemName')} ({stock_id})")
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
def stock_payment(request, stock_id):
    """Pay the miller against one purchase receipt"""
    item = require(data_store.get_stock_item(stock_id), 'Stock')
    serializer = DirectPaymentSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    description = f"Payment to {item.get('millerName')} - {data['description'].strip() or 'Payment'}"
    entry = data_store.pay_miller(
        float(data['amount']),
        data['date'].isoformat() if data.get('date') else today_iso(),
        description,
        receipt_no=item.get('receiptNumber'),
    )
    return Response(entry, status=status.HTTP_201_CREATED)

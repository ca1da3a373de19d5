import logging
from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response

from ricetrade.core.calculations import format_currency, to_decimal
from ricetrade.core.data_store import data_store
from ricetrade.core.utils import matches_search, newest_first
from .serializers import CashEntrySerializer

logger = logging.getLogger(__name__)

CASH_TABS = ('all', 'in', 'out')


@api_view(['GET', 'POST'])
def cash_list_create(request):
    """Cash book with running totals, or record a new entry"""
    if request.method == 'GET':
        search = request.query_params.get('search', '')
        tab = request.query_params.get('tab', 'all')
        if tab not in CASH_TABS:
            return Response({'error': f'Unknown tab: {tab}'}, status=status.HTTP_400_BAD_REQUEST)

        entries = data_store.get_cash_entries()
        # Totals always cover the whole book, not the filtered view
        outflow = sum(to_decimal(e.get('debit')) for e in entries)
        inflow = sum(to_decimal(e.get('credit')) for e in entries)
        balance = entries[-1].get('balance', 0) if entries else 0

        filtered = [
            e for e in entries
            if matches_search(search, e.get('description'), e.get('billReference'))
            and (tab == 'all' or e.get('type') == tab)
        ]
        return Response({
            'tab': tab,
            'totals': {
                'balance': balance,
                'balanceDisplay': format_currency(balance),
                'inflow': float(inflow),
                'outflow': float(outflow),
            },
            'results': newest_first(filtered, 'date', 'createdAt'),
        })
    else:
        serializer = CashEntrySerializer(data=request.data)
        if serializer.is_valid():
            entry = data_store.add_cash_entry(serializer.to_payload())
            logger.info(f"Recorded cash {serializer.validated_data['type']} of {serializer.validated_data['amount']}")
            return Response(entry, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['PUT', 'DELETE'])
def cash_detail(request, entry_id):
    """Edit or delete a cash book entry"""
    if request.method == 'PUT':
        serializer = CashEntrySerializer(data=request.data)
        if serializer.is_valid():
            entry = data_store.update_cash_entry(entry_id, serializer.to_payload())
            return Response(entry)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        data_store.delete_cash_entry(entry_id)
        logger.info(f"Deleted cash entry {entry_id}")
        return Response(status=status.HTTP_204_NO_CONTENT)

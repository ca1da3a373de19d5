import logging
from urllib.parse import quote
from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response

from ricetrade.core.calculations import format_currency, outstanding
from ricetrade.core.data_store import data_store
from ricetrade.core.serializers import DirectPaymentSerializer
from ricetrade.core.utils import matches_search, newest_first, require, today_iso
from .serializers import BillSerializer

logger = logging.getLogger(__name__)

BILL_TABS = ('all', 'today')


def bill_row(bill):
    return {**bill, 'outstanding': outstanding(bill)}


def bill_link_no(bill):
    number = str(bill.get('billNumber') or '').strip()
    if not number:
        return None
    return number if number.startswith('B-') else f"B-{number}"


def whatsapp_message(bill):
    return (
        f"*INVOICE: {bill.get('billNumber')}*\n\n"
        f"Dear *{bill.get('buyerName')}*,\n"
        f"Your bill for *{bill.get('itemName')}* has been generated.\n\n"
        f"*Details:*\n"
        f"- Quantity: {bill.get('katte')} Katte\n"
        f"- Total Amount: {format_currency(bill.get('totalAmount'))}\n\n"
        f"Thank you for your business!"
    )


def resolve_sale(serializer, current_bill=None):
    """
    Look up the buyer and stock lot for a validated bill form.
    Returns ``(buyer, stock, errors)``; bags already on ``current_bill`` count
    as available again when it is edited against the same lot.
    """
    data = serializer.validated_data
    buyer = next((b for b in data_store.get_buyers() if b.get('id') == data['buyer_id']), None)
    if not buyer:
        return None, None, {'buyer_id': ['Select a buyer']}
    stock = data_store.get_stock_item(data['stock_id'])
    if not stock:
        return buyer, None, {'stock_id': ['Select a stock item']}

    available = stock.get('remainingKatte') or 0
    if current_bill and current_bill.get('stockId') == stock['id']:
        available += current_bill.get('katte') or 0
    if data['katte'] > available:
        return buyer, stock, {'katte': ['Insufficient stock']}
    return buyer, stock, None


@api_view(['GET', 'POST'])
def bill_list_create(request):
    """List sales bills or create a new bill"""
    if request.method == 'GET':
        search = request.query_params.get('search', '')
        tab = request.query_params.get('tab', 'all')
        if tab not in BILL_TABS:
            return Response({'error': f'Unknown tab: {tab}'}, status=status.HTTP_400_BAD_REQUEST)

        bills = [
            b for b in data_store.get_bills()
            if matches_search(search, b.get('billNumber'), b.get('buyerName'), b.get('itemName'))
        ]
        if tab == 'today':
            today = today_iso()
            bills = [b for b in bills if (b.get('date') or '')[:10] == today]
        return Response({
            'tab': tab,
            'results': [bill_row(b) for b in newest_first(bills, 'date', 'createdAt')],
        })
    else:
        serializer = BillSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        buyer, stock, errors = resolve_sale(serializer)
        if errors:
            return Response(errors, status=status.HTTP_400_BAD_REQUEST)

        bill_date = serializer.validated_data.get('date')
        payload = serializer.to_payload(buyer, stock, bill_date.isoformat() if bill_date else today_iso())
        bill = data_store.add_bill(payload)
        logger.info(f"Created bill for {buyer.get('name')}: {payload['katte']} katte of {payload['itemName']}")
        return Response(bill, status=status.HTTP_201_CREATED)


@api_view(['POST'])
def bill_preview(request):
    """Totals for a candidate bill without saving it"""
    serializer = BillSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    stock = require(data_store.get_stock_item(serializer.validated_data['stock_id']), 'Stock')
    totals = serializer.totals(stock)
    totals['totalAmountDisplay'] = format_currency(totals['totalAmount'])
    totals['remainingKatte'] = stock.get('remainingKatte')
    return Response(totals)


@api_view(['GET'])
def bill_next_number(request):
    return Response({'nextNumber': data_store.get_next_bill_number()})


@api_view(['GET', 'PUT', 'DELETE'])
def bill_detail(request, bill_id):
    """Bill view with its ledger lines, or edit/delete a bill"""
    bill = require(data_store.get_bill(bill_id), 'Bill')

    if request.method == 'GET':
        return Response({
            'bill': bill_row(bill),
            'ledger': data_store.get_bill_ledger(bill_id),
        })
    elif request.method == 'PUT':
        serializer = BillSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        buyer, stock, errors = resolve_sale(serializer, current_bill=bill)
        if errors:
            return Response(errors, status=status.HTTP_400_BAD_REQUEST)

        bill_date = serializer.validated_data.get('date')
        payload = serializer.to_payload(buyer, stock, bill_date.isoformat() if bill_date else bill.get('date'))
        payload.setdefault('billNumber', bill.get('billNumber'))
        updated = data_store.update_bill(bill_id, payload)
        return Response(updated)
    else:  # DELETE
        data_store.delete_bill(bill_id)
        logger.info(f"Deleted bill {bill.get('billNumber')} ({bill_id})")
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
def bill_payment(request, bill_id):
    """Receive money from the buyer against this bill"""
    bill = require(data_store.get_bill(bill_id), 'Bill')
    serializer = DirectPaymentSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    description = f"Received from {bill.get('buyerName')} - {data['description'].strip() or 'Payment'}"
    entry = data_store.receive_from_buyer(
        float(data['amount']),
        data['date'].isoformat() if data.get('date') else today_iso(),
        description,
        bill_no=bill_link_no(bill),
        bill_id=bill_id,
    )
    return Response(entry, status=status.HTTP_201_CREATED)


@api_view(['GET'])
def bill_share(request, bill_id):
    """WhatsApp link that sends the invoice summary to the buyer"""
    bill = require(data_store.get_bill(bill_id), 'Bill')
    buyer = data_store.get_party(bill.get('buyerId')) or {}
    phone = ''.join(ch for ch in (buyer.get('phone') or '') if ch.isdigit())
    message = whatsapp_message(bill)
    return Response({
        'phone': phone,
        'message': message,
        'url': f"https://wa.me/{phone}?text={quote(message)}",
    })

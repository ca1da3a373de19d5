import logging
from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response
from django.conf import settings

from ricetrade.core.calculations import format_currency, outstanding, to_decimal
from ricetrade.core.data_store import data_store
from ricetrade.core.exceptions import BackendAPIError, BackendUnavailable
from ricetrade.core.utils import matches_search, newest_first, require, today_iso
from .serializers import PartySerializer, LedgerEntrySerializer, PartyPaymentSerializer

logger = logging.getLogger(__name__)

PARTY_TABS = {
    'all': None,
    'buyers': 'Buyer',
    'millers': 'Miller',
    'expenses': 'Expense',
}


def party_sort_key(party):
    """Home and office accounts first, then alphabetical"""
    name = (party.get('name') or '').lower()
    pinned = 'home' in name or 'office' in name
    return (0 if pinned else 1, name)


def balance_label(party, balance):
    party_type = party.get('type')
    if party_type == 'Buyer' and balance > 0:
        return 'Due to Us'
    if party_type == 'Miller' and balance > 0:
        return 'Our Liability'
    if party_type == 'Expense':
        return 'Net Spend'
    return 'Current Status'


def annotate_party(party, balance):
    return {
        **party,
        'balance': balance,
        'balanceLabel': balance_label(party, balance),
        'balanceDisplay': format_currency(abs(balance)),
        'isSettled': balance == 0,
    }


def open_items_for(party):
    """Unpaid bills and purchase receipts a payment can be linked to"""
    party_id = party['id']
    party_type = party.get('type')
    bills = []
    receipts = []
    if party_type == 'Buyer':
        bills = [b for b in data_store.get_bills() if b.get('buyerId') == party_id and b.get('status') != 'paid']
    elif party_type == 'Miller':
        receipts = [s for s in data_store.get_stock() if s.get('millerId') == party_id and s.get('status') != 'paid']
        bills = [b for b in data_store.get_bills() if b.get('millerId') == party_id and b.get('status') != 'paid']
    for record in bills + receipts:
        record['outstanding'] = outstanding(record)
    return {'bills': bills, 'receipts': receipts}


@api_view(['GET', 'POST'])
def party_list_create(request):
    """List parties with their Khata balances or create a new party"""
    if request.method == 'GET':
        search = request.query_params.get('search', '')
        tab = request.query_params.get('tab', 'all')
        if tab not in PARTY_TABS:
            return Response({'error': f'Unknown tab: {tab}'}, status=status.HTTP_400_BAD_REQUEST)

        balances = data_store.get_party_balances()
        parties = [
            p for p in data_store.get_parties()
            if p.get('id') not in settings.HIDDEN_PARTY_IDS and matches_search(search, p.get('name'))
        ]
        parties.sort(key=party_sort_key)

        counts = {name: 0 for name in PARTY_TABS}
        counts['all'] = len(parties)
        for name, party_type in PARTY_TABS.items():
            if party_type:
                counts[name] = sum(1 for p in parties if p.get('type') == party_type)

        wanted = PARTY_TABS[tab]
        results = [
            annotate_party(p, balances.get(p['id'], 0))
            for p in parties if wanted is None or p.get('type') == wanted
        ]
        return Response({'tab': tab, 'counts': counts, 'results': results})
    else:
        serializer = PartySerializer(data=request.data)
        if serializer.is_valid():
            party = data_store.add_party(serializer.validated_data)
            logger.info(f"Created {serializer.validated_data['type']} party {serializer.validated_data['name']}")
            return Response(party, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'DELETE'])
def party_detail(request, party_id):
    """Party statement, or update/delete a party"""
    party = require(data_store.get_party(party_id), 'Party')

    if request.method == 'GET':
        entries = data_store.get_party_ledger(party_id)
        current_balance = entries[-1].get('balance', 0) if entries else 0
        gross = sum(to_decimal(e.get('debit')) for e in entries)
        settled = sum(to_decimal(e.get('credit')) for e in entries)
        for entry in entries:
            # Bill-linked lines are maintained through the bill itself
            entry['editable'] = not entry.get('billId')
        return Response({
            'party': party,
            'summary': {
                'grossLabel': f"Gross {'Dispatch' if party.get('type') == 'Buyer' else 'Sourcing'}",
                'gross': float(gross),
                'settled': float(settled),
                'currentBalance': current_balance,
                'currentBalanceDisplay': format_currency(current_balance),
            },
            'entries': newest_first(entries, 'date'),
        })
    elif request.method == 'PUT':
        serializer = PartySerializer(data=request.data, partial=True)
        if serializer.is_valid():
            updated = data_store.update_party(party_id, serializer.validated_data)
            return Response(updated)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        data_store.delete_party(party_id)
        logger.info(f"Deleted party {party.get('name')} ({party_id})")
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
def party_payments(request, party_id):
    """Open bills/receipts for the payment form, or record a payment"""
    party = require(data_store.get_party(party_id), 'Party')
    open_items = open_items_for(party)

    if request.method == 'GET':
        return Response(open_items)

    serializer = PartyPaymentSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    bill_id = data['bill_id']
    stock_id = data['stock_id']
    if bill_id and not any(b['id'] == bill_id for b in open_items['bills']):
        return Response({'bill_id': ['Bill is not open for this party']}, status=status.HTTP_400_BAD_REQUEST)
    if stock_id and not any(s['id'] == stock_id for s in open_items['receipts']):
        return Response({'stock_id': ['Receipt is not open for this party']}, status=status.HTTP_400_BAD_REQUEST)

    amount = float(data['amount'])
    entry_date = data['date'].isoformat() if data.get('date') else today_iso()
    description = data['description'].strip()
    name = party.get('name')

    if party.get('type') == 'Buyer':
        particulars = description or f"Payment Received{' for Bill' if bill_id else ''}"
        ledger_entry = {
            'partyId': party_id, 'date': entry_date, 'particulars': particulars,
            'debit': 0, 'credit': amount,
        }
        cash_entry = {
            'date': entry_date, 'type': 'in',
            'description': f"Received from {name}{f' - {description}' if description else ''}",
            'debit': 0, 'credit': amount,
        }
    else:
        suffix = ' for Bill' if bill_id else ' for Receipt' if stock_id else ''
        particulars = description or f"Payment Made{suffix}"
        ledger_entry = {
            'partyId': party_id, 'date': entry_date, 'particulars': particulars,
            'debit': 0, 'credit': amount,
        }
        if stock_id:
            ledger_entry['stockId'] = stock_id
        cash_entry = {
            'date': entry_date, 'type': 'out',
            'description': f"Payment to {name}{f' - {description}' if description else ''}",
            'debit': amount, 'credit': 0,
        }
    if bill_id:
        ledger_entry['billId'] = bill_id
        cash_entry['billId'] = bill_id

    ledger = data_store.add_ledger_entry(ledger_entry)
    try:
        cash = data_store.add_cash_entry(cash_entry)
    except (BackendAPIError, BackendUnavailable):
        # The ledger line is already saved and has no cash counterpart
        logger.error(
            f"Cash entry failed for party {name} ({party_id}); "
            f"ledger entry {(ledger or {}).get('id')} was recorded without it"
        )
        raise
    logger.info(f"Recorded payment of {amount} for party {name} ({party_id})")
    return Response({'ledgerEntry': ledger, 'cashEntry': cash}, status=status.HTTP_201_CREATED)


@api_view(['POST'])
def party_ledger_create(request, party_id):
    """Add a manual Khata line for a party"""
    party = require(data_store.get_party(party_id), 'Party')
    serializer = LedgerEntrySerializer(data=request.data)
    if serializer.is_valid():
        payload = serializer.to_payload()
        payload.update({
            'partyId': party_id,
            'partyName': party.get('name'),
            'partyType': party.get('type'),
        })
        entry = data_store.add_ledger_entry(payload)
        return Response(entry, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['PUT', 'DELETE'])
def party_ledger_detail(request, party_id, entry_id):
    """Edit or delete a manual Khata line"""
    require(data_store.get_party(party_id), 'Party')
    entries = data_store.get_party_ledger(party_id)
    entry = require(next((e for e in entries if e.get('id') == entry_id), None), 'Ledger entry')
    if entry.get('billId'):
        return Response(
            {'error': 'Entries created by a bill can only be changed through the bill'},
            status=status.HTTP_400_BAD_REQUEST,
        )

    if request.method == 'PUT':
        serializer = LedgerEntrySerializer(data=request.data)
        if serializer.is_valid():
            updated = data_store.update_ledger_entry(entry_id, serializer.to_payload())
            return Response(updated)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        data_store.delete_ledger_entry(entry_id)
        return Response(status=status.HTTP_204_NO_CONTENT)

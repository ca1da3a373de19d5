from decimal import Decimal
from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response

from ricetrade.core.calculations import format_currency, format_weight, to_decimal
from ricetrade.core.data_store import data_store
from ricetrade.core.utils import matches_search, newest_first

RECENT_LIMIT = 5
PROFIT_VIEWS = ('bills', 'buyers', 'items', 'monthly')


def margin(profit, sales):
    """Profit as a percentage of sales, 0 when nothing was sold"""
    sales = to_decimal(sales)
    if sales <= 0:
        return 0.0
    return round(float(to_decimal(profit) / sales * 100), 2)


@api_view(['GET'])
def dashboard(request):
    """Dashboard summary cards with recent bills and cash entries"""
    summary = data_store.get_dashboard_summary()

    def money(key):
        return format_currency(summary.get(key), decimals=2)

    # Backend lists are oldest first
    recent_bills = data_store.get_bills()[-RECENT_LIMIT:][::-1]
    recent_cash = data_store.get_cash_entries()[-RECENT_LIMIT:][::-1]

    return Response({
        'summary': summary,
        'display': {
            'stock': f"{summary.get('totalStockKatte', 0)} Katte",
            'stockWeight': format_weight(summary.get('totalStockWeight')),
            'cashBalance': money('cashBalance'),
            'totalReceivable': money('totalReceivable'),
            'totalPayable': money('totalPayable'),
            'totalProfit': money('totalProfit'),
        },
        'recentBills': recent_bills,
        'recentCash': recent_cash,
    })


@api_view(['GET'])
def profit_report(request):
    """
    Profit report built from the backend's profit rows.

    Query params:
    - view: bills | buyers | items | monthly (default bills)
    - search: buyer name or bill number for bills, buyer name for buyers,
      item name for items
    """
    view = request.query_params.get('view', 'bills')
    search = request.query_params.get('search', '')
    if view not in PROFIT_VIEWS:
        return Response({'error': f'Unknown view: {view}'}, status=status.HTTP_400_BAD_REQUEST)

    entries = data_store.get_profit_entries()

    total_profit = sum((to_decimal(p.get('profit')) for p in entries), Decimal('0'))
    total_sales = sum((to_decimal(p.get('sellingAmount')) for p in entries), Decimal('0'))
    total_cost = sum((to_decimal(p.get('purchaseCost')) for p in entries), Decimal('0'))
    totals = {
        'profit': float(total_profit),
        'sales': float(total_sales),
        'cost': float(total_cost),
        'margin': margin(total_profit, total_sales),
        'bills': len(entries),
    }

    if view == 'bills':
        results = [
            {**p, 'margin': margin(p.get('profit'), p.get('sellingAmount'))}
            for p in newest_first(entries, 'date', 'createdAt')
            if matches_search(search, p.get('buyerName'), p.get('billNumber'))
        ]
    elif view == 'buyers':
        groups = {}
        for p in entries:
            group = groups.setdefault(p.get('buyerId'), {
                'buyerId': p.get('buyerId'), 'buyerName': p.get('buyerName'),
                'profit': Decimal('0'), 'sales': Decimal('0'), 'bills': 0,
            })
            group['profit'] += to_decimal(p.get('profit'))
            group['sales'] += to_decimal(p.get('sellingAmount'))
            group['bills'] += 1
        # Whole-buyer totals; the search narrows buyers, not their bills
        results = sorted(
            (g for g in groups.values() if matches_search(search, g['buyerName'])),
            key=lambda g: g['profit'], reverse=True,
        )
    elif view == 'items':
        groups = {}
        for p in entries:
            if not matches_search(search, p.get('itemName')):
                continue
            group = groups.setdefault(p.get('itemName'), {
                'itemName': p.get('itemName'),
                'profit': Decimal('0'), 'sales': Decimal('0'), 'katte': 0,
            })
            group['profit'] += to_decimal(p.get('profit'))
            group['sales'] += to_decimal(p.get('sellingAmount'))
            group['katte'] += p.get('katte') or 0
        results = sorted(groups.values(), key=lambda g: g['profit'], reverse=True)
    else:  # monthly
        groups = {}
        for p in entries:
            month = (p.get('date') or '')[:7]
            group = groups.setdefault(month, {
                'month': month, 'profit': Decimal('0'), 'sales': Decimal('0'), 'bills': 0,
            })
            group['profit'] += to_decimal(p.get('profit'))
            group['sales'] += to_decimal(p.get('sellingAmount'))
            group['bills'] += 1
        results = sorted(groups.values(), key=lambda g: g['month'], reverse=True)

    if view != 'bills':
        for group in results:
            group['margin'] = margin(group['profit'], group['sales'])
            group['profit'] = float(group['profit'])
            group['sales'] = float(group['sales'])

    return Response({'view': view, 'totals': totals, 'results': results})

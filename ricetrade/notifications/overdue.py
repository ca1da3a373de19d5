"""
Overdue receivables and payables.

A credit bill or purchase that is not fully paid becomes overdue the day
after its due date. Each overdue record raises one alert the first time it
is seen; the ids already alerted are kept in the cache.
"""
import logging
from django.core.cache import cache

from ricetrade.core.calculations import format_currency, outstanding, parse_date
from ricetrade.core.data_store import data_store

logger = logging.getLogger(__name__)

NOTIFIED_IDS_KEY = 'notifications:notified_ids'
GROUP_THRESHOLD = 3


def is_overdue(record, today):
    if record.get('status') == 'paid' or not record.get('dueDate'):
        return False
    due = parse_date(record['dueDate'])
    return due is not None and due < today


def collect_overdue(bills, stock, today):
    """Overdue bills (sale) followed by overdue purchases (purchase)"""
    items = [
        {
            'id': b['id'],
            'title': b.get('billNumber'),
            'party': b.get('buyerName'),
            'amount': outstanding(b),
            'date': b.get('dueDate'),
            'type': 'sale',
        }
        for b in bills if is_overdue(b, today)
    ]
    items += [
        {
            'id': s['id'],
            'title': s.get('receiptNumber'),
            'party': s.get('millerName'),
            'amount': outstanding(s),
            'date': s.get('dueDate'),
            'type': 'purchase',
        }
        for s in stock if is_overdue(s, today)
    ]
    return items


def alert_for(item):
    if item['type'] == 'sale':
        return {
            'title': f"Overdue: {item['title']}",
            'description': f"{item['party']} owes {format_currency(item['amount'])}",
        }
    return {
        'title': f"Overdue: Payment to {item['party']}",
        'description': f"{format_currency(item['amount'])} is due (#{item['title']})",
    }


def build_alerts(items, notified_ids):
    """
    Alerts for the items not in ``notified_ids``.

    More than ``GROUP_THRESHOLD`` new items collapse into a single alert.
    Returns ``(alerts, new_ids)``.
    """
    new_items = [item for item in items if item['id'] not in notified_ids]
    new_ids = [item['id'] for item in new_items]
    if len(new_items) > GROUP_THRESHOLD:
        return [{
            'title': f"Multiple Overdue Payments ({len(new_items)})",
            'description': 'Please check the notification bell for details.',
        }], new_ids
    return [alert_for(item) for item in new_items], new_ids


def check_overdue(today):
    """Load bills and stock, work out overdue items and any new alerts"""
    items = collect_overdue(data_store.get_bills(), data_store.get_stock(), today)
    notified = set(cache.get(NOTIFIED_IDS_KEY) or [])
    alerts, new_ids = build_alerts(items, notified)
    # Only ids that are still overdue stay remembered
    still_notified = notified.intersection(item['id'] for item in items).union(new_ids)
    if still_notified != notified:
        cache.set(NOTIFIED_IDS_KEY, sorted(still_notified), None)
    if new_ids:
        logger.info(f"{len(new_ids)} new overdue item(s)")
    return {'count': len(items), 'items': items, 'alerts': alerts}

"""Shared helpers for shaping backend lists into screen data"""
from django.utils import timezone
from rest_framework.exceptions import NotFound


def today_iso():
    return timezone.localdate().isoformat()


def matches_search(search, *values):
    """Case-insensitive substring match against any of ``values``"""
    if not search:
        return True
    needle = search.lower()
    return any(needle in (value or '').lower() for value in values)


def newest_first(items, *keys):
    """
    Sort records by the given keys, newest first.
    Dates are ISO strings, so string order is date order.
    """
    return sorted(items, key=lambda item: tuple(str(item.get(k) or '') for k in keys), reverse=True)


def require(record, label):
    """Raise a 404 when a lookup in a backend list came back empty"""
    if record is None:
        raise NotFound(f'{label} not found')
    return record

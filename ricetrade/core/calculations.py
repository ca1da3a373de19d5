"""
Invoice and purchase arithmetic plus display helpers.
Amounts are computed with Decimal and handed back as floats for JSON.
"""
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from django.conf import settings

PER_KG = 'per_kg'
PER_KATTA = 'per_katta'
RATE_TYPES = [
    (PER_KG, 'Per Kg'),
    (PER_KATTA, 'Per Katta'),
]


def to_decimal(value):
    """Decimal from API/form values; blanks and junk count as zero"""
    if value is None or value == '':
        return Decimal('0')
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal('0')


def rate_amount(katte, weight, rate, rate_type):
    """Amount before bhardana: by weight for per-kg rates, by bag otherwise"""
    if rate_type == PER_KG:
        return to_decimal(weight) * to_decimal(rate)
    return to_decimal(katte) * to_decimal(rate)


def stock_totals(katte, weight_per_katta, purchase_rate, rate_type, bhardana_rate=0):
    """Totals for a purchase lot"""
    katte = to_decimal(katte)
    total_weight = katte * to_decimal(weight_per_katta)
    bhardana = katte * to_decimal(bhardana_rate)
    total_amount = rate_amount(katte, total_weight, purchase_rate, rate_type) + bhardana
    return {
        'totalWeight': float(total_weight),
        'bhardana': float(bhardana),
        'totalAmount': float(total_amount),
    }


def cost_per_kg(stock):
    total_weight = to_decimal(stock.get('totalWeight'))
    if total_weight == 0:
        return Decimal('0')
    return to_decimal(stock.get('totalAmount')) / total_weight


def bill_totals(stock, katte, rate, rate_type, bhardana_rate=0):
    """
    Totals for selling ``katte`` bags out of a stock lot.

    Purchase cost is the lot's average cost per kg times the weight sold, and
    profit is what remains of the bill total after that cost.
    """
    katte = to_decimal(katte)
    weight_per_katta = to_decimal(stock.get('weightPerKatta'))
    weight = katte * weight_per_katta
    bhardana = katte * to_decimal(bhardana_rate)
    total_amount = rate_amount(katte, weight, rate, rate_type) + bhardana
    purchase_cost = weight * cost_per_kg(stock)
    profit = total_amount - purchase_cost
    return {
        'weightPerKatta': float(weight_per_katta),
        'weight': float(weight),
        'bhardana': float(bhardana),
        'totalAmount': float(total_amount),
        'purchaseCost': float(purchase_cost),
        'profit': float(profit),
    }


def stock_status(item):
    remaining = to_decimal(item.get('remainingKatte'))
    if remaining == 0:
        return 'Sold Out'
    if remaining < to_decimal(item.get('katte')) * Decimal(str(settings.LOW_STOCK_RATIO)):
        return 'Low'
    return 'Available'


def remaining_value(item):
    """Purchase value of the bags still in a lot"""
    katte = to_decimal(item.get('katte'))
    if katte == 0:
        return Decimal('0')
    return to_decimal(item.get('remainingKatte')) * to_decimal(item.get('totalAmount')) / katte


def outstanding(record):
    """Unpaid part of a bill or purchase receipt"""
    return float(to_decimal(record.get('totalAmount')) - to_decimal(record.get('paidAmount')))


def due_date(entry_date, due_days):
    """ISO due date ``due_days`` after ``entry_date``"""
    if isinstance(entry_date, str):
        entry_date = datetime.strptime(entry_date[:10], '%Y-%m-%d').date()
    return (entry_date + timedelta(days=int(due_days))).isoformat()


def parse_date(value):
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value)[:10], '%Y-%m-%d').date()
    except (TypeError, ValueError):
        return None


def format_currency(amount, decimals=0):
    """``RS 12,345`` style amounts"""
    value = round(float(amount or 0), decimals)
    if decimals == 0:
        return f"RS {value:,.0f}"
    text = f"{value:,.{decimals}f}".rstrip('0').rstrip('.')
    return f"RS {text}"


def format_weight(kg):
    kg = float(kg or 0)
    if kg >= 1000:
        return f"{kg / 1000:.2f} MT"
    return f"{kg:.0f} kg"

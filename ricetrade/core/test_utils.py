"""
Test utilities and factories for creating trading backend records
"""
from unittest import mock
from rest_framework.test import APIClient
from django.core.cache import cache
import random
import string


class TestDataFactory:
    """
    Factory class for backend records as the views receive them
    (already passed through ``map_id``, so they carry ``id``).
    """
    __test__ = False

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def new_id():
        return TestDataFactory.random_string(24).lower()

    @staticmethod
    def as_backend(record):
        """The same record the way the trading backend sends it (``_id``)"""
        data = {key: value for key, value in record.items() if key != 'id'}
        data['_id'] = record['id']
        return data

    @staticmethod
    def create_party(name=None, party_type='Buyer', phone='+92 3001234567', **extra):
        """Create a test party"""
        if not name:
            name = f'Party_{TestDataFactory.random_string(6)}'
        return {
            'id': TestDataFactory.new_id(),
            'name': name,
            'type': party_type,
            'phone': phone,
            'address': 'Grain Market',
            **extra,
        }

    @staticmethod
    def create_stock(miller=None, katte=100, remaining_katte=None, weight_per_katta=50,
                     purchase_rate=100, rate_type='per_kg', date='2024-05-01', **extra):
        """Create a test stock lot; totals follow the per-kg/per-katta rule"""
        if miller is None:
            miller = TestDataFactory.create_party(party_type='Miller')
        total_weight = katte * weight_per_katta
        if rate_type == 'per_kg':
            total_amount = total_weight * purchase_rate
        else:
            total_amount = katte * purchase_rate
        return {
            'id': TestDataFactory.new_id(),
            'date': date,
            'millerId': miller['id'],
            'millerName': miller['name'],
            'itemName': extra.pop('item_name', 'Super Kernel'),
            'katte': katte,
            'remainingKatte': katte if remaining_katte is None else remaining_katte,
            'weightPerKatta': weight_per_katta,
            'totalWeight': total_weight,
            'remainingWeight': (katte if remaining_katte is None else remaining_katte) * weight_per_katta,
            'purchaseRate': purchase_rate,
            'rateType': rate_type,
            'totalAmount': total_amount,
            'paidAmount': 0,
            'status': 'unpaid',
            'receiptNumber': f'S-{random.randint(1, 999)}',
            **extra,
        }

    @staticmethod
    def create_bill(buyer=None, stock=None, katte=10, rate=120, date='2024-05-02', **extra):
        """Create a test bill sold out of ``stock``"""
        if buyer is None:
            buyer = TestDataFactory.create_party(party_type='Buyer')
        if stock is None:
            stock = TestDataFactory.create_stock()
        weight = katte * stock['weightPerKatta']
        total_amount = weight * rate
        purchase_cost = weight * stock['totalAmount'] / stock['totalWeight']
        return {
            'id': TestDataFactory.new_id(),
            'billNumber': f'B-{random.randint(1, 999)}',
            'date': date,
            'buyerId': buyer['id'],
            'buyerName': buyer['name'],
            'millerId': stock['millerId'],
            'millerName': stock['millerName'],
            'itemName': stock['itemName'],
            'stockId': stock['id'],
            'katte': katte,
            'weightPerKatta': stock['weightPerKatta'],
            'weight': weight,
            'rate': rate,
            'rateType': 'per_kg',
            'totalAmount': total_amount,
            'purchaseCost': purchase_cost,
            'profit': total_amount - purchase_cost,
            'paidAmount': 0,
            'status': 'unpaid',
            'createdAt': f'{date}T10:00:00.000Z',
            **extra,
        }

    @staticmethod
    def create_cash_entry(entry_type='in', amount=1000, balance=1000, date='2024-05-03', **extra):
        """Create a test cash book entry"""
        return {
            'id': TestDataFactory.new_id(),
            'date': date,
            'type': entry_type,
            'description': extra.pop('description', f'Cash {entry_type}'),
            'debit': amount if entry_type == 'out' else 0,
            'credit': amount if entry_type == 'in' else 0,
            'balance': balance,
            'createdAt': f'{date}T09:00:00.000Z',
            **extra,
        }

    @staticmethod
    def create_ledger_entry(party, debit=0, credit=0, balance=0, date='2024-05-03', **extra):
        """Create a test Khata line for ``party``"""
        return {
            'id': TestDataFactory.new_id(),
            'partyId': party['id'],
            'date': date,
            'particulars': extra.pop('particulars', 'Opening balance'),
            'debit': debit,
            'credit': credit,
            'balance': balance,
            **extra,
        }

    @staticmethod
    def create_profit_entry(bill, **extra):
        """Create a test profit row for ``bill``"""
        return {
            'id': TestDataFactory.new_id(),
            'billId': bill['id'],
            'billNumber': bill['billNumber'],
            'date': bill['date'],
            'buyerId': bill['buyerId'],
            'buyerName': bill['buyerName'],
            'itemName': bill['itemName'],
            'katte': bill['katte'],
            'totalWeight': bill['weight'],
            'sellingAmount': bill['totalAmount'],
            'purchaseCost': bill['purchaseCost'],
            'profit': bill['profit'],
            'createdAt': bill['createdAt'],
            **extra,
        }


class BackendTestCaseMixin:
    """
    Replaces the data store a views module uses with a mock.

    Set ``data_store_path`` to the dotted path of the ``data_store`` name to
    replace, e.g. ``'ricetrade.stock.views.data_store'``.
    """
    data_store_path = None

    def setUp(self):
        super().setUp()
        cache.clear()
        self.client = APIClient()
        patcher = mock.patch(self.data_store_path)
        self.store = patcher.start()
        self.addCleanup(patcher.stop)

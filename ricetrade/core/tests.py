"""
Tests for the trading backend client, cached reads, the data store and the
local bill/purchase arithmetic
"""
from io import StringIO
from unittest import mock, skipUnless
from decimal import Decimal
from django.conf import settings
from django.core.cache import cache
from django.core.management import call_command
from django.test import TestCase, override_settings
import requests

from ricetrade.core.api_client import TradingAPIClient, map_id
from ricetrade.core.cache_utils import GENERATION_KEY, cached_read, invalidate_backend_reads
from ricetrade.core.calculations import (
    bill_totals, due_date, format_currency, format_weight, outstanding,
    remaining_value, stock_status, stock_totals,
)
from ricetrade.core.data_store import DataStore, bill_link_ref, stock_link_ref
from ricetrade.core.exceptions import BackendAPIError, BackendUnavailable
from ricetrade.core.test_utils import TestDataFactory


def fake_response(status_code=200, json_data=None, content=b'{}', reason='OK', text=''):
    response = mock.MagicMock()
    response.ok = status_code < 400
    response.status_code = status_code
    response.reason = reason
    response.content = content
    response.text = text
    response.json.return_value = json_data
    return response


class MapIdTests(TestCase):
    """Test the _id to id rename"""

    def test_dict_with_id(self):
        self.assertEqual(map_id({'_id': 'abc', 'name': 'Ali'}), {'id': 'abc', 'name': 'Ali'})

    def test_list_is_mapped_elementwise(self):
        result = map_id([{'_id': '1'}, {'_id': '2', 'katte': 5}])
        self.assertEqual(result, [{'id': '1'}, {'id': '2', 'katte': 5}])

    def test_values_without_id_are_unchanged(self):
        self.assertIsNone(map_id(None))
        self.assertEqual(map_id([]), [])
        self.assertEqual(map_id({'name': 'x'}), {'name': 'x'})
        self.assertEqual(map_id(5), 5)

    def test_nested_objects_are_not_rewritten(self):
        result = map_id({'_id': '1', 'miller': {'_id': '2'}})
        self.assertEqual(result, {'id': '1', 'miller': {'_id': '2'}})


@override_settings(TRADING_API_URL='http://backend.test/api', TRADING_API_TIMEOUT=5)
class TradingAPIClientTests(TestCase):
    """Test the JSON HTTP wrapper"""

    def setUp(self):
        self.client_api = TradingAPIClient()

    def test_session_sends_no_cache_headers(self):
        headers = self.client_api.session.headers
        self.assertEqual(headers['Content-Type'], 'application/json')
        self.assertEqual(headers['Cache-Control'], 'no-cache, no-store, must-revalidate')
        self.assertEqual(headers['Pragma'], 'no-cache')
        self.assertEqual(headers['Expires'], '0')

    @mock.patch('requests.Session.request')
    def test_get_returns_decoded_json(self, mock_request):
        mock_request.return_value = fake_response(json_data=[{'_id': '1'}])
        self.assertEqual(self.client_api.get('/parties'), [{'_id': '1'}])
        mock_request.assert_called_once_with(
            'GET', 'http://backend.test/api/parties', json=None, timeout=5,
        )

    @mock.patch('requests.Session.request')
    def test_post_sends_json_body(self, mock_request):
        mock_request.return_value = fake_response(json_data={'_id': '9'})
        self.client_api.post('/cash', {'type': 'in'})
        self.assertEqual(mock_request.call_args.kwargs['json'], {'type': 'in'})

    @mock.patch('requests.Session.request')
    def test_empty_body_returns_none(self, mock_request):
        mock_request.return_value = fake_response(status_code=204, content=b'')
        self.assertIsNone(self.client_api.delete('/stock/1'))

    @mock.patch('requests.Session.request')
    def test_client_error_is_mirrored(self, mock_request):
        mock_request.return_value = fake_response(
            status_code=404, reason='Not Found', text='{"message":"Bill not found"}',
        )
        with self.assertRaises(BackendAPIError) as ctx:
            self.client_api.get('/bills/nope')
        self.assertEqual(ctx.exception.status_code, 404)
        self.assertEqual(ctx.exception.backend_status, 404)
        self.assertEqual(
            str(ctx.exception.detail),
            'API Error: 404 Not Found - {"message":"Bill not found"}',
        )

    @mock.patch('requests.Session.request')
    def test_server_error_becomes_bad_gateway(self, mock_request):
        mock_request.return_value = fake_response(status_code=500, reason='Internal Server Error', text='boom')
        with self.assertRaises(BackendAPIError) as ctx:
            self.client_api.get('/stock')
        self.assertEqual(ctx.exception.status_code, 502)
        self.assertEqual(ctx.exception.body, 'boom')

    @mock.patch('requests.Session.request')
    def test_transport_error_raises_unavailable(self, mock_request):
        mock_request.side_effect = requests.ConnectionError('refused')
        with self.assertRaises(BackendUnavailable) as ctx:
            self.client_api.get('/stock')
        self.assertEqual(ctx.exception.status_code, 503)

    @mock.patch('requests.Session.request')
    def test_invalid_json_raises(self, mock_request):
        response = fake_response(content=b'<html>')
        response.json.side_effect = ValueError('no json')
        mock_request.return_value = response
        with self.assertRaises(BackendAPIError):
            self.client_api.get('/stock')


class Counter:
    def __init__(self):
        self.calls = 0

    @cached_read('counter')
    def read(self, key='a'):
        self.calls += 1
        return {'key': key, 'calls': self.calls}


class CachedReadTests(TestCase):
    """Test generation-based memoisation of backend reads"""

    def setUp(self):
        cache.clear()

    @override_settings(TRADING_API_CACHE_TTL=30)
    def test_second_read_is_served_from_cache(self):
        counter = Counter()
        counter.read()
        counter.read()
        self.assertEqual(counter.calls, 1)

    @override_settings(TRADING_API_CACHE_TTL=30)
    def test_arguments_are_part_of_the_key(self):
        counter = Counter()
        counter.read('a')
        counter.read('b')
        self.assertEqual(counter.calls, 2)

    @override_settings(TRADING_API_CACHE_TTL=30)
    def test_invalidation_forces_refetch(self):
        counter = Counter()
        counter.read()
        invalidate_backend_reads()
        self.assertEqual(counter.read()['calls'], 2)

    @override_settings(TRADING_API_CACHE_TTL=0)
    def test_zero_ttl_disables_cache(self):
        counter = Counter()
        counter.read()
        counter.read()
        self.assertEqual(counter.calls, 2)

    @skipUnless(
        settings.CACHES['default']['BACKEND'].endswith('LocMemCache'),
        'local-memory cache only',
    )
    def test_generation_survives_many_reads(self):
        invalidate_backend_reads()
        for i in range(500):
            cache.set(f'read:{i}', i)
        self.assertEqual(cache.get(GENERATION_KEY), 2)


@override_settings(TRADING_API_CACHE_TTL=30)
class DataStoreTests(TestCase):
    """Test the data access layer against a mocked client"""

    def setUp(self):
        cache.clear()
        self.api = mock.MagicMock()
        self.store = DataStore(client=self.api)

    def test_parties_are_mapped(self):
        self.api.get.return_value = [
            {'_id': 'm1', 'name': 'Hafiz Mills', 'type': 'miller'},
            {'_id': 'b1', 'name': 'Karachi Traders', 'type': 'Buyer'},
        ]
        self.assertEqual(self.store.get_parties()[0]['id'], 'm1')
        self.assertEqual([p['id'] for p in self.store.get_millers()], ['m1'])
        self.assertEqual([p['id'] for p in self.store.get_buyers()], ['b1'])
        self.assertEqual(self.store.get_party('b1')['name'], 'Karachi Traders')
        self.api.get.assert_called_once_with('/parties')

    def test_write_invalidates_cached_reads(self):
        self.api.get.return_value = []
        self.api.request.return_value = {'_id': 'p1', 'name': 'New'}
        self.store.get_parties()
        created = self.store.add_party({'name': 'New'})
        self.store.get_parties()
        self.assertEqual(created, {'id': 'p1', 'name': 'New'})
        self.assertEqual(self.api.get.call_count, 2)
        self.api.request.assert_called_once_with('POST', '/parties', {'name': 'New'})

    def test_available_stock_filters_remaining(self):
        self.api.get.return_value = [
            {'_id': 's1', 'remainingKatte': 0},
            {'_id': 's2', 'remainingKatte': 4},
        ]
        self.assertEqual([s['id'] for s in self.store.get_available_stock()], ['s2'])

    def test_add_bill_returns_bill_member(self):
        self.api.request.return_value = {'bill': {'_id': 'b9', 'billNumber': 'B-9'}, 'profit': {}}
        self.assertEqual(self.store.add_bill({}), {'id': 'b9', 'billNumber': 'B-9'})

    def test_update_cash_entry_returns_entry_member(self):
        self.api.request.return_value = {'entry': {'_id': 'c1', 'balance': 10}}
        self.assertEqual(self.store.update_cash_entry('c1', {})['id'], 'c1')
        self.api.request.assert_called_once_with('PUT', '/cash/c1', {})

    def test_party_balances(self):
        self.api.get.return_value = [{'_id': 'p1', 'lastBalance': 500}, {'_id': 'p2', 'lastBalance': None}]
        self.assertEqual(self.store.get_party_balances(), {'p1': 500, 'p2': 0})

    def test_pay_miller_links_receipt(self):
        self.api.request.return_value = {'_id': 'c1'}
        self.store.pay_miller(5000, '2024-05-01', 'Payment to Hafiz - advance', receipt_no='S-12')
        self.api.request.assert_called_once_with('POST', '/cash', {
            'date': '2024-05-01',
            'type': 'out',
            'description': 'Payment to Hafiz - advance #S-12',
            'debit': 5000,
            'credit': 0,
        })

    def test_receive_from_buyer_links_bill(self):
        self.api.request.return_value = {'_id': 'c2'}
        self.store.receive_from_buyer(3000, '2024-05-02', 'Received from Ali - Payment', bill_no='B-7', bill_id='b7')
        payload = self.api.request.call_args.args[2]
        self.assertEqual(payload['description'], 'Received from Ali - Payment #B-7')
        self.assertEqual(payload['type'], 'in')
        self.assertEqual(payload['credit'], 3000)
        self.assertEqual(payload['billId'], 'b7')

    def test_receive_without_bill_number_has_no_reference(self):
        self.api.request.return_value = {'_id': 'c3'}
        self.store.receive_from_buyer(100, '2024-05-02', 'Received from Ali - Payment', bill_no=None, bill_id='b8')
        payload = self.api.request.call_args.args[2]
        self.assertEqual(payload['description'], 'Received from Ali - Payment')

    def test_link_refs_parsed_from_description(self):
        self.assertEqual(stock_link_ref('paid against s12'), 'S-12')
        self.assertEqual(stock_link_ref('paid #S-4'), 'S-4')
        self.assertIsNone(stock_link_ref('advance'))
        self.assertEqual(bill_link_ref('cash for #B-31'), 'B-31')
        self.assertIsNone(bill_link_ref('cash'))


class CalculationTests(TestCase):
    """Test invoice and purchase arithmetic"""

    def test_stock_totals_per_kg(self):
        totals = stock_totals(10, 50, 100, 'per_kg', bhardana_rate=5)
        self.assertEqual(totals, {'totalWeight': 500.0, 'bhardana': 50.0, 'totalAmount': 50050.0})

    def test_stock_totals_per_katta(self):
        totals = stock_totals(10, 50, 2000, 'per_katta')
        self.assertEqual(totals['totalAmount'], 20000.0)
        self.assertEqual(totals['totalWeight'], 500.0)

    def test_bill_totals_profit(self):
        stock = TestDataFactory.create_stock(katte=100, weight_per_katta=50, purchase_rate=100)
        totals = bill_totals(stock, 10, 120, 'per_kg')
        self.assertEqual(totals['weight'], 500.0)
        self.assertEqual(totals['totalAmount'], 60000.0)
        self.assertEqual(totals['purchaseCost'], 50000.0)
        self.assertEqual(totals['profit'], 10000.0)

    def test_bill_totals_with_bhardana_per_katta(self):
        stock = TestDataFactory.create_stock(katte=100, weight_per_katta=50, purchase_rate=100)
        totals = bill_totals(stock, 10, 6000, 'per_katta', bhardana_rate=Decimal('20'))
        self.assertEqual(totals['bhardana'], 200.0)
        self.assertEqual(totals['totalAmount'], 60200.0)

    def test_bill_totals_without_lot_weight(self):
        stock = {'weightPerKatta': 50, 'totalWeight': 0, 'totalAmount': 1000}
        self.assertEqual(bill_totals(stock, 2, 10, 'per_kg')['purchaseCost'], 0.0)

    def test_stock_status(self):
        self.assertEqual(stock_status({'katte': 100, 'remainingKatte': 0}), 'Sold Out')
        self.assertEqual(stock_status({'katte': 100, 'remainingKatte': 19}), 'Low')
        self.assertEqual(stock_status({'katte': 100, 'remainingKatte': 20}), 'Available')

    def test_remaining_value(self):
        item = {'katte': 100, 'remainingKatte': 50, 'totalAmount': 500000}
        self.assertEqual(remaining_value(item), Decimal('250000'))
        self.assertEqual(remaining_value({'katte': 0}), Decimal('0'))

    def test_outstanding(self):
        self.assertEqual(outstanding({'totalAmount': 1000, 'paidAmount': 400}), 600.0)
        self.assertEqual(outstanding({'totalAmount': 1000}), 1000.0)

    def test_due_date(self):
        self.assertEqual(due_date('2024-05-01', 30), '2024-05-31')

    def test_formatting(self):
        self.assertEqual(format_currency(1234567), 'RS 1,234,567')
        self.assertEqual(format_currency(1234.5, decimals=2), 'RS 1,234.5')
        self.assertEqual(format_currency(None), 'RS 0')
        self.assertEqual(format_weight(999), '999 kg')
        self.assertEqual(format_weight(1500), '1.50 MT')


class CheckCacheCommandTests(TestCase):

    def test_reports_working_cache(self):
        cache.clear()
        out = StringIO()
        call_command('check_cache', stdout=out)
        output = out.getvalue()
        self.assertIn('Cache SET/GET: OK', output)
        self.assertIn('Read invalidation: OK (generation 1 -> 2)', output)

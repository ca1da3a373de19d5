"""
Test suite for the stock module
Tests: stock list summary, adding and editing lots, receipts and miller payments
"""
from django.test import TestCase
from rest_framework import status

from ricetrade.core.test_utils import TestDataFactory, BackendTestCaseMixin


class StockListTests(BackendTestCaseMixin, TestCase):
    """Test the stock list and summary"""
    data_store_path = 'ricetrade.stock.views.data_store'

    def setUp(self):
        super().setUp()
        self.miller = TestDataFactory.create_party(name='Awan Mills', party_type='Miller')
        self.old = TestDataFactory.create_stock(
            miller=self.miller, katte=100, remaining_katte=50, date='2024-04-01', item_name='Super Kernel',
        )
        self.new = TestDataFactory.create_stock(
            miller=self.miller, katte=40, remaining_katte=0, date='2024-05-01', item_name='Sella 1121',
        )
        self.store.get_stock.return_value = [self.old, self.new]
        self.store.get_millers.return_value = [self.miller]

    def test_list_summary_and_order(self):
        response = self.client.get('/api/v1/stock/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        summary = response.data['summary']
        self.assertEqual(summary['remainingKatte'], 50.0)
        self.assertEqual(summary['remainingWeight'], 2500.0)
        # 50 of 100 bags of a 500,000 lot
        self.assertEqual(summary['remainingValue'], 250000.0)
        self.assertEqual(summary['remainingValueDisplay'], 'RS 250,000')
        results = response.data['results']
        self.assertEqual([r['id'] for r in results], [self.new['id'], self.old['id']])
        self.assertEqual(results[0]['status'], 'Sold Out')
        self.assertEqual(results[1]['status'], 'Available')

    def test_search_by_item(self):
        response = self.client.get('/api/v1/stock/', {'search': 'sella'})
        self.assertEqual([r['id'] for r in response.data['results']], [self.new['id']])

    def test_search_by_miller(self):
        response = self.client.get('/api/v1/stock/', {'search': 'AWAN'})
        self.assertEqual(len(response.data['results']), 2)

    def test_available_labels(self):
        self.store.get_available_stock.return_value = [self.old]
        response = self.client.get('/api/v1/stock/available/')
        self.assertEqual(response.data[0]['label'], 'Super Kernel (50 left)')


class StockCreateTests(BackendTestCaseMixin, TestCase):
    """Test adding a purchase lot"""
    data_store_path = 'ricetrade.stock.views.data_store'

    def setUp(self):
        super().setUp()
        self.miller = TestDataFactory.create_party(name='Awan Mills', party_type='Miller')
        self.store.get_millers.return_value = [self.miller]
        self.store.add_stock.return_value = {'id': 's1'}

    def stock_data(self, **overrides):
        data = {
            'date': '2024-05-01',
            'miller_id': self.miller['id'],
            'item_name': 'Super Kernel',
            'katte': 20,
            'weight_per_katta': '50',
            'purchase_rate': '100',
            'bhardana_rate': '10',
            'receipt_number': 'S-15',
        }
        data.update(overrides)
        return data

    def test_add_stock_per_kg(self):
        response = self.client.post('/api/v1/stock/', self.stock_data())
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        payload = self.store.add_stock.call_args.args[0]
        self.assertEqual(payload['millerName'], 'Awan Mills')
        self.assertEqual(payload['totalWeight'], 1000.0)
        self.assertEqual(payload['bhardana'], 200.0)
        self.assertEqual(payload['totalAmount'], 100200.0)
        self.assertEqual(payload['receiptNumber'], 'S-15')
        self.assertNotIn('dueDate', payload)

    def test_add_stock_per_katta_on_credit(self):
        response = self.client.post('/api/v1/stock/', self.stock_data(
            rate_type='per_katta', purchase_rate='5000', bhardana_rate='0',
            payment_type='credit', due_days=15,
        ))
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        payload = self.store.add_stock.call_args.args[0]
        self.assertEqual(payload['totalAmount'], 100000.0)
        self.assertEqual(payload['dueDays'], 15)
        self.assertEqual(payload['dueDate'], '2024-05-16')

    def test_credit_needs_due_days(self):
        response = self.client.post('/api/v1/stock/', self.stock_data(payment_type='credit'))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('due_days', response.data)

    def test_unknown_miller(self):
        response = self.client.post('/api/v1/stock/', self.stock_data(miller_id='buyer-1'))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.store.add_stock.assert_not_called()

    def test_katte_required(self):
        response = self.client.post('/api/v1/stock/', self.stock_data(katte=0))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class StockDetailTests(BackendTestCaseMixin, TestCase):
    """Test receipt view, editing, deleting and paying for a lot"""
    data_store_path = 'ricetrade.stock.views.data_store'

    def setUp(self):
        super().setUp()
        self.miller = TestDataFactory.create_party(name='Awan Mills', party_type='Miller')
        self.stock = TestDataFactory.create_stock(
            miller=self.miller, katte=100, remaining_katte=30, receiptNumber='S-7',
        )
        self.store.get_stock_item.return_value = self.stock
        self.store.get_millers.return_value = [self.miller]

    def test_receipt_view(self):
        self.store.get_stock_ledger.return_value = [{'id': 'l1', 'debit': 500000}]
        response = self.client.get(f"/api/v1/stock/{self.stock['id']}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['stock']['outstanding'], 500000.0)
        self.assertEqual(len(response.data['ledger']), 1)
        self.store.get_stock_ledger.assert_called_once_with(self.stock['id'])

    def test_missing_lot(self):
        self.store.get_stock_item.return_value = None
        response = self.client.get('/api/v1/stock/nope/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_edit_keeps_remaining_quantities(self):
        self.store.update_stock.return_value = {'id': self.stock['id']}
        response = self.client.put(f"/api/v1/stock/{self.stock['id']}/", {
            'date': '2024-05-01',
            'miller_id': self.miller['id'],
            'item_name': 'Super Kernel',
            'katte': 120,
            'weight_per_katta': '50',
            'purchase_rate': '100',
        })
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        payload = self.store.update_stock.call_args.args[1]
        self.assertEqual(payload['katte'], 120)
        self.assertEqual(payload['remainingKatte'], 30)
        self.assertEqual(payload['remainingWeight'], 1500)

    def test_delete(self):
        response = self.client.delete(f"/api/v1/stock/{self.stock['id']}/")
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.store.delete_stock.assert_called_once_with(self.stock['id'])

    def test_direct_payment(self):
        self.store.pay_miller.return_value = {'id': 'c1'}
        response = self.client.post(
            f"/api/v1/stock/{self.stock['id']}/payments/",
            {'amount': '25000', 'date': '2024-05-09'},
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.store.pay_miller.assert_called_once_with(
            25000.0, '2024-05-09', 'Payment to Awan Mills - Payment', receipt_no='S-7',
        )

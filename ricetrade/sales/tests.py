"""
Test suite for sales billing
Tests: bill list tabs, preview, creation with stock checks, editing, receipts and sharing
"""
from unittest import mock
from urllib.parse import unquote
from django.test import TestCase
from rest_framework import status

from ricetrade.core.test_utils import TestDataFactory, BackendTestCaseMixin


class BillListTests(BackendTestCaseMixin, TestCase):
    """Test the bill list"""
    data_store_path = 'ricetrade.sales.views.data_store'

    def setUp(self):
        super().setUp()
        self.buyer = TestDataFactory.create_party(name='Zafar Traders', party_type='Buyer')
        self.stock = TestDataFactory.create_stock(item_name='Super Kernel')
        self.first = TestDataFactory.create_bill(
            buyer=self.buyer, stock=self.stock, date='2024-05-02',
            billNumber='B-1', createdAt='2024-05-02T08:00:00.000Z', paidAmount=10000,
        )
        self.second = TestDataFactory.create_bill(
            buyer=self.buyer, stock=self.stock, date='2024-05-02',
            billNumber='B-2', createdAt='2024-05-02T11:00:00.000Z',
        )
        self.older = TestDataFactory.create_bill(stock=self.stock, date='2024-04-20', billNumber='B-3')
        self.store.get_bills.return_value = [self.older, self.first, self.second]

    def test_newest_first_with_outstanding(self):
        response = self.client.get('/api/v1/bills/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        results = response.data['results']
        self.assertEqual([b['billNumber'] for b in results], ['B-2', 'B-1', 'B-3'])
        self.assertEqual(results[1]['outstanding'], 50000.0)

    def test_search(self):
        response = self.client.get('/api/v1/bills/', {'search': 'zafar'})
        self.assertEqual({b['billNumber'] for b in response.data['results']}, {'B-1', 'B-2'})
        response = self.client.get('/api/v1/bills/', {'search': 'b-3'})
        self.assertEqual([b['billNumber'] for b in response.data['results']], ['B-3'])

    @mock.patch('ricetrade.sales.views.today_iso', return_value='2024-05-02')
    def test_today_tab(self, _today):
        response = self.client.get('/api/v1/bills/', {'tab': 'today'})
        self.assertEqual([b['billNumber'] for b in response.data['results']], ['B-2', 'B-1'])

    def test_next_number(self):
        self.store.get_next_bill_number.return_value = 'B-4'
        response = self.client.get('/api/v1/bills/next-number/')
        self.assertEqual(response.data, {'nextNumber': 'B-4'})


class BillCreateTests(BackendTestCaseMixin, TestCase):
    """Test bill preview and creation"""
    data_store_path = 'ricetrade.sales.views.data_store'

    def setUp(self):
        super().setUp()
        self.buyer = TestDataFactory.create_party(name='Zafar Traders', party_type='Buyer')
        self.miller = TestDataFactory.create_party(name='Awan Mills', party_type='Miller')
        # 100 bags of 50 kg bought at 100/kg
        self.stock = TestDataFactory.create_stock(miller=self.miller, katte=100, remaining_katte=15)
        self.store.get_buyers.return_value = [self.buyer]
        self.store.get_stock_item.return_value = self.stock
        self.store.add_bill.return_value = {'id': 'b1', 'billNumber': 'B-1'}

    def bill_data(self, **overrides):
        data = {
            'buyer_id': self.buyer['id'],
            'stock_id': self.stock['id'],
            'katte': 10,
            'rate': '120',
            'date': '2024-05-05',
        }
        data.update(overrides)
        return data

    def test_preview(self):
        response = self.client.post('/api/v1/bills/preview/', self.bill_data())
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['totalAmount'], 60000.0)
        self.assertEqual(response.data['profit'], 10000.0)
        self.assertEqual(response.data['totalAmountDisplay'], 'RS 60,000')
        self.store.add_bill.assert_not_called()

    def test_create_bill(self):
        response = self.client.post('/api/v1/bills/', self.bill_data(bhardana_rate='5'))
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        payload = self.store.add_bill.call_args.args[0]
        self.assertEqual(payload['buyerName'], 'Zafar Traders')
        self.assertEqual(payload['millerId'], self.miller['id'])
        self.assertEqual(payload['millerName'], 'Awan Mills')
        self.assertEqual(payload['stockId'], self.stock['id'])
        self.assertEqual(payload['weight'], 500.0)
        self.assertEqual(payload['bhardana'], 50.0)
        self.assertEqual(payload['totalAmount'], 60050.0)
        self.assertEqual(payload['purchaseCost'], 50000.0)
        self.assertEqual(payload['profit'], 10050.0)
        self.assertEqual(payload['date'], '2024-05-05')
        self.assertNotIn('billNumber', payload)

    def test_create_with_bill_number_on_credit(self):
        self.client.post('/api/v1/bills/', self.bill_data(bill_no='B-77', payment_type='credit', due_days=30))
        payload = self.store.add_bill.call_args.args[0]
        self.assertEqual(payload['billNumber'], 'B-77')
        self.assertEqual(payload['dueDate'], '2024-06-04')

    def test_insufficient_stock(self):
        response = self.client.post('/api/v1/bills/', self.bill_data(katte=16))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['katte'], ['Insufficient stock'])
        self.store.add_bill.assert_not_called()

    def test_zero_katte_rejected(self):
        response = self.client.post('/api/v1/bills/', self.bill_data(katte=0))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unknown_buyer(self):
        self.store.get_buyers.return_value = []
        response = self.client.post('/api/v1/bills/', self.bill_data())
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('buyer_id', response.data)

    def test_unknown_stock(self):
        self.store.get_stock_item.return_value = None
        response = self.client.post('/api/v1/bills/', self.bill_data())
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('stock_id', response.data)


class BillDetailTests(BackendTestCaseMixin, TestCase):
    """Test bill view, edit, delete, receipts and WhatsApp sharing"""
    data_store_path = 'ricetrade.sales.views.data_store'

    def setUp(self):
        super().setUp()
        self.buyer = TestDataFactory.create_party(name='Zafar Traders', party_type='Buyer', phone='+92 300 1234567')
        self.stock = TestDataFactory.create_stock(katte=100, remaining_katte=5, item_name='Super Kernel')
        self.bill = TestDataFactory.create_bill(buyer=self.buyer, stock=self.stock, katte=10, billNumber='17')
        self.store.get_bill.return_value = self.bill
        self.store.get_buyers.return_value = [self.buyer]
        self.store.get_stock_item.return_value = self.stock

    def test_bill_view(self):
        self.store.get_bill_ledger.return_value = [{'id': 'l1'}, {'id': 'l2'}]
        response = self.client.get(f"/api/v1/bills/{self.bill['id']}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['bill']['outstanding'], 60000.0)
        self.assertEqual(len(response.data['ledger']), 2)

    def test_edit_counts_own_bags_as_available(self):
        self.store.update_bill.return_value = {'id': self.bill['id']}
        response = self.client.put(f"/api/v1/bills/{self.bill['id']}/", {
            'buyer_id': self.buyer['id'], 'stock_id': self.stock['id'], 'katte': 15, 'rate': '120',
        })
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        payload = self.store.update_bill.call_args.args[1]
        self.assertEqual(payload['katte'], 15)
        self.assertEqual(payload['billNumber'], '17')
        self.assertEqual(payload['date'], self.bill['date'])

    def test_edit_beyond_stock(self):
        response = self.client.put(f"/api/v1/bills/{self.bill['id']}/", {
            'buyer_id': self.buyer['id'], 'stock_id': self.stock['id'], 'katte': 16, 'rate': '120',
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.store.update_bill.assert_not_called()

    def test_delete(self):
        response = self.client.delete(f"/api/v1/bills/{self.bill['id']}/")
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.store.delete_bill.assert_called_once_with(self.bill['id'])

    def test_receive_payment(self):
        self.store.receive_from_buyer.return_value = {'id': 'c1'}
        response = self.client.post(
            f"/api/v1/bills/{self.bill['id']}/payments/",
            {'amount': '20000', 'description': 'cheque', 'date': '2024-05-06'},
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.store.receive_from_buyer.assert_called_once_with(
            20000.0, '2024-05-06', 'Received from Zafar Traders - cheque',
            bill_no='B-17', bill_id=self.bill['id'],
        )

    def test_receive_payment_without_bill_number(self):
        self.store.get_bill.return_value = {**self.bill, 'billNumber': ''}
        self.store.receive_from_buyer.return_value = {'id': 'c2'}
        response = self.client.post(f"/api/v1/bills/{self.bill['id']}/payments/", {'amount': '500'})
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIsNone(self.store.receive_from_buyer.call_args.kwargs['bill_no'])

    def test_share_link(self):
        self.store.get_party.return_value = self.buyer
        response = self.client.get(f"/api/v1/bills/{self.bill['id']}/share/")
        self.assertEqual(response.data['phone'], '923001234567')
        self.assertTrue(response.data['url'].startswith('https://wa.me/923001234567?text='))
        message = unquote(response.data['url'].split('text=', 1)[1])
        self.assertIn('*INVOICE: 17*', message)
        self.assertIn('Dear *Zafar Traders*', message)
        self.assertIn('- Quantity: 10 Katte', message)
        self.assertIn('- Total Amount: RS 60,000', message)

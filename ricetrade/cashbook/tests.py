"""
Test suite for the cash book
"""
from django.test import TestCase
from rest_framework import status

from ricetrade.core.test_utils import TestDataFactory, BackendTestCaseMixin


class CashBookTests(BackendTestCaseMixin, TestCase):
    data_store_path = 'ricetrade.cashbook.views.data_store'

    def setUp(self):
        super().setUp()
        self.opening = TestDataFactory.create_cash_entry(
            'in', amount=10000, balance=10000, date='2024-05-01', description='Opening cash',
        )
        self.rent = TestDataFactory.create_cash_entry(
            'out', amount=2500, balance=7500, date='2024-05-02', description='Shop rent',
        )
        self.receipt = TestDataFactory.create_cash_entry(
            'in', amount=4000, balance=11500, date='2024-05-03',
            description='Received from Zafar Traders', billReference='B-12',
        )
        self.store.get_cash_entries.return_value = [self.opening, self.rent, self.receipt]

    def test_totals_and_order(self):
        response = self.client.get('/api/v1/cash/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        totals = response.data['totals']
        self.assertEqual(totals['balance'], 11500)
        self.assertEqual(totals['balanceDisplay'], 'RS 11,500')
        self.assertEqual(totals['inflow'], 14000.0)
        self.assertEqual(totals['outflow'], 2500.0)
        self.assertEqual(
            [e['id'] for e in response.data['results']],
            [self.receipt['id'], self.rent['id'], self.opening['id']],
        )

    def test_tabs(self):
        response = self.client.get('/api/v1/cash/', {'tab': 'out'})
        self.assertEqual([e['id'] for e in response.data['results']], [self.rent['id']])
        # Totals are for the whole book
        self.assertEqual(response.data['totals']['inflow'], 14000.0)

    def test_search_bill_reference(self):
        response = self.client.get('/api/v1/cash/', {'search': 'b-12'})
        self.assertEqual([e['id'] for e in response.data['results']], [self.receipt['id']])

    def test_empty_book(self):
        self.store.get_cash_entries.return_value = []
        response = self.client.get('/api/v1/cash/')
        self.assertEqual(response.data['totals']['balance'], 0)
        self.assertEqual(response.data['results'], [])

    def test_record_cash_out(self):
        self.store.add_cash_entry.return_value = {'id': 'c9'}
        response = self.client.post('/api/v1/cash/', {
            'type': 'out', 'description': 'Labour', 'amount': '1200', 'date': '2024-05-04',
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.store.add_cash_entry.assert_called_once_with({
            'date': '2024-05-04', 'type': 'out', 'description': 'Labour', 'debit': 1200.0, 'credit': 0,
        })

    def test_record_cash_in_with_reference(self):
        self.store.add_cash_entry.return_value = {'id': 'c10'}
        self.client.post('/api/v1/cash/', {
            'type': 'in', 'description': 'Advance', 'amount': '500',
            'bill_reference': 'B-3', 'date': '2024-05-04',
        })
        payload = self.store.add_cash_entry.call_args.args[0]
        self.assertEqual(payload['credit'], 500.0)
        self.assertEqual(payload['debit'], 0)
        self.assertEqual(payload['billReference'], 'B-3')

    def test_invalid_type(self):
        response = self.client.post('/api/v1/cash/', {
            'type': 'sideways', 'description': 'x', 'amount': '5', 'date': '2024-05-04',
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_and_delete(self):
        self.store.update_cash_entry.return_value = {'id': self.rent['id'], 'debit': 3000}
        response = self.client.put(f"/api/v1/cash/{self.rent['id']}/", {
            'type': 'out', 'description': 'Shop rent', 'amount': '3000', 'date': '2024-05-02',
        })
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(self.store.update_cash_entry.call_args.args[0], self.rent['id'])

        response = self.client.delete(f"/api/v1/cash/{self.rent['id']}/")
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.store.delete_cash_entry.assert_called_once_with(self.rent['id'])

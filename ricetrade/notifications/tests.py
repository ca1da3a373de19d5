"""
Test suite for overdue payment reminders
"""
from datetime import date
from io import StringIO
from django.core.cache import cache
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase
from rest_framework import status

from ricetrade.core.test_utils import TestDataFactory, BackendTestCaseMixin
from ricetrade.notifications.overdue import NOTIFIED_IDS_KEY, build_alerts, collect_overdue


class OverdueCollectionTests(TestCase):
    """Test picking overdue bills and purchases"""

    def setUp(self):
        self.today = date(2024, 6, 1)
        self.buyer = TestDataFactory.create_party(name='Zafar Traders')
        self.miller = TestDataFactory.create_party(name='Awan Mills', party_type='Miller')
        self.stock = TestDataFactory.create_stock(miller=self.miller, dueDate='2024-05-15', receiptNumber='S-4')

    def test_collects_unpaid_items_past_due(self):
        overdue_bill = TestDataFactory.create_bill(
            buyer=self.buyer, stock=self.stock, billNumber='B-9', dueDate='2024-05-31', paidAmount=20000,
        )
        due_today = TestDataFactory.create_bill(stock=self.stock, dueDate='2024-06-01')
        paid = TestDataFactory.create_bill(stock=self.stock, dueDate='2024-05-01', status='paid')
        cash_sale = TestDataFactory.create_bill(stock=self.stock)

        items = collect_overdue([overdue_bill, due_today, paid, cash_sale], [self.stock], self.today)
        self.assertEqual(items, [
            {
                'id': overdue_bill['id'], 'title': 'B-9', 'party': 'Zafar Traders',
                'amount': 40000.0, 'date': '2024-05-31', 'type': 'sale',
            },
            {
                'id': self.stock['id'], 'title': 'S-4', 'party': 'Awan Mills',
                'amount': 500000.0, 'date': '2024-05-15', 'type': 'purchase',
            },
        ])

    def test_alerts_for_new_items_only(self):
        items = collect_overdue([], [self.stock], self.today)
        alerts, new_ids = build_alerts(items, set())
        self.assertEqual(new_ids, [self.stock['id']])
        self.assertEqual(alerts, [{
            'title': 'Overdue: Payment to Awan Mills',
            'description': 'RS 500,000 is due (#S-4)',
        }])

        alerts, new_ids = build_alerts(items, {self.stock['id']})
        self.assertEqual(alerts, [])
        self.assertEqual(new_ids, [])

    def test_bill_alert_text(self):
        bill = TestDataFactory.create_bill(buyer=self.buyer, stock=self.stock, billNumber='B-9', dueDate='2024-05-01')
        alerts, _ = build_alerts(collect_overdue([bill], [], self.today), set())
        self.assertEqual(alerts[0]['title'], 'Overdue: B-9')
        self.assertEqual(alerts[0]['description'], 'Zafar Traders owes RS 60,000')

    def test_many_alerts_are_grouped(self):
        bills = [TestDataFactory.create_bill(stock=self.stock, dueDate='2024-05-01') for _ in range(4)]
        alerts, new_ids = build_alerts(collect_overdue(bills, [], self.today), set())
        self.assertEqual(len(new_ids), 4)
        self.assertEqual(len(alerts), 1)
        self.assertEqual(alerts[0]['title'], 'Multiple Overdue Payments (4)')

    def test_three_alerts_stay_separate(self):
        bills = [TestDataFactory.create_bill(stock=self.stock, dueDate='2024-05-01') for _ in range(3)]
        alerts, _ = build_alerts(collect_overdue(bills, [], self.today), set())
        self.assertEqual(len(alerts), 3)


class OverdueEndpointTests(BackendTestCaseMixin, TestCase):
    """Test the notification bell endpoint and the check_overdue command"""
    data_store_path = 'ricetrade.notifications.overdue.data_store'

    def setUp(self):
        super().setUp()
        stock = TestDataFactory.create_stock()
        self.bill = TestDataFactory.create_bill(stock=stock, dueDate='2020-01-01')
        self.future = TestDataFactory.create_bill(stock=stock, dueDate='2999-01-01')
        self.store.get_bills.return_value = [self.bill, self.future]
        self.store.get_stock.return_value = [stock]

    def test_alerts_only_once(self):
        response = self.client.get('/api/v1/notifications/overdue/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['items'][0]['id'], self.bill['id'])
        self.assertEqual(len(response.data['alerts']), 1)

        response = self.client.get('/api/v1/notifications/overdue/')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['alerts'], [])

    def test_settled_items_are_forgotten(self):
        self.client.get('/api/v1/notifications/overdue/')
        self.assertEqual(cache.get(NOTIFIED_IDS_KEY), [self.bill['id']])

        self.store.get_bills.return_value = [{**self.bill, 'status': 'paid'}, self.future]
        response = self.client.get('/api/v1/notifications/overdue/')
        self.assertEqual(response.data['count'], 0)
        self.assertEqual(cache.get(NOTIFIED_IDS_KEY), [])

        # Overdue again after the payment is reversed
        self.store.get_bills.return_value = [self.bill, self.future]
        response = self.client.get('/api/v1/notifications/overdue/')
        self.assertEqual(len(response.data['alerts']), 1)

    def test_command_lists_overdue(self):
        out = StringIO()
        call_command('check_overdue', '--date', '2024-06-01', stdout=out)
        output = out.getvalue()
        self.assertIn('OVERDUE PAYMENTS as of 2024-06-01', output)
        self.assertIn(self.bill['billNumber'], output)
        self.assertIn('Total overdue: 1', output)

    def test_command_nothing_overdue(self):
        out = StringIO()
        call_command('check_overdue', '--date', '2019-01-01', stdout=out)
        self.assertIn('Nothing overdue', out.getvalue())

    def test_command_rejects_bad_date(self):
        with self.assertRaises(CommandError):
            call_command('check_overdue', '--date', '01/06/2024', stdout=StringIO())

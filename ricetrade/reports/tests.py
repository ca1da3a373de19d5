"""
Test suite for dashboard and profit reports
"""
from django.test import TestCase
from rest_framework import status

from ricetrade.core.test_utils import TestDataFactory, BackendTestCaseMixin


class DashboardTests(BackendTestCaseMixin, TestCase):
    """Test dashboard summary cards"""
    data_store_path = 'ricetrade.reports.views.data_store'

    def setUp(self):
        super().setUp()
        self.store.get_dashboard_summary.return_value = {
            'totalStockKatte': 340,
            'totalStockWeight': 17000,
            'cashBalance': 125000.5,
            'totalReceivable': 90000,
            'totalPayable': 45000.25,
            'totalProfit': 30000,
        }
        self.bills = [TestDataFactory.create_bill(billNumber=f'B-{n}') for n in range(1, 8)]
        self.store.get_bills.return_value = self.bills
        self.store.get_cash_entries.return_value = [TestDataFactory.create_cash_entry() for _ in range(3)]

    def test_dashboard_display(self):
        response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        display = response.data['display']
        self.assertEqual(display['stock'], '340 Katte')
        self.assertEqual(display['stockWeight'], '17.00 MT')
        self.assertEqual(display['cashBalance'], 'RS 125,000.5')
        self.assertEqual(display['totalPayable'], 'RS 45,000.25')
        self.assertEqual(display['totalProfit'], 'RS 30,000')
        self.assertEqual(response.data['summary']['totalReceivable'], 90000)

    def test_recent_lists(self):
        response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(
            [b['billNumber'] for b in response.data['recentBills']],
            ['B-7', 'B-6', 'B-5', 'B-4', 'B-3'],
        )
        self.assertEqual(len(response.data['recentCash']), 3)


class ProfitReportTests(BackendTestCaseMixin, TestCase):
    """Test profit totals and groupings"""
    data_store_path = 'ricetrade.reports.views.data_store'

    def setUp(self):
        super().setUp()
        self.ali = TestDataFactory.create_party(name='Ali Traders')
        self.zafar = TestDataFactory.create_party(name='Zafar Traders')
        kernel = TestDataFactory.create_stock(item_name='Super Kernel')
        sella = TestDataFactory.create_stock(item_name='Sella 1121')
        # Each bill: 10 bags of 50 kg sold at 120/kg against a 100/kg cost
        bills = [
            TestDataFactory.create_bill(buyer=self.ali, stock=kernel, date='2024-04-10', billNumber='B-1'),
            TestDataFactory.create_bill(buyer=self.ali, stock=sella, date='2024-05-02', billNumber='B-2'),
            TestDataFactory.create_bill(buyer=self.zafar, stock=kernel, date='2024-05-20', billNumber='B-3'),
        ]
        self.store.get_profit_entries.return_value = [TestDataFactory.create_profit_entry(b) for b in bills]

    def test_totals(self):
        response = self.client.get('/api/v1/reports/profit/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['totals'], {
            'profit': 30000.0,
            'sales': 180000.0,
            'cost': 150000.0,
            'margin': 16.67,
            'bills': 3,
        })

    def test_bills_view(self):
        response = self.client.get('/api/v1/reports/profit/', {'search': 'ali'})
        results = response.data['results']
        self.assertEqual([r['billNumber'] for r in results], ['B-2', 'B-1'])
        self.assertEqual(results[0]['margin'], 16.67)

    def test_by_buyer(self):
        response = self.client.get('/api/v1/reports/profit/', {'view': 'buyers'})
        results = response.data['results']
        self.assertEqual(results[0]['buyerName'], 'Ali Traders')
        self.assertEqual(results[0]['bills'], 2)
        self.assertEqual(results[0]['profit'], 20000.0)
        self.assertEqual(results[1]['sales'], 60000.0)

    def test_by_buyer_search_keeps_full_totals(self):
        response = self.client.get('/api/v1/reports/profit/', {'view': 'buyers', 'search': 'ali'})
        results = response.data['results']
        self.assertEqual(len(results), 1)
        self.assertEqual(results[0]['bills'], 2)
        self.assertEqual(results[0]['profit'], 20000.0)
        self.assertEqual(results[0]['sales'], 120000.0)

    def test_by_buyer_ignores_bill_number_search(self):
        response = self.client.get('/api/v1/reports/profit/', {'view': 'buyers', 'search': 'B-1'})
        self.assertEqual(response.data['results'], [])

    def test_by_item(self):
        response = self.client.get('/api/v1/reports/profit/', {'view': 'items', 'search': 'kernel'})
        results = response.data['results']
        self.assertEqual(len(results), 1)
        self.assertEqual(results[0]['itemName'], 'Super Kernel')
        self.assertEqual(results[0]['katte'], 20)

    def test_monthly(self):
        response = self.client.get('/api/v1/reports/profit/', {'view': 'monthly'})
        results = response.data['results']
        self.assertEqual([r['month'] for r in results], ['2024-05', '2024-04'])
        self.assertEqual(results[0]['bills'], 2)

    def test_no_sales_margin(self):
        self.store.get_profit_entries.return_value = []
        response = self.client.get('/api/v1/reports/profit/')
        self.assertEqual(response.data['totals']['margin'], 0.0)

    def test_unknown_view(self):
        response = self.client.get('/api/v1/reports/profit/', {'view': 'weekly'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

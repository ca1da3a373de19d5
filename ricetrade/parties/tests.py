"""
Test suite for the Khata Book screens
Tests: party list tabs and balances, party CRUD, statements, payments and manual ledger lines
"""
from django.test import TestCase
from rest_framework import status

from ricetrade.core.exceptions import BackendAPIError
from ricetrade.core.test_utils import TestDataFactory, BackendTestCaseMixin
from ricetrade.parties.serializers import normalize_phone


class PhoneNormalizationTests(TestCase):

    def test_prefix_added(self):
        self.assertEqual(normalize_phone('3001234567'), '+92 3001234567')

    def test_existing_prefix_kept(self):
        self.assertEqual(normalize_phone('+92 3001234567'), '+92 3001234567')
        self.assertEqual(normalize_phone('+923001234567'), '+92 3001234567')

    def test_blank_stays_blank(self):
        self.assertEqual(normalize_phone(''), '')
        self.assertEqual(normalize_phone('+92 '), '')


class PartyListTests(BackendTestCaseMixin, TestCase):
    """Test the party list with tabs, ordering and balances"""
    data_store_path = 'ricetrade.parties.views.data_store'

    def setUp(self):
        super().setUp()
        self.buyer = TestDataFactory.create_party(name='Zafar Traders', party_type='Buyer')
        self.miller = TestDataFactory.create_party(name='Awan Mills', party_type='Miller')
        self.home = TestDataFactory.create_party(name='Home Expenses', party_type='Expense')
        self.father = TestDataFactory.create_party(name='Father', party_type='Buyer', id='father')
        self.store.get_parties.return_value = [self.buyer, self.miller, self.home, self.father]
        self.store.get_party_balances.return_value = {
            self.buyer['id']: 1500,
            self.miller['id']: 800,
            self.home['id']: 250,
        }

    def test_list_orders_home_first_and_hides_father(self):
        response = self.client.get('/api/v1/parties/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        names = [p['name'] for p in response.data['results']]
        self.assertEqual(names, ['Home Expenses', 'Awan Mills', 'Zafar Traders'])
        self.assertEqual(response.data['counts'], {'all': 3, 'buyers': 1, 'millers': 1, 'expenses': 1})

    def test_balance_labels(self):
        response = self.client.get('/api/v1/parties/')
        labels = {p['name']: p['balanceLabel'] for p in response.data['results']}
        self.assertEqual(labels['Zafar Traders'], 'Due to Us')
        self.assertEqual(labels['Awan Mills'], 'Our Liability')
        self.assertEqual(labels['Home Expenses'], 'Net Spend')

    def test_settled_party(self):
        self.store.get_party_balances.return_value = {}
        response = self.client.get('/api/v1/parties/', {'tab': 'buyers'})
        party = response.data['results'][0]
        self.assertEqual(party['balance'], 0)
        self.assertTrue(party['isSettled'])
        self.assertEqual(party['balanceLabel'], 'Current Status')

    def test_tab_and_search(self):
        response = self.client.get('/api/v1/parties/', {'tab': 'millers', 'search': 'awan'})
        self.assertEqual([p['id'] for p in response.data['results']], [self.miller['id']])

    def test_unknown_tab(self):
        response = self.client.get('/api/v1/parties/', {'tab': 'friends'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_create_party_normalizes_phone(self):
        self.store.add_party.return_value = {'id': 'new', 'name': 'Malik'}
        response = self.client.post('/api/v1/parties/', {'name': ' Malik ', 'type': 'Miller', 'phone': '3331112222'})
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.store.add_party.assert_called_once_with({'name': 'Malik', 'type': 'Miller', 'phone': '+92 3331112222'})

    def test_create_party_rejects_unknown_type(self):
        response = self.client.post('/api/v1/parties/', {'name': 'Malik', 'type': 'Broker'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.store.add_party.assert_not_called()

    def test_backend_error_is_passed_through(self):
        self.store.get_party_balances.side_effect = BackendAPIError(404, 'API Error: 404 Not Found - ')
        response = self.client.get('/api/v1/parties/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class PartyDetailTests(BackendTestCaseMixin, TestCase):
    """Test party statement, update and delete"""
    data_store_path = 'ricetrade.parties.views.data_store'

    def setUp(self):
        super().setUp()
        self.buyer = TestDataFactory.create_party(name='Zafar Traders', party_type='Buyer')
        self.store.get_party.return_value = self.buyer
        self.entries = [
            TestDataFactory.create_ledger_entry(self.buyer, debit=5000, balance=5000, date='2024-05-01', billId='b1'),
            TestDataFactory.create_ledger_entry(self.buyer, credit=2000, balance=3000, date='2024-05-04'),
        ]
        self.store.get_party_ledger.return_value = self.entries

    def test_statement(self):
        response = self.client.get(f"/api/v1/parties/{self.buyer['id']}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        summary = response.data['summary']
        self.assertEqual(summary['grossLabel'], 'Gross Dispatch')
        self.assertEqual(summary['gross'], 5000.0)
        self.assertEqual(summary['settled'], 2000.0)
        self.assertEqual(summary['currentBalance'], 3000)
        entries = response.data['entries']
        self.assertEqual(entries[0]['date'], '2024-05-04')
        self.assertTrue(entries[0]['editable'])
        self.assertFalse(entries[1]['editable'])

    def test_missing_party(self):
        self.store.get_party.return_value = None
        response = self.client.get('/api/v1/parties/missing/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_partial_update(self):
        self.store.update_party.return_value = {**self.buyer, 'address': 'Lahore'}
        response = self.client.put(f"/api/v1/parties/{self.buyer['id']}/", {'address': 'Lahore'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.store.update_party.assert_called_once_with(self.buyer['id'], {'address': 'Lahore'})

    def test_delete(self):
        response = self.client.delete(f"/api/v1/parties/{self.buyer['id']}/")
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.store.delete_party.assert_called_once_with(self.buyer['id'])


class PartyPaymentTests(BackendTestCaseMixin, TestCase):
    """Test recording payments against a party"""
    data_store_path = 'ricetrade.parties.views.data_store'

    def setUp(self):
        super().setUp()
        self.buyer = TestDataFactory.create_party(name='Zafar Traders', party_type='Buyer')
        self.miller = TestDataFactory.create_party(name='Awan Mills', party_type='Miller')
        self.stock = TestDataFactory.create_stock(miller=self.miller)
        self.bill = TestDataFactory.create_bill(buyer=self.buyer, stock=self.stock)
        self.paid_bill = TestDataFactory.create_bill(buyer=self.buyer, stock=self.stock, status='paid')
        self.store.get_bills.return_value = [self.bill, self.paid_bill]
        self.store.get_stock.return_value = [self.stock]
        self.store.add_ledger_entry.return_value = {'id': 'l1'}
        self.store.add_cash_entry.return_value = {'id': 'c1'}

    def test_open_items_for_buyer(self):
        self.store.get_party.return_value = self.buyer
        response = self.client.get(f"/api/v1/parties/{self.buyer['id']}/payments/")
        self.assertEqual([b['id'] for b in response.data['bills']], [self.bill['id']])
        self.assertEqual(response.data['bills'][0]['outstanding'], self.bill['totalAmount'])
        self.assertEqual(response.data['receipts'], [])

    def test_buyer_payment_for_bill(self):
        self.store.get_party.return_value = self.buyer
        response = self.client.post(
            f"/api/v1/parties/{self.buyer['id']}/payments/",
            {'amount': '2500', 'date': '2024-05-10', 'bill_id': self.bill['id']},
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        ledger = self.store.add_ledger_entry.call_args.args[0]
        cash = self.store.add_cash_entry.call_args.args[0]
        self.assertEqual(ledger['particulars'], 'Payment Received for Bill')
        self.assertEqual(ledger['credit'], 2500.0)
        self.assertEqual(ledger['billId'], self.bill['id'])
        self.assertEqual(cash['type'], 'in')
        self.assertEqual(cash['credit'], 2500.0)
        self.assertEqual(cash['description'], 'Received from Zafar Traders')

    def test_failed_cash_write_logs_ledger_entry(self):
        self.store.get_party.return_value = self.buyer
        self.store.add_cash_entry.side_effect = BackendAPIError(500, 'API Error: 500 Internal Server Error - ')
        with self.assertLogs('ricetrade.parties.views', level='ERROR') as logs:
            response = self.client.post(f"/api/v1/parties/{self.buyer['id']}/payments/", {'amount': '2500'})
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.store.add_ledger_entry.assert_called_once()
        self.assertIn('ledger entry l1', logs.output[0])

    def test_miller_payment_for_receipt(self):
        self.store.get_party.return_value = self.miller
        response = self.client.post(
            f"/api/v1/parties/{self.miller['id']}/payments/",
            {'amount': '1000', 'description': 'advance', 'stock_id': self.stock['id']},
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        ledger = self.store.add_ledger_entry.call_args.args[0]
        cash = self.store.add_cash_entry.call_args.args[0]
        self.assertEqual(ledger['particulars'], 'advance')
        self.assertEqual(ledger['stockId'], self.stock['id'])
        self.assertEqual(cash['type'], 'out')
        self.assertEqual(cash['debit'], 1000.0)
        self.assertEqual(cash['description'], 'Payment to Awan Mills - advance')

    def test_expense_payment_default_particulars(self):
        expense = TestDataFactory.create_party(name='Office Rent', party_type='Expense')
        self.store.get_party.return_value = expense
        self.client.post(f"/api/v1/parties/{expense['id']}/payments/", {'amount': '300'})
        self.assertEqual(self.store.add_ledger_entry.call_args.args[0]['particulars'], 'Payment Made')

    def test_paid_bill_cannot_be_linked(self):
        self.store.get_party.return_value = self.buyer
        response = self.client.post(
            f"/api/v1/parties/{self.buyer['id']}/payments/",
            {'amount': '100', 'bill_id': self.paid_bill['id']},
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.store.add_cash_entry.assert_not_called()

    def test_amount_must_be_positive(self):
        self.store.get_party.return_value = self.buyer
        response = self.client.post(f"/api/v1/parties/{self.buyer['id']}/payments/", {'amount': '0'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class PartyLedgerTests(BackendTestCaseMixin, TestCase):
    """Test manual Khata lines"""
    data_store_path = 'ricetrade.parties.views.data_store'

    def setUp(self):
        super().setUp()
        self.party = TestDataFactory.create_party(name='Awan Mills', party_type='Miller')
        self.store.get_party.return_value = self.party
        self.manual = TestDataFactory.create_ledger_entry(self.party, debit=100, balance=100)
        self.linked = TestDataFactory.create_ledger_entry(self.party, debit=900, balance=1000, billId='b1')
        self.store.get_party_ledger.return_value = [self.manual, self.linked]

    def test_add_entry(self):
        self.store.add_ledger_entry.return_value = {'id': 'l9'}
        response = self.client.post(
            f"/api/v1/parties/{self.party['id']}/ledger/",
            {'date': '2024-05-01', 'particulars': 'Opening', 'debit': '1200'},
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        payload = self.store.add_ledger_entry.call_args.args[0]
        self.assertEqual(payload['partyId'], self.party['id'])
        self.assertEqual(payload['partyType'], 'Miller')
        self.assertEqual(payload['debit'], 1200.0)
        self.assertEqual(payload['credit'], 0.0)

    def test_entry_needs_amount(self):
        response = self.client.post(
            f"/api/v1/parties/{self.party['id']}/ledger/",
            {'date': '2024-05-01', 'particulars': 'Nothing'},
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_edit_manual_entry(self):
        self.store.update_ledger_entry.return_value = {'id': self.manual['id']}
        response = self.client.put(
            f"/api/v1/parties/{self.party['id']}/ledger/{self.manual['id']}/",
            {'date': '2024-05-02', 'particulars': 'Fixed', 'credit': '50'},
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_bill_linked_entry_is_read_only(self):
        response = self.client.delete(f"/api/v1/parties/{self.party['id']}/ledger/{self.linked['id']}/")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.store.delete_ledger_entry.assert_not_called()

    def test_delete_manual_entry(self):
        response = self.client.delete(f"/api/v1/parties/{self.party['id']}/ledger/{self.manual['id']}/")
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.store.delete_ledger_entry.assert_called_once_with(self.manual['id'])

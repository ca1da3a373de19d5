"""
Data access for the console.
Every read and write goes to the trading backend; stock reduction, ledger
updates, cash postings and profit rows are all maintained there.
"""
import logging
import re
from typing import Dict, List, Optional

from .api_client import TradingAPIClient, map_id
from .cache_utils import cached_read, invalidate_backend_reads

logger = logging.getLogger(__name__)

STOCK_REF_RE = re.compile(r'#?(S-?\d+)', re.IGNORECASE)
BILL_REF_RE = re.compile(r'#?(B-\d+)', re.IGNORECASE)


def stock_link_ref(description: str, receipt_no: Optional[str] = None) -> Optional[str]:
    """Receipt reference (``S-12``) to attach to a miller payment"""
    if receipt_no:
        return receipt_no
    match = STOCK_REF_RE.search(description or '')
    if not match:
        return None
    ref = match.group(1).upper()
    if ref.startswith('S-'):
        return ref
    return f"S-{ref.replace('S', '', 1)}"


def bill_link_ref(description: str, bill_no: Optional[str] = None) -> Optional[str]:
    """Bill reference (``B-7``) to attach to a buyer receipt"""
    if bill_no:
        return bill_no
    match = BILL_REF_RE.search(description or '')
    return match.group(1) if match else None


def with_link_ref(description: str, link_ref: Optional[str]) -> str:
    return f"{description} {f'#{link_ref}' if link_ref else ''}".strip()


class DataStore:
    """All backend operations used by the console views"""

    def __init__(self, client: Optional[TradingAPIClient] = None):
        self._client = client

    @property
    def client(self) -> TradingAPIClient:
        if self._client is None:
            self._client = TradingAPIClient()
        return self._client

    def _write(self, method, path, payload=None):
        data = self.client.request(method, path, payload)
        invalidate_backend_reads()
        return data

    # Parties
    @cached_read('parties')
    def get_parties(self) -> List[dict]:
        return map_id(self.client.get('/parties')) or []

    def get_millers(self) -> List[dict]:
        return [p for p in self.get_parties() if (p.get('type') or '').lower() == 'miller']

    def get_buyers(self) -> List[dict]:
        return [p for p in self.get_parties() if (p.get('type') or '').lower() == 'buyer']

    def get_party(self, party_id: str) -> Optional[dict]:
        return next((p for p in self.get_parties() if p.get('id') == party_id), None)

    def add_party(self, party: dict) -> dict:
        return map_id(self._write('POST', '/parties', party))

    def update_party(self, party_id: str, data: dict) -> dict:
        return map_id(self._write('PUT', f'/parties/{party_id}', data))

    def delete_party(self, party_id: str) -> None:
        self._write('DELETE', f'/parties/{party_id}')

    # Stock
    @cached_read('stock')
    def get_stock(self) -> List[dict]:
        return map_id(self.client.get('/stock')) or []

    def get_available_stock(self) -> List[dict]:
        return [s for s in self.get_stock() if (s.get('remainingKatte') or 0) > 0]

    def get_stock_item(self, stock_id: str) -> Optional[dict]:
        return next((s for s in self.get_stock() if s.get('id') == stock_id), None)

    def add_stock(self, stock: dict) -> dict:
        return map_id(self._write('POST', '/stock', stock))

    def update_stock(self, stock_id: str, data: dict) -> dict:
        return map_id(self._write('PUT', f'/stock/{stock_id}', data))

    def delete_stock(self, stock_id: str) -> None:
        self._write('DELETE', f'/stock/{stock_id}')

    # Bills
    @cached_read('bills')
    def get_bills(self) -> List[dict]:
        return map_id(self.client.get('/bills')) or []

    def get_bill(self, bill_id: str) -> dict:
        return map_id(self.client.get(f'/bills/{bill_id}'))

    def get_next_bill_number(self) -> str:
        data = self.client.get('/bills/next-number') or {}
        return data.get('nextNumber')

    def add_bill(self, bill: dict) -> dict:
        data = self._write('POST', '/bills', bill) or {}
        return map_id(data.get('bill'))

    def update_bill(self, bill_id: str, data: dict) -> dict:
        return map_id(self._write('PUT', f'/bills/{bill_id}', data))

    def delete_bill(self, bill_id: str) -> None:
        self._write('DELETE', f'/bills/{bill_id}')

    # Cash book
    @cached_read('cash')
    def get_cash_entries(self) -> List[dict]:
        return map_id(self.client.get('/cash')) or []

    def add_cash_entry(self, entry: dict) -> dict:
        return map_id(self._write('POST', '/cash', entry))

    def update_cash_entry(self, entry_id: str, data: dict) -> dict:
        res = self._write('PUT', f'/cash/{entry_id}', data) or {}
        return map_id(res.get('entry'))

    def delete_cash_entry(self, entry_id: str) -> None:
        self._write('DELETE', f'/cash/{entry_id}')

    # Ledger
    @cached_read('party_ledger')
    def get_party_ledger(self, party_id: str) -> List[dict]:
        return map_id(self.client.get(f'/ledger/{party_id}')) or []

    def get_stock_ledger(self, stock_id: str) -> List[dict]:
        return map_id(self.client.get(f'/ledger/stock/{stock_id}')) or []

    def get_bill_ledger(self, bill_id: str) -> List[dict]:
        return map_id(self.client.get(f'/ledger/bill/{bill_id}')) or []

    def add_ledger_entry(self, entry: dict) -> dict:
        return map_id(self._write('POST', '/ledger', entry))

    def update_ledger_entry(self, entry_id: str, data: dict) -> dict:
        return map_id(self._write('PUT', f'/ledger/{entry_id}', data))

    def delete_ledger_entry(self, entry_id: str) -> None:
        self._write('DELETE', f'/ledger/{entry_id}')

    @cached_read('party_balances')
    def get_party_balances(self) -> Dict[str, float]:
        data = self.client.get('/ledger/balances') or []
        return {item['_id']: item.get('lastBalance') or 0 for item in data}

    # Payments
    def pay_miller(self, amount, date, description, receipt_no=None) -> dict:
        """
        Record a payment to a miller as a cash-out entry.
        The backend links it to the miller's ledger through the ``#S-n`` reference.
        """
        link_ref = stock_link_ref(description, receipt_no)
        return self.add_cash_entry({
            'date': date,
            'type': 'out',
            'description': with_link_ref(description, link_ref),
            'debit': amount,
            'credit': 0,
        })

    def receive_from_buyer(self, amount, date, description, bill_no=None, bill_id=None) -> dict:
        """Record money received from a buyer as a cash-in entry (``#B-n`` reference)"""
        link_ref = bill_link_ref(description, bill_no)
        entry = {
            'date': date,
            'type': 'in',
            'description': with_link_ref(description, link_ref),
            'debit': 0,
            'credit': amount,
        }
        if bill_id:
            entry['billId'] = bill_id
        return self.add_cash_entry(entry)

    # Reports
    @cached_read('profit')
    def get_profit_entries(self) -> List[dict]:
        return map_id(self.client.get('/profit')) or []

    @cached_read('dashboard_summary')
    def get_dashboard_summary(self) -> dict:
        return self.client.get('/ledger/summary') or {}


data_store = DataStore()

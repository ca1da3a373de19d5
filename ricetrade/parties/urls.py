from django.urls import path
from .views import (
    party_list_create, party_detail, party_payments,
    party_ledger_create, party_ledger_detail,
)

urlpatterns = [
    path('parties/', party_list_create, name='party-list-create'),
    path('parties/<str:party_id>/', party_detail, name='party-detail'),
    path('parties/<str:party_id>/payments/', party_payments, name='party-payments'),
    path('parties/<str:party_id>/ledger/', party_ledger_create, name='party-ledger-create'),
    path('parties/<str:party_id>/ledger/<str:entry_id>/', party_ledger_detail, name='party-ledger-detail'),
]

from django.urls import path
from .views import (
    bill_list_create, bill_preview, bill_next_number, bill_detail, bill_payment, bill_share,
)

urlpatterns = [
    path('bills/', bill_list_create, name='bill-list-create'),
    path('bills/preview/', bill_preview, name='bill-preview'),
    path('bills/next-number/', bill_next_number, name='bill-next-number'),
    path('bills/<str:bill_id>/', bill_detail, name='bill-detail'),
    path('bills/<str:bill_id>/payments/', bill_payment, name='bill-payment'),
    path('bills/<str:bill_id>/share/', bill_share, name='bill-share'),
]

from django.urls import path
from .views import cash_list_create, cash_detail

urlpatterns = [
    path('cash/', cash_list_create, name='cash-list-create'),
    path('cash/<str:entry_id>/', cash_detail, name='cash-detail'),
]

from django.urls import path
from .views import stock_list_create, stock_available, stock_detail, stock_payment

urlpatterns = [
    path('stock/', stock_list_create, name='stock-list-create'),
    path('stock/available/', stock_available, name='stock-available'),
    path('stock/<str:stock_id>/', stock_detail, name='stock-detail'),
    path('stock/<str:stock_id>/payments/', stock_payment, name='stock-payment'),
]

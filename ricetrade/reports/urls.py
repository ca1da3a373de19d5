from django.urls import path
from . import views

urlpatterns = [
    path('reports/dashboard/', views.dashboard, name='dashboard'),
    path('reports/profit/', views.profit_report, name='profit-report'),
]

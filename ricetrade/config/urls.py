"""
URL configuration for the ricetrade console.

Every app mounts its screens under ``api/v1/``; each view returns the data
one screen of the console needs.
"""
from django.urls import path, include

urlpatterns = [
    path('api/v1/', include('ricetrade.reports.urls')),
    path('api/v1/', include('ricetrade.parties.urls')),
    path('api/v1/', include('ricetrade.stock.urls')),
    path('api/v1/', include('ricetrade.sales.urls')),
    path('api/v1/', include('ricetrade.cashbook.urls')),
    path('api/v1/', include('ricetrade.notifications.urls')),
]

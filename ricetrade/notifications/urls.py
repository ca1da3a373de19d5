from django.urls import path
from .views import overdue_list

urlpatterns = [
    path('notifications/overdue/', overdue_list, name='overdue-list'),
]

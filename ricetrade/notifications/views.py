from django.utils import timezone
from rest_framework.decorators import api_view
from rest_framework.response import Response

from .overdue import check_overdue


@api_view(['GET'])
def overdue_list(request):
    """Overdue bills and purchases for the notification bell, plus new alerts"""
    return Response(check_overdue(timezone.localdate()))

"""Errors raised while talking to the trading backend"""
from rest_framework import status
from rest_framework.exceptions import APIException


class BackendAPIError(APIException):
    """
    The trading backend answered with a non-2xx status.

    4xx statuses are passed through to the caller so that a missing record
    stays a 404; anything else is reported as a bad gateway.
    """
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = 'Trading backend request failed.'
    default_code = 'backend_error'

    def __init__(self, backend_status, message, body=''):
        super().__init__(detail=message)
        self.backend_status = backend_status
        self.body = body
        if 400 <= backend_status < 500:
            self.status_code = backend_status


class BackendUnavailable(APIException):
    """The trading backend could not be reached at all"""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'Trading backend is unavailable.'
    default_code = 'backend_unavailable'

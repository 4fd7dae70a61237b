"""
Error taxonomy for the analytics API and the project-wide DRF handler.

``ValidationError`` covers malformed input, ``NotFoundError`` a missing
referenced entity and ``DependencyFailure`` a store that could not be
read.  Every non-2xx response is rendered as ``{"message": ...}``.
"""
import logging

from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class AnalyticsError(exceptions.APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Analytics request failed.'
    default_code = 'analytics_error'


class ValidationError(AnalyticsError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid input.'
    default_code = 'invalid'


class NotFoundError(AnalyticsError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found.'
    default_code = 'not_found'


class DependencyFailure(AnalyticsError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Record store is unavailable.'
    default_code = 'dependency_failure'


def _first_message(detail) -> str:
    if isinstance(detail, dict):
        if 'detail' in detail:
            return _first_message(detail['detail'])
        for field, value in detail.items():
            msg = _first_message(value)
            return msg if field == 'non_field_errors' else f'{field}: {msg}'
        return 'Invalid input.'
    if isinstance(detail, (list, tuple)):
        return _first_message(detail[0]) if detail else 'Invalid input.'
    return str(detail)


def api_exception_handler(exc, context):
    view = context.get('view')
    resp = drf_exception_handler(exc, context)
    if resp is None:
        logger.exception('Unhandled error in %s', getattr(view, '__name__', view), exc_info=exc)
        return Response({'message': 'Internal server error'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
    if isinstance(exc, DependencyFailure):
        logger.error('Store failure in %s: %s', getattr(view, '__name__', view), exc.detail, exc_info=exc)
    payload = {'message': _first_message(resp.data)}
    if isinstance(exc, exceptions.ValidationError) and isinstance(resp.data, dict):
        payload['errors'] = resp.data
    headers = {k: resp[k] for k in ('WWW-Authenticate', 'Retry-After') if resp.has_header(k)}
    return Response(payload, status=resp.status_code, headers=headers)

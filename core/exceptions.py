"""
Domain errors raised by the clinic services and their translation to HTTP.

Services raise the kinds below and know nothing about status codes;
:func:`api_exception_handler` is the only place where a kind becomes a
transport response.
"""
import logging

from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class ClinicError(Exception):
    """Base class for every error the services raise on purpose."""
    code = 'clinic_error'

    def __init__(self, message: str = ''):
        super().__init__(message)
        self.message = message


class ValidationError(ClinicError):
    """Malformed or semantically invalid input."""
    code = 'validation_error'


class ConflictError(ClinicError):
    """The requested scheduling slot is already taken."""
    code = 'conflict'


class NotFoundError(ClinicError):
    code = 'not_found'


class ForbiddenError(ClinicError):
    """The principal has no rights over the targeted record."""
    code = 'forbidden'


class UnauthorizedError(ClinicError):
    code = 'unauthorized'


class DecryptionError(ClinicError):
    """Stored ciphertext failed authentication for the given key context."""
    code = 'decryption_error'


STATUS_BY_ERROR = (
    (ValidationError, 400),
    (UnauthorizedError, 401),
    (ForbiddenError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
)


def status_for(exc: ClinicError) -> int:
    for kind, status_code in STATUS_BY_ERROR:
        if isinstance(exc, kind):
            return status_code
    return 500


def api_exception_handler(exc, context):
    if isinstance(exc, ClinicError):
        status_code = status_for(exc)
        if status_code == 500:
            logger.error('unhandled clinic error in %s: %s', context.get('view'), exc)
        return Response({'ok': False, 'error': {'code': exc.code, 'message': exc.message}}, status=status_code)

    resp = drf_exception_handler(exc, context)
    if resp is None:
        logger.exception('unhandled error in %s', context.get('view'), exc_info=exc)
        return Response({'ok': False, 'error': {'code': 'server_error', 'message': 'internal server error'}}, status=500)
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
    else:
        detail = resp.data
    return Response({'ok': False, 'error': {'code': 'api_error', 'message': detail}}, status=resp.status_code)

# api/exceptions.py

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler
import logging

logger = logging.getLogger(__name__)


def appraisal_exception_handler(exc, context):
    """
    DRF handles its own API exceptions (401, 404, parse errors...).
    Anything else is an infrastructure fault: log it with the traceback
    and return a generic 500 without internals.
    """
    response = exception_handler(exc, context)
    if response is not None:
        return response

    view = context.get('view')
    logger.error(
        f"Unhandled error in {view.__class__.__name__ if view else 'unknown view'}: {exc.__class__.__name__}",
        exc_info=(type(exc), exc, exc.__traceback__)
    )
    return Response({'error': 'Internal server error'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

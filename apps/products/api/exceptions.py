import logging

from django.db.models import ProtectedError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from apps.products.exceptions import (
    CatalogError,
    InsufficientInventory,
    InventoryTrackingDisabled,
    NotFound,
    StockHeldByVariations,
    UniquenessViolation,
)

logger = logging.getLogger(__name__)

CONFLICT_ERRORS = (
    UniquenessViolation,
    InventoryTrackingDisabled,
    InsufficientInventory,
    StockHeldByVariations,
)


def catalog_exception_handler(exc, context):
    """
    DRF exception handler that turns engine errors into
    ``{"error": <message>, "code": <code>}`` responses.
    """
    if isinstance(exc, CatalogError):
        if isinstance(exc, NotFound):
            status_code = status.HTTP_404_NOT_FOUND
        elif isinstance(exc, CONFLICT_ERRORS):
            status_code = status.HTTP_409_CONFLICT
        else:
            status_code = status.HTTP_400_BAD_REQUEST
        body = {'error': exc.message, 'code': exc.code}
        if exc.details:
            body['details'] = exc.details
        logger.info('Catalog request rejected: %s', exc.code, extra={'status_code': status_code})
        return Response(body, status=status_code)

    if isinstance(exc, ProtectedError):
        return Response(
            {'error': 'Object is still referenced and cannot be deleted', 'code': 'protected'},
            status=status.HTTP_409_CONFLICT,
        )

    return exception_handler(exc, context)

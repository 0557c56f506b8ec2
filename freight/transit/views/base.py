"""
Shared helpers for transit engine views.
"""

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import status
from rest_framework.response import Response

from ..context import BranchContext
from ..exceptions import (
    BusinessException, ChallanLockedException, EmptySelectionException,
    NotFoundException, PartialBatchFailureException, StoreUnavailableException,
    ValidationException
)
from ..models import Branch

logger = logging.getLogger(__name__)

ERROR_STATUS = [
    (ChallanLockedException, status.HTTP_409_CONFLICT),
    (NotFoundException, status.HTTP_404_NOT_FOUND),
    (EmptySelectionException, status.HTTP_400_BAD_REQUEST),
    (ValidationException, status.HTTP_400_BAD_REQUEST),
    (PartialBatchFailureException, status.HTTP_207_MULTI_STATUS),
    (StoreUnavailableException, status.HTTP_503_SERVICE_UNAVAILABLE),
]


def branch_context(request, branch_id) -> BranchContext:
    """Build the operator context for a request."""
    if not branch_id:
        raise ValidationException("branch_id is required", {'branch_id': 'This field is required.'})
    try:
        branch = Branch.objects.get(id=branch_id, is_active=True)
    except (Branch.DoesNotExist, ValueError, DjangoValidationError):
        raise NotFoundException("Branch", branch_id)
    return BranchContext(branch=branch, user=request.user)


def success_response(data, http_status=status.HTTP_200_OK) -> Response:
    return Response({
        'success': True,
        'data': data
    }, status=http_status)


def error_response(exc: BusinessException) -> Response:
    """Map a business error to its HTTP response."""
    http_status = status.HTTP_400_BAD_REQUEST
    for exc_class, mapped_status in ERROR_STATUS:
        if isinstance(exc, exc_class):
            http_status = mapped_status
            break

    if http_status >= 500:
        logger.error(f"{exc.code}: {exc.message}")

    return Response({
        'success': False,
        'error': exc.to_dict()
    }, status=http_status)

"""
Custom exceptions for the Transit & Challan Assignment engine.
"""

from typing import Dict, Any, List


class BusinessException(Exception):
    """Base exception for business logic errors."""

    def __init__(self, message: str, code: str = "BUSINESS_ERROR", details: Dict[str, Any] = None):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'code': self.code,
            'message': self.message,
            'details': self.details,
        }


class ChallanLockedException(BusinessException):
    """Raised when a mutation targets a dispatched challan."""

    def __init__(self, challan_no: str, operation: str = "modify"):
        message = f"Challan {challan_no} is dispatched; cannot {operation} its transit records"
        super().__init__(message, "CHALLAN_LOCKED", {
            "challan_no": challan_no,
            "operation": operation
        })


class EmptySelectionException(BusinessException):
    """Raised when an operation is given no shipments or transit records."""

    def __init__(self, message: str = "No shipments selected"):
        super().__init__(message, "EMPTY_SELECTION")


class NotFoundException(BusinessException):
    """Raised when a referenced challan, challan book or transit record is missing."""

    def __init__(self, entity_type: str, entity_id):
        message = f"{entity_type} {entity_id} not found"
        super().__init__(message, "NOT_FOUND", {
            "entity_type": entity_type,
            "entity_id": str(entity_id)
        })


class AlreadyInTransitException(BusinessException):
    """Raised when a GR number already has an active transit record."""

    def __init__(self, gr_nos: List[str]):
        message = f"Already in transit: {', '.join(gr_nos)}"
        super().__init__(message, "ALREADY_IN_TRANSIT", {"gr_nos": list(gr_nos)})


class PartialBatchFailureException(BusinessException):
    """Raised when a bulk operation failed for some or all of its records."""

    def __init__(self, message: str, result: Dict[str, Any]):
        super().__init__(message, "PARTIAL_BATCH_FAILURE", result)

    @property
    def failed_ids(self) -> List[str]:
        return self.details.get('failed_ids', [])


class StoreUnavailableException(BusinessException):
    """Raised when the backing datastore rejects or fails a call."""

    def __init__(self, operation: str, error: Exception = None):
        message = f"Datastore call failed during {operation}"
        if error is not None:
            message = f"{message}: {error}"
        super().__init__(message, "STORE_UNAVAILABLE", {"operation": operation})


class InvalidTransitionException(BusinessException):
    """Raised when attempting a milestone the record cannot take."""

    def __init__(self, current_status: str, attempted_status: str, entity_type: str = "TransitDetails", reason: str = ""):
        message = f"Invalid transition for {entity_type}: cannot move from {current_status} to {attempted_status}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message, "INVALID_TRANSITION", {
            "current_status": current_status,
            "attempted_status": attempted_status,
            "entity_type": entity_type
        })


class ValidationException(BusinessException):
    """Raised when data validation fails."""

    def __init__(self, message: str, field_errors: Dict[str, Any] = None):
        super().__init__(message, "VALIDATION_ERROR", field_errors or {})

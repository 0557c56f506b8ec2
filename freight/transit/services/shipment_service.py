"""
Shipment Service for the transit engine.
"""

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, transaction
from django.utils import timezone

from ..models import AuditLog, Bilty, ManualBilty, ShipmentSource, TransitDetails
from ..exceptions import (
    BusinessException, NotFoundException, StoreUnavailableException, ValidationException
)

logger = logging.getLogger(__name__)


class ShipmentService:
    """Service class for shipment lifecycle operations."""

    @staticmethod
    def cancel_shipment(source: str, shipment_id: str, context, reason: str = ""):
        """
        Cancel a bilty or manual bilty.

        A shipment loaded on a challan must be removed from it first.

        Args:
            source: 'bilty' or 'manual'
            shipment_id: Bilty or ManualBilty UUID
            context: BranchContext of the operator
            reason: Cancellation reason

        Returns:
            The cancelled instance

        Raises:
            ValidationException: If the source is unknown
            NotFoundException: If the shipment is missing
            BusinessException: If the shipment has an active transit record
        """
        if source not in ShipmentSource.values:
            raise ValidationException(
                f"Unknown shipment source '{source}'",
                {'source': f"Must be one of {', '.join(ShipmentSource.values)}"}
            )
        model = ManualBilty if source == ShipmentSource.MANUAL else Bilty
        transit_filter = 'manual_bilty' if source == ShipmentSource.MANUAL else 'bilty'

        try:
            with transaction.atomic():
                try:
                    shipment = model.objects.select_for_update().get(id=shipment_id)
                except (model.DoesNotExist, ValueError, DjangoValidationError):
                    raise NotFoundException(model.__name__, shipment_id)

                if not shipment.is_active:
                    logger.info(f"{model.__name__} {shipment.gr_no} already cancelled")
                    return shipment

                if TransitDetails.objects.active().filter(**{transit_filter: shipment}).exists():
                    raise BusinessException(
                        f"Shipment {shipment.gr_no} is loaded on a challan; remove it first",
                        "SHIPMENT_IN_TRANSIT",
                        {'gr_no': shipment.gr_no}
                    )

                shipment.is_active = False
                shipment.cancelled_at = timezone.now()
                shipment.save(update_fields=['is_active', 'cancelled_at'])

                AuditLog.log_change(
                    entity=shipment,
                    action='cancelled',
                    user=context.user,
                    old_values={'is_active': True},
                    new_values={'is_active': False, 'cancelled_at': shipment.cancelled_at},
                    notes=reason
                )
        except DatabaseError as e:
            logger.error(f"Failed to cancel {model.__name__} {shipment_id}: {str(e)}")
            raise StoreUnavailableException("cancel_shipment", e)

        logger.info(f"{model.__name__} {shipment.gr_no} cancelled")
        return shipment

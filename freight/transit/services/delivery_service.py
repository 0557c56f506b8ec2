"""
Delivery Service for the transit engine.

Advances one transit record at a time through its delivery milestones.
"""

import logging
from typing import List

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, transaction
from django.utils import timezone

from ..models import AuditLog, Challan, Milestone, TransitDetails
from ..exceptions import (
    ChallanLockedException, InvalidTransitionException, NotFoundException,
    StoreUnavailableException, ValidationException
)
from .workflow import DeliveryWorkflow, validate_delivery_workflow

logger = logging.getLogger(__name__)


def _as_milestone(milestone) -> Milestone:
    try:
        return Milestone(milestone)
    except ValueError:
        raise ValidationException(
            f"Unknown milestone '{milestone}'",
            {'milestone': f"Must be one of {', '.join(Milestone.values)}"}
        )


class DeliveryService:
    """Service class for delivery milestone operations."""

    @staticmethod
    def advance(transit_id: str, milestone: str, context) -> TransitDetails:
        """
        Set a delivery milestone on a single transit record.

        Re-submitting a milestone that is already set returns the record
        unchanged. Earlier milestones on the record's path that are still
        unset are stamped with the same time.

        Args:
            transit_id: TransitDetails UUID
            milestone: Milestone value to set
            context: BranchContext of the operator

        Returns:
            Updated TransitDetails instance

        Raises:
            ValidationException: If the milestone is unknown
            NotFoundException: If the record is missing
            ChallanLockedException: If the challan is dispatched
            InvalidTransitionException: If the record cannot take the milestone
            StoreUnavailableException: If the write fails
        """
        milestone = _as_milestone(milestone)

        try:
            with transaction.atomic():
                try:
                    transit = (
                        TransitDetails.objects.select_for_update()
                        .select_related('bilty__to_city', 'manual_bilty')
                        .get(id=transit_id)
                    )
                except (TransitDetails.DoesNotExist, ValueError, DjangoValidationError):
                    raise NotFoundException("TransitDetails", transit_id)

                challan = Challan.objects.select_for_update().get(id=transit.challan_id)
                transit.challan = challan

                if challan.is_locked:
                    raise ChallanLockedException(challan.challan_no, "update delivery status of")

                if not transit.is_active:
                    raise InvalidTransitionException(
                        DeliveryWorkflow.status_of(transit), milestone,
                        reason="transit record is deactivated"
                    )

                if transit.has_milestone(milestone):
                    logger.info(f"Milestone {milestone} already set on {transit.gr_no}; nothing to do")
                    return transit

                validate_delivery_workflow(transit, milestone)

                old_status = DeliveryWorkflow.status_of(transit)
                now = timezone.now()
                to_set = DeliveryWorkflow.milestones_to_set(transit, milestone)

                update_fields = ['updated_by', 'updated_at']
                for step in to_set:
                    update_fields.extend(transit.set_milestone(step, now))
                transit.updated_by = context.user
                transit.save(update_fields=update_fields)

                AuditLog.log_status_change(
                    entity=transit,
                    old_status=old_status,
                    new_status=DeliveryWorkflow.status_of(transit),
                    user=context.user,
                    notes=f"{milestone.label} for GR {transit.gr_no} (set: {', '.join(to_set)})"
                )
        except DatabaseError as e:
            logger.error(f"Failed to advance transit record {transit_id} to {milestone}: {str(e)}")
            raise StoreUnavailableException("advance", e)

        logger.info(f"GR {transit.gr_no} on challan {challan.challan_no} advanced to {milestone}")
        return transit

    @staticmethod
    def mark_out_for_delivery_from_branch2(transit_id: str, context) -> TransitDetails:
        return DeliveryService.advance(transit_id, Milestone.OUT_FOR_DELIVERY_FROM_BRANCH2, context)

    @staticmethod
    def mark_out_for_door_delivery(transit_id: str, context) -> TransitDetails:
        return DeliveryService.advance(transit_id, Milestone.DOOR_DELIVERY, context)

    @staticmethod
    def mark_delivered_at_branch2(transit_id: str, context) -> TransitDetails:
        return DeliveryService.advance(transit_id, Milestone.AT_BRANCH2, context)

    @staticmethod
    def available_transitions(transit_id: str) -> List[str]:
        """Milestones the record can be advanced to right now."""
        try:
            transit = (
                TransitDetails.objects.select_related('challan', 'bilty__to_city', 'manual_bilty')
                .get(id=transit_id)
            )
        except (TransitDetails.DoesNotExist, ValueError, DjangoValidationError):
            raise NotFoundException("TransitDetails", transit_id)
        return DeliveryWorkflow.available_transitions(transit)

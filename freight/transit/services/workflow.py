"""
Delivery workflow for transit records.

Defines the milestone paths per routing class, which milestones this
engine is allowed to set, and the status labels shown for a record.
"""

from typing import List, Optional

from django.conf import settings
from django.db import models

from ..exceptions import InvalidTransitionException
from ..models import Milestone, MILESTONE_ORDER, ShipmentSource, TransitDetails

PENDING = 'PENDING'


class RoutingClass(models.TextChoices):
    """Transition graph a transit record follows."""
    TWO_HOP = 'TWO_HOP', 'Two-hop'
    DIRECT = 'DIRECT', 'Direct destination'


class StatusLabel:
    NO_TRANSIT = 'No Transit'
    PENDING = 'Pending'
    IN_TRANSIT = 'In Transit'
    AT_BRANCH2 = 'At Branch 2'
    OUT_FROM_B2 = 'Out from B2'
    DOOR_DELIVERY = 'Door Delivery'
    DELIVERED = 'Delivered'


MILESTONE_LABELS = {
    Milestone.OUT_FROM_BRANCH1: StatusLabel.IN_TRANSIT,
    Milestone.AT_BRANCH2: StatusLabel.AT_BRANCH2,
    Milestone.OUT_FOR_DELIVERY_FROM_BRANCH2: StatusLabel.OUT_FROM_B2,
    Milestone.DOOR_DELIVERY: StatusLabel.DOOR_DELIVERY,
    Milestone.DELIVERED_AT_DESTINATION: StatusLabel.DELIVERED,
}

# Least to most advanced
STATUS_LABEL_ORDER = [
    StatusLabel.PENDING,
    StatusLabel.IN_TRANSIT,
    StatusLabel.AT_BRANCH2,
    StatusLabel.OUT_FROM_B2,
    StatusLabel.DOOR_DELIVERY,
    StatusLabel.DELIVERED,
]


def _engine_settings():
    return getattr(settings, 'TRANSIT_ENGINE', {})


class DeliveryWorkflow:
    """Workflow rules for TransitDetails milestone transitions."""

    PATHS = {
        RoutingClass.TWO_HOP: [
            Milestone.OUT_FROM_BRANCH1,
            Milestone.AT_BRANCH2,
            Milestone.OUT_FOR_DELIVERY_FROM_BRANCH2,
            Milestone.DOOR_DELIVERY,
            Milestone.DELIVERED_AT_DESTINATION,
        ],
        # Delivery at branch 2 is terminal on the direct graph
        RoutingClass.DIRECT: [
            Milestone.OUT_FROM_BRANCH1,
            Milestone.AT_BRANCH2,
            Milestone.DOOR_DELIVERY,
        ],
    }

    # Milestones this engine sets; the rest belong to the dispatch workflow
    # and to the destination branch.
    ENGINE_TRANSITIONS = {
        RoutingClass.TWO_HOP: [Milestone.OUT_FOR_DELIVERY_FROM_BRANCH2, Milestone.DOOR_DELIVERY],
        RoutingClass.DIRECT: [Milestone.AT_BRANCH2, Milestone.DOOR_DELIVERY],
    }

    @classmethod
    def routing_class(cls, transit: TransitDetails) -> str:
        """
        Direct graph for manual entries and for configured destination cities.
        """
        if transit.source == ShipmentSource.MANUAL:
            return RoutingClass.DIRECT

        destination = ''
        shipment = transit.shipment
        if shipment is not None and getattr(shipment, 'to_city', None) is not None:
            destination = shipment.to_city.city_name.lower()

        keywords = _engine_settings().get('DIRECT_DELIVERY_CITY_KEYWORDS', [])
        if destination and any(keyword in destination for keyword in keywords):
            return RoutingClass.DIRECT
        return RoutingClass.TWO_HOP

    @classmethod
    def is_door_delivery(cls, transit: TransitDetails) -> bool:
        shipment = transit.shipment
        if shipment is None:
            return False
        door_types = _engine_settings().get('DOOR_DELIVERY_TYPES', ['door'])
        return (shipment.delivery_type or '').lower() in door_types

    @classmethod
    def path_for(cls, transit: TransitDetails) -> List[str]:
        """Ordered milestones the record passes through."""
        path = cls.PATHS[cls.routing_class(transit)]
        if not cls.is_door_delivery(transit):
            path = [m for m in path if m != Milestone.DOOR_DELIVERY]
        return list(path)

    @classmethod
    def status_of(cls, transit: TransitDetails) -> str:
        highest = transit.highest_milestone
        return highest.value if highest else PENDING

    @classmethod
    def validate_transition(cls, transit: TransitDetails, milestone: str) -> None:
        """
        Validate that this engine may set the milestone on the record.

        Args:
            transit: TransitDetails instance
            milestone: Milestone to set

        Raises:
            InvalidTransitionException: If transition is not allowed
        """
        current_status = cls.status_of(transit)

        if not transit.is_active:
            raise InvalidTransitionException(
                current_status, milestone, reason="transit record is deactivated"
            )

        routing = cls.routing_class(transit)
        if milestone not in cls.ENGINE_TRANSITIONS[routing]:
            raise InvalidTransitionException(
                current_status, milestone,
                reason=f"not set by this engine on the {routing} graph"
            )

        if milestone not in cls.path_for(transit):
            raise InvalidTransitionException(
                current_status, milestone, reason="shipment is not booked for door delivery"
            )

        if not transit.has_milestone(Milestone.OUT_FROM_BRANCH1):
            raise InvalidTransitionException(
                current_status, milestone, reason="shipment has not left the origin branch"
            )

    @classmethod
    def milestones_to_set(cls, transit: TransitDetails, milestone: str) -> List[str]:
        """Unset milestones on the path up to and including the target."""
        path = cls.path_for(transit)
        upto = path[:path.index(milestone) + 1]
        return [m for m in upto if not transit.has_milestone(m)]

    @classmethod
    def available_transitions(cls, transit: TransitDetails) -> List[str]:
        """Milestones the record can be advanced to right now."""
        if not transit.is_active or transit.challan.is_dispatched:
            return []
        allowed = []
        for milestone in cls.ENGINE_TRANSITIONS[cls.routing_class(transit)]:
            if transit.has_milestone(milestone):
                continue
            try:
                cls.validate_transition(transit, milestone)
            except InvalidTransitionException:
                continue
            allowed.append(milestone.value)
        return allowed


def status_label(transit: Optional[TransitDetails]) -> str:
    """Display label from the highest milestone set on a record."""
    if transit is None:
        return StatusLabel.NO_TRANSIT
    highest = transit.highest_milestone
    if highest is None:
        return StatusLabel.PENDING
    return MILESTONE_LABELS[highest]


def least_advanced_label(labels: List[str]) -> str:
    """Label of the least advanced record, or 'No Transit' for none."""
    if not labels:
        return StatusLabel.NO_TRANSIT
    return min(labels, key=STATUS_LABEL_ORDER.index)


def validate_delivery_workflow(transit: TransitDetails, milestone: str) -> None:
    """
    Validate delivery workflow transition.

    Args:
        transit: TransitDetails instance
        milestone: Milestone to set

    Raises:
        InvalidTransitionException: If transition is not allowed
    """
    DeliveryWorkflow.validate_transition(transit, milestone)

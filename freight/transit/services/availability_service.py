"""
Availability Service for the transit engine.

Computes which shipments of a branch can still be loaded onto a challan.
"""

import logging
from typing import Any, Dict, Iterable, List, Set

from ..models import TransitDetails
from ..adapters.shipment_adapter import get_shipment_adapter
from ..exceptions import ValidationException
from .ordering import sort_by_gr_number, sort_by_destination_city

logger = logging.getLogger(__name__)

ORDER_BY_GR = 'gr'
ORDER_BY_DESTINATION = 'destination'
ORDERINGS = (ORDER_BY_GR, ORDER_BY_DESTINATION)


def filter_available(pool: Iterable[Dict[str, Any]], assigned_gr_nos: Set[str],
                     order_by: str = ORDER_BY_GR) -> List[Dict[str, Any]]:
    """
    Drop shipments that already have an active transit record.

    Args:
        pool: Candidate shipment dicts (already branch/status filtered)
        assigned_gr_nos: GR numbers of active transit records
        order_by: 'gr' or 'destination'

    Returns:
        Ordered list of available shipment dicts
    """
    if order_by not in ORDERINGS:
        raise ValidationException(
            f"Unknown ordering '{order_by}'",
            {'order_by': f"Must be one of {', '.join(ORDERINGS)}"}
        )

    available = [shipment for shipment in pool if shipment.get('gr_no') not in assigned_gr_nos]

    if order_by == ORDER_BY_DESTINATION:
        return sort_by_destination_city(available)
    return sort_by_gr_number(available)


class AvailabilityService:
    """Service class for shipment availability."""

    @staticmethod
    def get_assigned_gr_numbers(branch) -> Set[str]:
        """GR numbers with an active transit record originating at the branch."""
        return set(
            TransitDetails.objects.active()
            .from_branch(branch)
            .values_list('gr_no', flat=True)
        )

    @staticmethod
    def get_available_shipments(context, order_by: str = ORDER_BY_GR) -> List[Dict[str, Any]]:
        """
        Shipments of the operator's branch not attached to any active transit record.

        Always reads the current transit state; callers must re-fetch after
        every assignment or removal.

        Args:
            context: BranchContext of the operator
            order_by: 'gr' or 'destination'

        Returns:
            Ordered list of shipment dicts
        """
        pool = get_shipment_adapter().list_pool(context.branch)
        assigned = AvailabilityService.get_assigned_gr_numbers(context.branch)
        available = filter_available(pool, assigned, order_by)

        logger.info(
            f"Branch {context.branch.code}: {len(available)} available of {len(pool)} shipments "
            f"({len(assigned)} in transit)"
        )
        return available

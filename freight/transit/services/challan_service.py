"""
Challan Service for the transit engine.

Read-side aggregates of a challan plus numbering of new challans from a
challan book.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, transaction

from ..models import (
    AuditLog, Challan, ChallanBook, City, PaymentMode, ShipmentSource, TransitDetails
)
from ..adapters.shipment_adapter import bilty_to_shipment, manual_bilty_to_shipment
from ..exceptions import (
    BusinessException, NotFoundException, StoreUnavailableException, ValidationException
)
from .ordering import sort_by_destination_city, sort_by_gr_number
from .workflow import DeliveryWorkflow, least_advanced_label, status_label

logger = logging.getLogger(__name__)


def _get_challan(challan_id) -> Challan:
    try:
        return Challan.objects.select_related('branch', 'challan_book').get(id=challan_id)
    except (Challan.DoesNotExist, ValueError, DjangoValidationError):
        raise NotFoundException("Challan", challan_id)


def _active_transit(challan) -> List[TransitDetails]:
    return list(
        TransitDetails.objects.active()
        .for_challan(challan)
        .select_related('challan', 'bilty__to_city', 'manual_bilty', 'to_branch')
    )


def _shipment_rows(transit_records: List[TransitDetails]) -> List[Dict[str, Any]]:
    """Shipment dict per transit record, with its transit fields merged in."""
    stations = {t.manual_bilty.station for t in transit_records if t.manual_bilty_id}
    cities = {city.city_code: city for city in City.objects.filter(city_code__in=stations)}

    rows = []
    for transit in transit_records:
        if transit.source == ShipmentSource.MANUAL and transit.manual_bilty is not None:
            shipment = manual_bilty_to_shipment(transit.manual_bilty, cities.get(transit.manual_bilty.station))
        elif transit.bilty is not None:
            shipment = bilty_to_shipment(transit.bilty)
        else:
            shipment = {'gr_no': transit.gr_no, 'to_city_name': 'Unknown'}

        shipment.update({
            'transit_id': transit.id,
            'gr_no': transit.gr_no,
            'challan_no': transit.challan.challan_no,
            'to_branch': transit.to_branch.code,
            'status': DeliveryWorkflow.status_of(transit),
            'status_label': status_label(transit),
            'available_transitions': DeliveryWorkflow.available_transitions(transit),
        })
        rows.append(shipment)
    return rows


class ChallanService:
    """Service class for challan operations."""

    @staticmethod
    def get_challan_summary(challan_id: str) -> Dict[str, Any]:
        """
        Recompute the aggregate view of a challan from its active transit records.

        Args:
            challan_id: Challan UUID

        Returns:
            Counts, totals per payment mode and the challan status label
        """
        challan = _get_challan(challan_id)
        transit_records = _active_transit(challan)
        shipments = _shipment_rows(transit_records)

        modes = [mode.value for mode in PaymentMode]
        packages_by_mode = {mode: 0 for mode in modes}
        weight_by_mode = {mode: Decimal('0.00') for mode in modes}
        amounts_by_mode = {mode: Decimal('0.00') for mode in modes}

        for shipment in shipments:
            mode = shipment.get('payment_mode')
            if mode not in packages_by_mode:
                continue
            packages_by_mode[mode] += shipment.get('no_of_pkg') or 0
            weight_by_mode[mode] += shipment.get('wt') or Decimal('0.00')
            amounts_by_mode[mode] += shipment.get('total') or Decimal('0.00')

        labels = [row['status_label'] for row in shipments]
        status_counts = {}
        for label in labels:
            status_counts[label] = status_counts.get(label, 0) + 1

        count = len(transit_records)
        if count != challan.total_bilty_count:
            logger.warning(
                f"Challan {challan.challan_no}: stored count {challan.total_bilty_count} "
                f"differs from {count} active transit records"
            )

        return {
            'challan_id': challan.id,
            'challan_no': challan.challan_no,
            'is_dispatched': challan.is_dispatched,
            'count': count,
            'stored_count': challan.total_bilty_count,
            'packages': sum(packages_by_mode.values()),
            'weight': sum(weight_by_mode.values(), Decimal('0.00')),
            'amount': sum(amounts_by_mode.values(), Decimal('0.00')),
            'packages_by_mode': packages_by_mode,
            'weight_by_mode': weight_by_mode,
            'amounts_by_mode': amounts_by_mode,
            'status_counts': status_counts,
            'status_label': least_advanced_label(labels),
        }

    @staticmethod
    def get_transit_records(challan_id: str, order_by: str = 'destination') -> List[Dict[str, Any]]:
        """Active transit records of a challan with their shipment data."""
        challan = _get_challan(challan_id)
        rows = _shipment_rows(_active_transit(challan))
        if order_by == 'gr':
            return sort_by_gr_number(rows)
        return sort_by_destination_city(rows)

    @staticmethod
    def create_challan(challan_book_id: str, data: Dict[str, Any], context) -> Challan:
        """
        Create a challan numbered from a challan book.

        Args:
            challan_book_id: ChallanBook UUID
            data: Vehicle details (truck_no, driver_name, owner_name, date, remarks)
            context: BranchContext of the operator

        Returns:
            Created Challan instance

        Raises:
            NotFoundException: If the book is missing
            BusinessException: If the book is completed or inactive
            ValidationException: If the generated number is already in use
        """
        try:
            with transaction.atomic():
                try:
                    book = ChallanBook.objects.select_for_update().get(id=challan_book_id)
                except (ChallanBook.DoesNotExist, ValueError, DjangoValidationError):
                    raise NotFoundException("ChallanBook", challan_book_id)

                if not book.is_usable:
                    raise BusinessException(
                        f"Challan book {book} is {'completed' if book.is_completed else 'inactive'}",
                        "CHALLAN_BOOK_UNUSABLE",
                        {'challan_book_id': str(book.id)}
                    )

                challan_no = book.generate_challan_no()
                if Challan.objects.filter(challan_no=challan_no).exists():
                    raise ValidationException(
                        f"Challan number {challan_no} is already in use",
                        {'challan_no': challan_no}
                    )

                fields = {
                    key: data[key]
                    for key in ('truck_no', 'driver_name', 'owner_name', 'date', 'remarks')
                    if data.get(key) is not None
                }
                challan = Challan.objects.create(
                    challan_no=challan_no,
                    branch=context.branch,
                    challan_book=book,
                    created_by=context.user,
                    **fields
                )
                book.advance()

                AuditLog.log_change(
                    entity=challan,
                    action='created',
                    user=context.user,
                    new_values={'challan_no': challan_no, **fields},
                    notes=f"Challan {challan_no} issued from book {book.id}",
                    metadata={'next_number': book.current_number, 'book_completed': book.is_completed}
                )
        except DatabaseError as e:
            logger.error(f"Failed to create challan from book {challan_book_id}: {str(e)}")
            raise StoreUnavailableException("create_challan", e)

        logger.info(f"Challan {challan.challan_no} created at branch {context.branch.code}")
        return challan

    @staticmethod
    def reconcile_count(challan_id: str, context) -> Dict[str, Any]:
        """
        Reset total_bilty_count to the number of active transit records.

        Returns:
            challan_no, previous_count, new_count and drift
        """
        try:
            with transaction.atomic():
                try:
                    challan = Challan.objects.select_for_update().get(id=challan_id)
                except (Challan.DoesNotExist, ValueError, DjangoValidationError):
                    raise NotFoundException("Challan", challan_id)

                previous = challan.total_bilty_count
                live = TransitDetails.objects.active().for_challan(challan).count()
                drift = previous - live

                if drift:
                    logger.warning(
                        f"Challan {challan.challan_no}: count drifted by {drift} "
                        f"(stored {previous}, live {live})"
                    )
                    challan.total_bilty_count = live
                    challan.save(update_fields=['total_bilty_count', 'updated_at'])

                AuditLog.log_change(
                    entity=challan,
                    action='count_reconciled',
                    user=context.user,
                    old_values={'total_bilty_count': previous},
                    new_values={'total_bilty_count': live},
                    notes=f"Drift {drift}"
                )
        except DatabaseError as e:
            logger.error(f"Failed to reconcile challan {challan_id}: {str(e)}")
            raise StoreUnavailableException("reconcile_count", e)

        return {
            'challan_no': challan.challan_no,
            'previous_count': previous,
            'new_count': live,
            'drift': drift,
        }

"""
Transit Service for the Transit & Challan Assignment engine.

Assigns shipments to challans and removes them again, keeping the
challan's bilty count in step with its active transit records.
"""

import logging
from typing import Any, Dict, List, Iterable

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from ..models import (
    AuditLog, Challan, ChallanBook, ShipmentSource, TransitDetails
)
from ..adapters.shipment_adapter import get_shipment_adapter
from ..exceptions import (
    AlreadyInTransitException, BusinessException, ChallanLockedException,
    EmptySelectionException, NotFoundException, PartialBatchFailureException,
    StoreUnavailableException, ValidationException
)

logger = logging.getLogger(__name__)

OUTCOME_NONE = 'NONE'
OUTCOME_PARTIAL = 'PARTIAL'
OUTCOME_FULL = 'FULL'


def _dedupe(values: Iterable) -> List:
    seen = set()
    unique = []
    for value in values:
        if value and value not in seen:
            seen.add(value)
            unique.append(value)
    return unique


class TransitService:
    """Service class for challan assignment operations."""

    @staticmethod
    def _lock_challan(challan_id) -> Challan:
        try:
            return Challan.objects.select_for_update().get(id=challan_id, is_active=True)
        except (Challan.DoesNotExist, ValueError, DjangoValidationError):
            raise NotFoundException("Challan", challan_id)

    @staticmethod
    def assign_to_challan(challan_id: str, challan_book_id: str, gr_nos: List[str], context) -> Dict[str, Any]:
        """
        Assign a batch of shipments to a challan.

        Args:
            challan_id: Challan UUID
            challan_book_id: ChallanBook UUID supplying the destination branch
            gr_nos: GR numbers of the selected shipments
            context: BranchContext of the operator

        Returns:
            Assignment results with the new bilty count and per-GR errors

        Raises:
            NotFoundException: If the challan or challan book is missing
            ChallanLockedException: If the challan is dispatched
            ValidationException: If the challan or book belongs to another branch
            EmptySelectionException: If no GR numbers were given
            AlreadyInTransitException: If a concurrent assignment won the race
            StoreUnavailableException: If the batch write fails
        """
        gr_nos = _dedupe(gr_nos or [])

        try:
            with transaction.atomic():
                challan = TransitService._lock_challan(challan_id)

                if challan.is_locked:
                    raise ChallanLockedException(challan.challan_no, "assign shipments to")

                try:
                    challan_book = ChallanBook.objects.select_related('to_branch').get(id=challan_book_id)
                except (ChallanBook.DoesNotExist, ValueError, DjangoValidationError):
                    raise NotFoundException("ChallanBook", challan_book_id)

                if challan.branch_id != context.branch_id:
                    raise ValidationException(
                        f"Challan {challan.challan_no} belongs to another branch",
                        {'challan_id': f"Not a challan of branch {context.branch.code}"}
                    )
                if challan_book.from_branch_id != context.branch_id:
                    raise ValidationException(
                        f"Challan book {challan_book.id} is not issued for branch {context.branch.code}",
                        {'challan_book_id': f"Not a challan book of branch {context.branch.code}"}
                    )

                if not gr_nos:
                    raise EmptySelectionException()

                shipments = get_shipment_adapter().resolve(context.branch, gr_nos)
                in_transit = set(
                    TransitDetails.objects.active()
                    .filter(gr_no__in=gr_nos)
                    .values_list('gr_no', flat=True)
                )

                errors = []
                rows = []
                for gr_no in gr_nos:
                    shipment = shipments.get(gr_no)
                    if shipment is None:
                        errors.append({
                            'gr_no': gr_no,
                            'code': 'NOT_FOUND',
                            'message': f"No saved shipment {gr_no} at branch {context.branch.code}"
                        })
                        continue
                    if gr_no in in_transit:
                        errors.append({
                            'gr_no': gr_no,
                            'code': 'ALREADY_IN_TRANSIT',
                            'message': f"Shipment {gr_no} is already assigned to a challan"
                        })
                        continue

                    is_manual = shipment['source'] == ShipmentSource.MANUAL
                    rows.append(TransitDetails(
                        gr_no=gr_no,
                        challan=challan,
                        challan_book=challan_book,
                        source=shipment['source'],
                        bilty_id=None if is_manual else shipment['id'],
                        manual_bilty_id=shipment['id'] if is_manual else None,
                        from_branch=context.branch,
                        to_branch=challan_book.to_branch,
                        created_by=context.user,
                    ))

                if rows:
                    TransitDetails.objects.bulk_create(rows)

                    old_count = challan.total_bilty_count
                    challan.total_bilty_count = old_count + len(rows)
                    challan.save(update_fields=['total_bilty_count', 'updated_at'])

                    AuditLog.log_change(
                        entity=challan,
                        action='shipments_assigned',
                        user=context.user,
                        old_values={'total_bilty_count': old_count},
                        new_values={'total_bilty_count': challan.total_bilty_count},
                        notes=f"Assigned {len(rows)} shipment(s) to challan {challan.challan_no}",
                        metadata={'gr_nos': [row.gr_no for row in rows]}
                    )

        except IntegrityError as e:
            # A concurrent assignment committed one of these GR numbers first
            logger.error(f"Unique transit constraint hit while assigning to challan {challan_id}: {str(e)}")
            raise AlreadyInTransitException(gr_nos)
        except DatabaseError as e:
            logger.error(f"Failed to assign shipments to challan {challan_id}: {str(e)}")
            raise StoreUnavailableException("assign_to_challan", e)

        if errors:
            logger.warning(f"Challan {challan.challan_no}: {len(errors)} shipment(s) rejected during assignment")
        logger.info(
            f"Challan {challan.challan_no}: assigned {len(rows)} shipment(s), "
            f"count now {challan.total_bilty_count}"
        )
        return {
            'success': bool(rows),
            'challan_no': challan.challan_no,
            'assigned_count': len(rows),
            'assigned_gr_nos': [row.gr_no for row in rows],
            'new_count': challan.total_bilty_count,
            'errors': errors,
        }

    @staticmethod
    def _remove(transit_id, context, reason: str) -> Dict[str, Any]:
        """Deactivate one transit record. Must run inside a transaction."""
        try:
            transit = TransitDetails.objects.select_for_update().get(id=transit_id)
        except (TransitDetails.DoesNotExist, ValueError, DjangoValidationError):
            raise NotFoundException("TransitDetails", transit_id)

        challan = Challan.objects.select_for_update().get(id=transit.challan_id)

        if challan.is_locked:
            raise ChallanLockedException(challan.challan_no, "remove shipments from")

        if not transit.is_active:
            raise BusinessException(
                f"Transit record for {transit.gr_no} was already removed",
                "TRANSIT_ALREADY_REMOVED",
                {'transit_id': str(transit.id)}
            )

        transit.deactivate(reason, user=context.user)

        old_count = challan.total_bilty_count
        challan.total_bilty_count = max(0, old_count - 1)
        challan.save(update_fields=['total_bilty_count', 'updated_at'])

        AuditLog.log_change(
            entity=transit,
            action='removed_from_transit',
            user=context.user,
            old_values={'state': 'ACTIVE'},
            new_values={'state': transit.state, 'deactivated_at': transit.deactivated_at},
            notes=reason or f"Removed {transit.gr_no} from challan {challan.challan_no}",
            metadata={'challan_no': challan.challan_no, 'total_bilty_count': challan.total_bilty_count}
        )

        return {
            'success': True,
            'transit_id': transit.id,
            'gr_no': transit.gr_no,
            'challan_no': challan.challan_no,
            'new_count': challan.total_bilty_count,
        }

    @staticmethod
    def remove_from_transit(transit_id: str, context, reason: str = "") -> Dict[str, Any]:
        """
        Remove one shipment from its challan.

        Args:
            transit_id: TransitDetails UUID
            context: BranchContext of the operator
            reason: Why the shipment was taken off the challan

        Returns:
            Removal result with the challan's new bilty count

        Raises:
            NotFoundException: If the record is missing
            ChallanLockedException: If the challan is dispatched
            BusinessException: If the record was already removed
            StoreUnavailableException: If the write fails
        """
        try:
            with transaction.atomic():
                result = TransitService._remove(transit_id, context, reason)
        except DatabaseError as e:
            logger.error(f"Failed to remove transit record {transit_id}: {str(e)}")
            raise StoreUnavailableException("remove_from_transit", e)

        logger.info(f"Removed {result['gr_no']} from challan {result['challan_no']}, count now {result['new_count']}")
        return result

    @staticmethod
    def bulk_remove(transit_ids: List[str], context, reason: str = "") -> Dict[str, Any]:
        """
        Remove several shipments, each under the single-removal rules.

        Every record is removed in its own savepoint, so one failure does
        not undo the others.

        Args:
            transit_ids: TransitDetails UUIDs
            context: BranchContext of the operator
            reason: Why the shipments were taken off

        Returns:
            Bulk result when every record was removed

        Raises:
            EmptySelectionException: If no ids were given
            PartialBatchFailureException: If any record failed; details hold the
                full result including failed_ids
        """
        transit_ids = _dedupe(str(transit_id) for transit_id in (transit_ids or []))
        if not transit_ids:
            raise EmptySelectionException("No transit records selected")

        removed_ids = []
        failures = []
        new_counts = {}

        for transit_id in transit_ids:
            try:
                with transaction.atomic():
                    result = TransitService._remove(transit_id, context, reason)
                removed_ids.append(transit_id)
                new_counts[result['challan_no']] = result['new_count']
            except BusinessException as e:
                failures.append({'transit_id': transit_id, 'code': e.code, 'message': e.message})
            except DatabaseError as e:
                logger.error(f"Failed to remove transit record {transit_id}: {str(e)}")
                failures.append({'transit_id': transit_id, 'code': 'STORE_UNAVAILABLE', 'message': str(e)})

        if not failures:
            outcome = OUTCOME_FULL
        elif removed_ids:
            outcome = OUTCOME_PARTIAL
        else:
            outcome = OUTCOME_NONE

        result = {
            'success': outcome == OUTCOME_FULL,
            'outcome': outcome,
            'removed_count': len(removed_ids),
            'removed_ids': removed_ids,
            'failed_ids': [failure['transit_id'] for failure in failures],
            'failures': failures,
            'new_counts': new_counts,
            'completed_at': timezone.now().isoformat(),
        }

        logger.info(f"Bulk removal: {len(removed_ids)} removed, {len(failures)} failed ({outcome})")

        if failures:
            raise PartialBatchFailureException(
                f"Removed {len(removed_ids)} of {len(transit_ids)} transit record(s)",
                result
            )
        return result

"""
Tests for challan assignment and removal.
"""

from unittest import mock

from django.db import DatabaseError, IntegrityError, transaction

from ..models import AuditLog, Branch, ChallanBook, TransitDetails, TransitState
from ..services import AvailabilityService, TransitService
from ..exceptions import (
    AlreadyInTransitException, ChallanLockedException, EmptySelectionException,
    NotFoundException, PartialBatchFailureException, BusinessException,
    StoreUnavailableException, ValidationException
)
from .base import TransitTestCase


class AssignmentTest(TransitTestCase):
    """Test assigning shipments to challans."""

    def setUp(self):
        super().setUp()
        self.create_bilty('A1')
        self.create_bilty('A2')
        self.create_manual_bilty('M1')

    def assertCountMatchesLiveRows(self, challan):
        challan.refresh_from_db()
        live = TransitDetails.objects.active().for_challan(challan).count()
        self.assertEqual(challan.total_bilty_count, live)

    def test_assign_creates_transit_rows_and_increments_count(self):
        result = self.assign(['A1', 'A2', 'M1'])

        self.assertTrue(result['success'])
        self.assertEqual(result['assigned_count'], 3)
        self.assertEqual(result['new_count'], 3)
        self.assertEqual(result['errors'], [])

        transit = self.transit_for('M1')
        self.assertEqual(transit.source, 'manual')
        self.assertIsNotNone(transit.manual_bilty)
        self.assertIsNone(transit.bilty)
        self.assertEqual(transit.from_branch, self.branch1)
        self.assertEqual(transit.to_branch, self.branch2)
        self.assertFalse(transit.is_out_of_delivery_from_branch1)
        self.assertCountMatchesLiveRows(self.challan)

        self.assertTrue(AuditLog.objects.filter(entity_id=self.challan.id, action='shipments_assigned').exists())

    def test_repeated_assignment_is_rejected_per_gr(self):
        self.assign(['A1'])
        other = self.create_challan('AL0002')

        result = self.assign(['A1', 'A2'], challan=other)

        self.assertTrue(result['success'])
        self.assertEqual(result['assigned_gr_nos'], ['A2'])
        self.assertEqual(result['errors'][0]['gr_no'], 'A1')
        self.assertEqual(result['errors'][0]['code'], 'ALREADY_IN_TRANSIT')
        self.assertEqual(TransitDetails.objects.active().filter(gr_no='A1').count(), 1)
        self.assertCountMatchesLiveRows(self.challan)
        self.assertCountMatchesLiveRows(other)

    def test_all_rejected_leaves_count_unchanged(self):
        result = self.assign(['NOPE1', 'NOPE2'])

        self.assertFalse(result['success'])
        self.assertEqual(result['assigned_count'], 0)
        self.assertEqual([e['code'] for e in result['errors']], ['NOT_FOUND', 'NOT_FOUND'])
        self.challan.refresh_from_db()
        self.assertEqual(self.challan.total_bilty_count, 0)

    def test_duplicate_gr_numbers_in_one_request_assign_once(self):
        result = self.assign(['A1', 'A1'])
        self.assertEqual(result['assigned_count'], 1)
        self.assertCountMatchesLiveRows(self.challan)

    def test_empty_selection(self):
        with self.assertRaises(EmptySelectionException):
            self.assign([])

    def test_unknown_challan(self):
        with self.assertRaises(NotFoundException):
            TransitService.assign_to_challan('not-a-uuid', str(self.book.id), ['A1'], self.context)

    def test_dispatched_challan_rejects_assignment(self):
        self.dispatch()

        with self.assertRaises(ChallanLockedException):
            self.assign(['A1'])

        self.assertEqual(TransitDetails.objects.count(), 0)
        self.challan.refresh_from_db()
        self.assertEqual(self.challan.total_bilty_count, 0)


class RemovalTest(TransitTestCase):
    """Test removing shipments from challans."""

    def setUp(self):
        super().setUp()
        for gr_no in ['A1', 'A2', 'A3']:
            self.create_bilty(gr_no)
        self.assign(['A1', 'A2', 'A3'])

    def test_remove_soft_deletes_and_decrements(self):
        transit = self.transit_for('A1')

        result = TransitService.remove_from_transit(str(transit.id), self.context, 'wrong truck')

        self.assertTrue(result['success'])
        self.assertEqual(result['new_count'], 2)
        transit.refresh_from_db()
        self.assertEqual(transit.state, TransitState.DEACTIVATED)
        self.assertEqual(transit.deactivation_reason, 'wrong truck')
        self.assertIsNotNone(transit.deactivated_at)
        self.assertEqual(transit.updated_by, self.user)
        self.assertTrue(AuditLog.objects.filter(entity_id=transit.id, action='removed_from_transit').exists())

    def test_removing_twice_fails(self):
        transit_id = str(self.transit_for('A1').id)
        TransitService.remove_from_transit(transit_id, self.context)

        with self.assertRaises(BusinessException) as ctx:
            TransitService.remove_from_transit(transit_id, self.context)
        self.assertEqual(ctx.exception.code, 'TRANSIT_ALREADY_REMOVED')

        self.challan.refresh_from_db()
        self.assertEqual(self.challan.total_bilty_count, 2)

    def test_dispatched_challan_rejects_removal(self):
        transit = self.transit_for('A1')
        self.dispatch()

        with self.assertRaises(ChallanLockedException):
            TransitService.remove_from_transit(str(transit.id), self.context)

        transit.refresh_from_db()
        self.assertTrue(transit.is_active)
        self.challan.refresh_from_db()
        self.assertEqual(self.challan.total_bilty_count, 3)

    def test_reassignment_after_removal(self):
        TransitService.remove_from_transit(str(self.transit_for('A1').id), self.context)
        other = self.create_challan('AL0002')

        result = self.assign(['A1'], challan=other)

        self.assertEqual(result['assigned_count'], 1)
        self.assertEqual(TransitDetails.objects.filter(gr_no='A1').count(), 2)
        self.assertEqual(self.transit_for('A1').challan, other)

    def test_bulk_remove_all(self):
        ids = [str(self.transit_for(gr).id) for gr in ['A1', 'A2']]

        result = TransitService.bulk_remove(ids, self.context)

        self.assertEqual(result['outcome'], 'FULL')
        self.assertEqual(result['removed_count'], 2)
        self.assertEqual(result['new_counts'][self.challan.challan_no], 1)

    def test_bulk_remove_partial_failure_reports_failed_ids(self):
        removed = str(self.transit_for('A1').id)
        TransitService.remove_from_transit(removed, self.context)
        remaining = str(self.transit_for('A2').id)

        with self.assertRaises(PartialBatchFailureException) as ctx:
            TransitService.bulk_remove([removed, remaining], self.context)

        exc = ctx.exception
        self.assertEqual(exc.failed_ids, [removed])
        self.assertEqual(exc.details['outcome'], 'PARTIAL')
        self.assertEqual(exc.details['removed_ids'], [remaining])
        self.challan.refresh_from_db()
        self.assertEqual(self.challan.total_bilty_count, 1)

    def test_bulk_remove_nothing_removed(self):
        self.dispatch()
        ids = [str(self.transit_for(gr).id) for gr in ['A1', 'A2']]

        with self.assertRaises(PartialBatchFailureException) as ctx:
            TransitService.bulk_remove(ids, self.context)

        self.assertEqual(ctx.exception.details['outcome'], 'NONE')
        self.assertEqual(
            {f['code'] for f in ctx.exception.details['failures']},
            {'CHALLAN_LOCKED'}
        )

    def test_bulk_remove_empty(self):
        with self.assertRaises(EmptySelectionException):
            TransitService.bulk_remove([], self.context)


class ExclusivityScenarioTest(TransitTestCase):
    """Walk one shipment through assign, conflicting assign, remove and reassign."""

    def test_shipment_moves_between_challans(self):
        self.create_bilty('G1')
        x1 = self.challan
        x2 = self.create_challan('AL0002')

        self.assign(['G1'], challan=x1)
        self.assertNotIn('G1', [s['gr_no'] for s in AvailabilityService.get_available_shipments(self.context)])

        result = self.assign(['G1'], challan=x2)
        self.assertFalse(result['success'])
        self.assertEqual(result['errors'][0]['code'], 'ALREADY_IN_TRANSIT')

        TransitService.remove_from_transit(str(self.transit_for('G1').id), self.context)
        self.assertIn('G1', [s['gr_no'] for s in AvailabilityService.get_available_shipments(self.context)])

        result = self.assign(['G1'], challan=x2)
        self.assertTrue(result['success'])

        x1.refresh_from_db()
        x2.refresh_from_db()
        self.assertEqual(x1.total_bilty_count, 0)
        self.assertEqual(x2.total_bilty_count, 1)
        self.assertEqual(TransitDetails.objects.active().filter(gr_no='G1').count(), 1)


class BranchOwnershipTest(TransitTestCase):
    """Test that operators only load challans of their own branch."""

    def setUp(self):
        super().setUp()
        self.create_bilty('A1')
        self.branch3 = Branch.objects.create(name='Agra Depot', code='AGR1', city=self.agra)

    def test_challan_of_another_branch_is_rejected(self):
        foreign = self.create_challan('DL0001')
        foreign.branch = self.branch2
        foreign.save(update_fields=['branch'])

        with self.assertRaises(ValidationException):
            self.assign(['A1'], challan=foreign)

        self.assertEqual(TransitDetails.objects.count(), 0)

    def test_book_of_another_branch_is_rejected(self):
        foreign_book = ChallanBook.objects.create(
            prefix='DL', from_branch=self.branch2, to_branch=self.branch3
        )

        with self.assertRaises(ValidationException):
            TransitService.assign_to_challan(
                str(self.challan.id), str(foreign_book.id), ['A1'], self.context
            )

        self.challan.refresh_from_db()
        self.assertEqual(self.challan.total_bilty_count, 0)


class StoreFailureTest(TransitTestCase):
    """Test how datastore errors surface from assignment and removal."""

    def setUp(self):
        super().setUp()
        self.bilty = self.create_bilty('A1')
        self.create_bilty('A2')

    def test_active_gr_number_is_unique_in_the_store(self):
        self.assign(['A1'])
        other = self.create_challan('AL0002')

        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                TransitDetails.objects.create(
                    gr_no='A1',
                    challan=other,
                    challan_book=self.book,
                    bilty=self.bilty,
                    from_branch=self.branch1,
                    to_branch=self.branch2
                )

        self.assertEqual(TransitDetails.objects.filter(gr_no='A1').count(), 1)

    def test_lost_race_on_unique_constraint(self):
        with mock.patch.object(TransitDetails.objects, 'bulk_create', side_effect=IntegrityError('unique')):
            with self.assertRaises(AlreadyInTransitException) as ctx:
                self.assign(['A1', 'A2'])

        self.assertEqual(ctx.exception.details['gr_nos'], ['A1', 'A2'])
        self.challan.refresh_from_db()
        self.assertEqual(self.challan.total_bilty_count, 0)

    def test_store_failure_during_assignment(self):
        with mock.patch.object(TransitDetails.objects, 'bulk_create', side_effect=DatabaseError('connection lost')):
            with self.assertRaises(StoreUnavailableException):
                self.assign(['A1'])

        self.challan.refresh_from_db()
        self.assertEqual(self.challan.total_bilty_count, 0)

    def test_store_failure_during_removal(self):
        self.assign(['A1'])
        transit = self.transit_for('A1')

        with mock.patch.object(TransitDetails, 'deactivate', side_effect=DatabaseError('connection lost')):
            with self.assertRaises(StoreUnavailableException):
                TransitService.remove_from_transit(str(transit.id), self.context)

        transit.refresh_from_db()
        self.assertTrue(transit.is_active)
        self.challan.refresh_from_db()
        self.assertEqual(self.challan.total_bilty_count, 1)

    def test_store_failure_is_reported_per_record_in_bulk(self):
        self.assign(['A1', 'A2'])
        ids = [str(self.transit_for(gr).id) for gr in ['A1', 'A2']]

        with mock.patch.object(TransitDetails, 'deactivate', side_effect=DatabaseError('connection lost')):
            with self.assertRaises(PartialBatchFailureException) as ctx:
                TransitService.bulk_remove(ids, self.context)

        result = ctx.exception.details
        self.assertEqual(result['outcome'], 'NONE')
        self.assertEqual(result['failed_ids'], ids)
        self.assertEqual({f['code'] for f in result['failures']}, {'STORE_UNAVAILABLE'})
        self.challan.refresh_from_db()
        self.assertEqual(self.challan.total_bilty_count, 2)

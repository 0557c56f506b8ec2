"""
Tests for delivery milestones.
"""

from unittest import mock

from django.db import DatabaseError
from django.test import override_settings

from ..models import AuditLog, Milestone, MILESTONE_ORDER, DeliveryType, TransitDetails
from ..services import DeliveryService, DeliveryWorkflow, RoutingClass, TransitService
from ..exceptions import (
    ChallanLockedException, InvalidTransitionException, NotFoundException,
    StoreUnavailableException, ValidationException
)
from .base import TransitTestCase

ENGINE = {
    'DIRECT_DELIVERY_CITY_KEYWORDS': ['kanpur'],
    'DOOR_DELIVERY_TYPES': ['door', 'door-delivery', 'door delivery'],
}


@override_settings(TRANSIT_ENGINE=ENGINE)
class DeliveryWorkflowTest(TransitTestCase):
    """Test routing and milestone rules."""

    def _transit(self, gr_no, manual=False, **kwargs):
        if manual:
            self.create_manual_bilty(gr_no, **kwargs)
        else:
            self.create_bilty(gr_no, **kwargs)
        self.assign([gr_no])
        return self.mark_left_origin(self.transit_for(gr_no))

    def assertMonotonic(self, transit):
        transit.refresh_from_db()
        path = DeliveryWorkflow.path_for(transit)
        flags = [transit.has_milestone(m) for m in path]
        self.assertEqual(flags, sorted(flags, reverse=True), f"gap in {path}: {flags}")

    def test_routing_classes(self):
        self.assertEqual(DeliveryWorkflow.routing_class(self._transit('A1')), RoutingClass.TWO_HOP)
        self.assertEqual(
            DeliveryWorkflow.routing_class(self._transit('A2', to_city=self.kanpur)),
            RoutingClass.DIRECT
        )
        self.assertEqual(DeliveryWorkflow.routing_class(self._transit('M1', manual=True)), RoutingClass.DIRECT)

    def test_out_from_branch2_backfills_arrival(self):
        transit = self._transit('A1')

        DeliveryService.mark_out_for_delivery_from_branch2(str(transit.id), self.context)

        transit.refresh_from_db()
        self.assertTrue(transit.is_delivered_at_branch2)
        self.assertTrue(transit.is_out_of_delivery_from_branch2)
        self.assertEqual(transit.delivered_at_branch2_date, transit.out_of_delivery_from_branch2_date)
        self.assertFalse(transit.is_delivered_at_destination)
        self.assertMonotonic(transit)
        self.assertTrue(AuditLog.objects.filter(entity_id=transit.id, action='status_changed').exists())

    def test_door_delivery_on_two_hop_path(self):
        transit = self._transit('A1', delivery_type=DeliveryType.DOOR)

        DeliveryService.mark_out_for_door_delivery(str(transit.id), self.context)

        transit.refresh_from_db()
        self.assertTrue(transit.out_for_door_delivery)
        self.assertTrue(transit.is_out_of_delivery_from_branch2)
        self.assertMonotonic(transit)

    def test_door_delivery_requires_door_booking(self):
        transit = self._transit('A1', delivery_type=DeliveryType.GODOWN)

        with self.assertRaises(InvalidTransitionException):
            DeliveryService.mark_out_for_door_delivery(str(transit.id), self.context)

    def test_direct_path_arrival_and_door_delivery(self):
        transit = self._transit('A1', to_city=self.kanpur, delivery_type=DeliveryType.DOOR)

        self.assertEqual(
            DeliveryService.available_transitions(str(transit.id)),
            [Milestone.AT_BRANCH2.value, Milestone.DOOR_DELIVERY.value]
        )
        DeliveryService.mark_delivered_at_branch2(str(transit.id), self.context)
        DeliveryService.mark_out_for_door_delivery(str(transit.id), self.context)

        transit.refresh_from_db()
        self.assertTrue(transit.is_delivered_at_branch2)
        self.assertTrue(transit.out_for_door_delivery)
        self.assertFalse(transit.is_out_of_delivery_from_branch2)
        self.assertMonotonic(transit)

    def test_direct_path_has_no_branch2_dispatch(self):
        transit = self._transit('M1', manual=True)

        with self.assertRaises(InvalidTransitionException):
            DeliveryService.mark_out_for_delivery_from_branch2(str(transit.id), self.context)

    def test_arrival_is_not_set_by_engine_on_two_hop_path(self):
        transit = self._transit('A1')

        with self.assertRaises(InvalidTransitionException):
            DeliveryService.mark_delivered_at_branch2(str(transit.id), self.context)

    def test_final_delivery_is_not_set_by_engine(self):
        transit = self._transit('A1')

        with self.assertRaises(InvalidTransitionException):
            DeliveryService.advance(str(transit.id), Milestone.DELIVERED_AT_DESTINATION, self.context)

    def test_requires_departure_from_origin(self):
        self.create_bilty('A1')
        self.assign(['A1'])
        transit = self.transit_for('A1')

        with self.assertRaises(InvalidTransitionException):
            DeliveryService.mark_out_for_delivery_from_branch2(str(transit.id), self.context)
        self.assertEqual(DeliveryService.available_transitions(str(transit.id)), [])

    def test_advancing_twice_equals_advancing_once(self):
        transit = self._transit('A1')

        DeliveryService.mark_out_for_delivery_from_branch2(str(transit.id), self.context)
        transit.refresh_from_db()
        first = (transit.out_of_delivery_from_branch2_date, transit.delivered_at_branch2_date)
        logs = AuditLog.objects.filter(entity_id=transit.id).count()

        DeliveryService.mark_out_for_delivery_from_branch2(str(transit.id), self.context)
        transit.refresh_from_db()

        self.assertEqual((transit.out_of_delivery_from_branch2_date, transit.delivered_at_branch2_date), first)
        self.assertEqual(AuditLog.objects.filter(entity_id=transit.id).count(), logs)

    def test_dispatched_challan_rejects_advance(self):
        transit = self._transit('A1')
        self.dispatch()

        with self.assertRaises(ChallanLockedException):
            DeliveryService.mark_out_for_delivery_from_branch2(str(transit.id), self.context)

        transit.refresh_from_db()
        self.assertFalse(transit.is_out_of_delivery_from_branch2)
        self.assertEqual(DeliveryService.available_transitions(str(transit.id)), [])

    def test_removed_record_cannot_advance(self):
        transit = self._transit('A1')
        TransitService.remove_from_transit(str(transit.id), self.context)

        with self.assertRaises(InvalidTransitionException):
            DeliveryService.mark_out_for_delivery_from_branch2(str(transit.id), self.context)

    def test_removed_record_rejects_milestone_it_already_has(self):
        transit = self._transit('A1')
        DeliveryService.mark_out_for_delivery_from_branch2(str(transit.id), self.context)
        TransitService.remove_from_transit(str(transit.id), self.context)

        with self.assertRaises(InvalidTransitionException):
            DeliveryService.mark_out_for_delivery_from_branch2(str(transit.id), self.context)

    def test_store_failure_during_advance(self):
        transit = self._transit('A1')

        with mock.patch.object(TransitDetails, 'save', side_effect=DatabaseError('disk I/O error')):
            with self.assertRaises(StoreUnavailableException):
                DeliveryService.mark_out_for_delivery_from_branch2(str(transit.id), self.context)

        transit.refresh_from_db()
        self.assertFalse(transit.is_out_of_delivery_from_branch2)
        self.assertFalse(AuditLog.objects.filter(entity_id=transit.id, action='status_changed').exists())

    def test_unknown_milestone(self):
        transit = self._transit('A1')

        with self.assertRaises(ValidationException):
            DeliveryService.advance(str(transit.id), 'TELEPORTED', self.context)

    def test_unknown_record(self):
        with self.assertRaises(NotFoundException):
            DeliveryService.advance('00000000-0000-0000-0000-000000000000', Milestone.AT_BRANCH2, self.context)

    def test_no_sequence_leaves_a_gap(self):
        transit = self._transit('A1', delivery_type=DeliveryType.DOOR)

        for milestone in reversed(MILESTONE_ORDER):
            try:
                DeliveryService.advance(str(transit.id), milestone, self.context)
            except InvalidTransitionException:
                pass
            self.assertMonotonic(transit)

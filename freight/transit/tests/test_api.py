"""
Tests for the transit REST endpoints.
"""

from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from django.test import override_settings
from rest_framework.test import APIClient

from ..models import Milestone, TransitDetails
from .base import TransitTestCase


class TransitApiTest(TransitTestCase):
    """Test the API surface and its error mapping."""

    def setUp(self):
        super().setUp()
        self.client = APIClient()
        self.client.force_authenticate(user=self.user)
        self.branch_id = str(self.branch1.id)
        self.create_bilty('A10')
        self.create_bilty('A9')

    def test_available_shipments(self):
        response = self.client.get('/api/transit/shipments/available/', {'branch_id': self.branch_id})

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data['success'])
        self.assertEqual([s['gr_no'] for s in response.data['data']['shipments']], ['A9', 'A10'])

    def test_available_requires_branch(self):
        response = self.client.get('/api/transit/shipments/available/')

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['error']['code'], 'VALIDATION_ERROR')

    def test_assign_and_summary(self):
        response = self.client.post(
            f'/api/transit/challans/{self.challan.id}/assign/',
            {'branch_id': self.branch_id, 'challan_book_id': str(self.book.id), 'gr_nos': ['A9', 'A10']},
            format='json'
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['data']['new_count'], 2)

        response = self.client.get(f'/api/transit/challans/{self.challan.id}/summary/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['data']['count'], 2)
        self.assertEqual(response.data['data']['status_label'], 'Pending')

    def test_assign_to_dispatched_challan_conflicts(self):
        self.dispatch()

        response = self.client.post(
            f'/api/transit/challans/{self.challan.id}/assign/',
            {'branch_id': self.branch_id, 'challan_book_id': str(self.book.id), 'gr_nos': ['A9']},
            format='json'
        )

        self.assertEqual(response.status_code, 409)
        self.assertFalse(response.data['success'])
        self.assertEqual(response.data['error']['code'], 'CHALLAN_LOCKED')

    def test_assign_empty_selection(self):
        response = self.client.post(
            f'/api/transit/challans/{self.challan.id}/assign/',
            {'branch_id': self.branch_id, 'challan_book_id': str(self.book.id), 'gr_nos': []},
            format='json'
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['error']['code'], 'EMPTY_SELECTION')

    def test_remove_unknown_record(self):
        response = self.client.post(
            '/api/transit/transit/00000000-0000-0000-0000-000000000000/remove/',
            {'branch_id': self.branch_id},
            format='json'
        )

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data['error']['code'], 'NOT_FOUND')

    def test_bulk_remove_partial_returns_multi_status(self):
        self.assign(['A9', 'A10'])
        removed = str(self.transit_for('A9').id)
        self.client.post(f'/api/transit/transit/{removed}/remove/', {'branch_id': self.branch_id}, format='json')
        remaining = str(self.transit_for('A10').id)

        response = self.client.post(
            '/api/transit/transit/bulk_remove/',
            {'branch_id': self.branch_id, 'transit_ids': [removed, remaining]},
            format='json'
        )

        self.assertEqual(response.status_code, 207)
        self.assertEqual(response.data['error']['code'], 'PARTIAL_BATCH_FAILURE')
        self.assertEqual(response.data['error']['details']['failed_ids'], [removed])
        self.assertEqual(TransitDetails.objects.active().count(), 0)

    def test_advance(self):
        self.assign(['A9'])
        transit = self.mark_left_origin(self.transit_for('A9'))

        response = self.client.post(
            f'/api/transit/transit/{transit.id}/advance/',
            {'branch_id': self.branch_id, 'milestone': Milestone.OUT_FOR_DELIVERY_FROM_BRANCH2.value},
            format='json'
        )

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data['data']['is_delivered_at_branch2'])
        self.assertEqual(response.data['data']['status_label'], 'Out from B2')

    def test_create_challan_from_book(self):
        response = self.client.post(
            f'/api/transit/challan-books/{self.book.id}/create_challan/',
            {'branch_id': self.branch_id, 'truck_no': 'UP81ZZ0001'},
            format='json'
        )

        # AL0001 is already taken by the fixture challan
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['error']['code'], 'VALIDATION_ERROR')

    def test_non_staff_is_forbidden(self):
        outsider = get_user_model().objects.create_user(username='guest', password='testpass123')
        client = APIClient()
        client.force_authenticate(user=outsider)

        response = client.get('/api/transit/shipments/available/', {'branch_id': self.branch_id})

        self.assertEqual(response.status_code, 403)

    def test_branch_staff_group_member_is_allowed(self):
        member = get_user_model().objects.create_user(username='loader', password='testpass123')
        member.groups.add(Group.objects.create(name='branch_staff'))
        client = APIClient()
        client.force_authenticate(user=member)

        response = client.get('/api/transit/shipments/available/', {'branch_id': self.branch_id})

        self.assertEqual(response.status_code, 200)

    @override_settings(TRANSIT_ENGINE={'STAFF_GROUPS': ['dock_supervisors']})
    def test_staff_groups_are_configurable(self):
        member = get_user_model().objects.create_user(username='loader', password='testpass123')
        member.groups.add(Group.objects.create(name='branch_staff'))
        client = APIClient()
        client.force_authenticate(user=member)

        response = client.get('/api/transit/shipments/available/', {'branch_id': self.branch_id})

        self.assertEqual(response.status_code, 403)

    def test_assign_to_challan_of_another_branch(self):
        self.challan.branch = self.branch2
        self.challan.save(update_fields=['branch'])

        response = self.client.post(
            f'/api/transit/challans/{self.challan.id}/assign/',
            {'branch_id': self.branch_id, 'challan_book_id': str(self.book.id), 'gr_nos': ['A9']},
            format='json'
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['error']['code'], 'VALIDATION_ERROR')

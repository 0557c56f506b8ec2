"""
Transit details: the assignment of one shipment to one challan.
"""

import uuid
from django.conf import settings
from django.db import models
from django.utils import timezone

from .shipment import ShipmentSource


class Milestone(models.TextChoices):
    """Delivery milestones, declared in delivery order."""
    OUT_FROM_BRANCH1 = 'OUT_FROM_BRANCH1', 'Out from Branch 1'
    AT_BRANCH2 = 'AT_BRANCH2', 'Delivered at Branch 2'
    OUT_FOR_DELIVERY_FROM_BRANCH2 = 'OUT_FOR_DELIVERY_FROM_BRANCH2', 'Out for Delivery from Branch 2'
    DOOR_DELIVERY = 'DOOR_DELIVERY', 'Out for Door Delivery'
    DELIVERED_AT_DESTINATION = 'DELIVERED_AT_DESTINATION', 'Delivered at Destination'


MILESTONE_ORDER = [
    Milestone.OUT_FROM_BRANCH1,
    Milestone.AT_BRANCH2,
    Milestone.OUT_FOR_DELIVERY_FROM_BRANCH2,
    Milestone.DOOR_DELIVERY,
    Milestone.DELIVERED_AT_DESTINATION,
]

# milestone -> (flag field, timestamp field)
MILESTONE_FIELDS = {
    Milestone.OUT_FROM_BRANCH1: ('is_out_of_delivery_from_branch1', 'out_of_delivery_from_branch1_date'),
    Milestone.AT_BRANCH2: ('is_delivered_at_branch2', 'delivered_at_branch2_date'),
    Milestone.OUT_FOR_DELIVERY_FROM_BRANCH2: ('is_out_of_delivery_from_branch2', 'out_of_delivery_from_branch2_date'),
    Milestone.DOOR_DELIVERY: ('out_for_door_delivery', 'out_for_door_delivery_date'),
    Milestone.DELIVERED_AT_DESTINATION: ('is_delivered_at_destination', 'delivered_at_destination_date'),
}


class TransitState(models.TextChoices):
    """Assignment state. Deactivated rows are kept for audit."""
    ACTIVE = 'ACTIVE', 'Active'
    DEACTIVATED = 'DEACTIVATED', 'Deactivated'


class TransitQuerySet(models.QuerySet):

    def active(self):
        return self.filter(state=TransitState.ACTIVE)

    def for_challan(self, challan):
        return self.filter(challan=challan)

    def from_branch(self, branch):
        return self.filter(from_branch=branch)


class TransitDetails(models.Model):
    """
    One row per (challan, shipment) assignment.

    Milestone flags only ever move from False to True. Removing a shipment
    from a challan deactivates the row instead of deleting it.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Assignment
    gr_no = models.CharField(max_length=50)
    challan = models.ForeignKey(
        'Challan',
        on_delete=models.PROTECT,
        related_name='transit_details'
    )
    challan_book = models.ForeignKey(
        'ChallanBook',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='transit_details'
    )
    source = models.CharField(
        max_length=10,
        choices=ShipmentSource.choices,
        default=ShipmentSource.REGULAR
    )
    bilty = models.ForeignKey(
        'Bilty',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='transit_details',
        help_text="Set for regular bilties only"
    )
    manual_bilty = models.ForeignKey(
        'ManualBilty',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='transit_details',
        help_text="Set for manually entered bilties only"
    )
    from_branch = models.ForeignKey(
        'Branch',
        on_delete=models.PROTECT,
        related_name='outgoing_transit'
    )
    to_branch = models.ForeignKey(
        'Branch',
        on_delete=models.PROTECT,
        related_name='incoming_transit'
    )

    # Soft-delete
    state = models.CharField(
        max_length=12,
        choices=TransitState.choices,
        default=TransitState.ACTIVE
    )
    deactivated_at = models.DateTimeField(null=True, blank=True)
    deactivation_reason = models.CharField(max_length=255, blank=True)

    # Milestones
    is_out_of_delivery_from_branch1 = models.BooleanField(default=False)
    out_of_delivery_from_branch1_date = models.DateTimeField(null=True, blank=True)
    is_delivered_at_branch2 = models.BooleanField(default=False)
    delivered_at_branch2_date = models.DateTimeField(null=True, blank=True)
    is_out_of_delivery_from_branch2 = models.BooleanField(default=False)
    out_of_delivery_from_branch2_date = models.DateTimeField(null=True, blank=True)
    out_for_door_delivery = models.BooleanField(default=False)
    out_for_door_delivery_date = models.DateTimeField(null=True, blank=True)
    is_delivered_at_destination = models.BooleanField(default=False)
    delivered_at_destination_date = models.DateTimeField(null=True, blank=True)

    # Metadata
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='transit_created'
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='transit_updated'
    )
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TransitQuerySet.as_manager()

    class Meta:
        ordering = ['-created_at']
        verbose_name_plural = 'transit details'
        constraints = [
            models.UniqueConstraint(
                fields=['gr_no'],
                condition=models.Q(state='ACTIVE'),
                name='unique_active_transit_per_gr',
            ),
        ]
        indexes = [
            models.Index(fields=['challan', 'state']),
            models.Index(fields=['from_branch', 'state']),
            models.Index(fields=['gr_no']),
        ]

    def __str__(self):
        return f"Transit {self.gr_no} on {self.challan.challan_no}"

    @property
    def is_active(self):
        return self.state == TransitState.ACTIVE

    @property
    def challan_no(self):
        return self.challan.challan_no

    @property
    def shipment(self):
        """The bilty or manual bilty behind this row."""
        if self.source == ShipmentSource.MANUAL:
            return self.manual_bilty
        return self.bilty

    def has_milestone(self, milestone) -> bool:
        flag, _ = MILESTONE_FIELDS[milestone]
        return getattr(self, flag)

    def milestone_date(self, milestone):
        _, date_field = MILESTONE_FIELDS[milestone]
        return getattr(self, date_field)

    def set_milestone(self, milestone, when=None):
        """Set a milestone flag and its timestamp. Returns the touched field names."""
        flag, date_field = MILESTONE_FIELDS[milestone]
        setattr(self, flag, True)
        setattr(self, date_field, when or timezone.now())
        return [flag, date_field]

    @property
    def highest_milestone(self):
        """Furthest milestone reached, or None while pending."""
        for milestone in reversed(MILESTONE_ORDER):
            if self.has_milestone(milestone):
                return milestone
        return None

    def deactivate(self, reason: str = "", user=None):
        """Soft-delete the assignment."""
        if self.state == TransitState.ACTIVE:
            self.state = TransitState.DEACTIVATED
            self.deactivated_at = timezone.now()
            self.deactivation_reason = reason[:255]
            self.updated_by = user
            self.save(update_fields=['state', 'deactivated_at', 'deactivation_reason', 'updated_by', 'updated_at'])

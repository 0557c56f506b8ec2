"""
Shipment (bilty) models.

Two sources feed the transit engine: regular bilties captured through data
entry, and manually entered station summaries. Both are read-only here apart
from soft-delete on cancellation.
"""

import uuid
from decimal import Decimal
from django.conf import settings
from django.db import models
from django.utils import timezone


class PaymentMode(models.TextChoices):
    """Freight payment mode."""
    PAID = 'paid', 'Paid'
    TO_PAY = 'to-pay', 'To Pay'
    FOC = 'foc', 'Free of Cost'


class DeliveryType(models.TextChoices):
    """Final-mile delivery type."""
    GODOWN = 'godown', 'Godown Delivery'
    DOOR = 'door', 'Door Delivery'


class SavingOption(models.TextChoices):
    """Bilty lifecycle flag set by data entry."""
    DRAFT = 'DRAFT', 'Draft'
    SAVE = 'SAVE', 'Saved'


class ShipmentSource(models.TextChoices):
    """Which table a shipment record came from."""
    REGULAR = 'bilty', 'Regular Bilty'
    MANUAL = 'manual', 'Manual Entry'


class Bilty(models.Model):
    """
    Regular consignment note booked at an origin branch.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    gr_no = models.CharField(
        max_length=50,
        help_text="Human-assigned GR number, unique while active"
    )
    branch = models.ForeignKey(
        'Branch',
        on_delete=models.PROTECT,
        related_name='bilties',
        help_text="Origin branch that booked the consignment"
    )
    to_city = models.ForeignKey(
        'City',
        on_delete=models.PROTECT,
        related_name='bilties',
        help_text="Destination city"
    )

    # Parties
    consignor_name = models.CharField(max_length=200, blank=True)
    consignee_name = models.CharField(max_length=200, blank=True)

    # Consignment details
    no_of_pkg = models.PositiveIntegerField(default=0)
    wt = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal('0.00'),
        help_text="Charged weight in kg"
    )
    total = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        help_text="Total freight amount"
    )
    payment_mode = models.CharField(
        max_length=10,
        choices=PaymentMode.choices,
        default=PaymentMode.TO_PAY
    )
    delivery_type = models.CharField(
        max_length=20,
        choices=DeliveryType.choices,
        default=DeliveryType.GODOWN
    )
    e_way_bill = models.CharField(max_length=50, blank=True)
    pvt_marks = models.CharField(max_length=100, blank=True)

    # Lifecycle
    saving_option = models.CharField(
        max_length=10,
        choices=SavingOption.choices,
        default=SavingOption.SAVE
    )
    is_active = models.BooleanField(default=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    bilty_date = models.DateField(default=timezone.localdate)
    created_at = models.DateTimeField(default=timezone.now)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='bilties_created'
    )

    class Meta:
        ordering = ['-created_at']
        verbose_name_plural = 'bilties'
        indexes = [
            models.Index(fields=['branch', 'is_active', 'saving_option']),
            models.Index(fields=['gr_no']),
        ]

    def __str__(self):
        return f"Bilty {self.gr_no}"

    @property
    def source(self):
        return ShipmentSource.REGULAR

    @property
    def is_cancelled(self):
        return not self.is_active and self.cancelled_at is not None


class ManualBilty(models.Model):
    """
    Manually entered station summary of a consignment.

    Carries only the summary fields, with the destination stored as a
    station (city) code.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    gr_no = models.CharField(max_length=50)
    branch = models.ForeignKey(
        'Branch',
        on_delete=models.PROTECT,
        related_name='manual_bilties',
        help_text="Branch that entered the summary"
    )
    station = models.CharField(
        max_length=20,
        help_text="Destination station (city) code"
    )

    consignor = models.CharField(max_length=200, blank=True)
    consignee = models.CharField(max_length=200, blank=True)
    contents = models.CharField(max_length=200, blank=True)
    no_of_packets = models.PositiveIntegerField(default=0)
    weight = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    payment_status = models.CharField(
        max_length=10,
        choices=PaymentMode.choices,
        default=PaymentMode.TO_PAY
    )
    delivery_type = models.CharField(
        max_length=20,
        choices=DeliveryType.choices,
        default=DeliveryType.GODOWN
    )
    e_way_bill = models.CharField(max_length=50, blank=True)
    pvt_marks = models.CharField(max_length=100, blank=True)

    is_active = models.BooleanField(default=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name_plural = 'manual bilties'
        indexes = [
            models.Index(fields=['branch', 'is_active']),
            models.Index(fields=['gr_no']),
        ]

    def __str__(self):
        return f"Manual bilty {self.gr_no} ({self.station})"

    @property
    def source(self):
        return ShipmentSource.MANUAL

    @property
    def is_cancelled(self):
        return not self.is_active and self.cancelled_at is not None

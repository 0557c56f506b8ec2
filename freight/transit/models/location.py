"""
Branch and city reference data for the transit engine.
"""

import uuid
from django.db import models
from django.utils import timezone


class City(models.Model):
    """Destination city a consignment is booked to."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    city_name = models.CharField(max_length=100)
    city_code = models.CharField(
        max_length=20,
        unique=True,
        help_text="Short station code printed on manual bilties"
    )

    class Meta:
        ordering = ['city_name']
        verbose_name_plural = 'cities'

    def __str__(self):
        return f"{self.city_name} ({self.city_code})"


class Branch(models.Model):
    """
    Booking or receiving branch of the transporter.

    Every shipment originates at a branch, and every transit record links
    an origin branch to the receiving branch of its challan book.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100)
    code = models.CharField(max_length=20, unique=True)
    city = models.ForeignKey(
        City,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='branches',
        help_text="City the branch is located in"
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['name']
        verbose_name_plural = 'branches'

    def __str__(self):
        return f"{self.name} ({self.code})"

"""
Challan and challan book models.
"""

import uuid
from django.conf import settings
from django.db import models
from django.utils import timezone


class ChallanBook(models.Model):
    """
    Numbering sequence for challans between an origin and a destination branch.

    Challan numbers are built as prefix + zero-padded counter + postfix.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    prefix = models.CharField(max_length=20, blank=True)
    postfix = models.CharField(max_length=20, blank=True)
    digits = models.PositiveSmallIntegerField(
        default=4,
        help_text="Width the counter is zero-padded to"
    )
    from_number = models.PositiveIntegerField(default=1)
    to_number = models.PositiveIntegerField(default=9999)
    current_number = models.PositiveIntegerField(default=1)

    from_branch = models.ForeignKey(
        'Branch',
        on_delete=models.PROTECT,
        related_name='outgoing_challan_books'
    )
    to_branch = models.ForeignKey(
        'Branch',
        on_delete=models.PROTECT,
        related_name='incoming_challan_books',
        help_text="Receiving branch for every challan issued from this book"
    )

    auto_continue = models.BooleanField(
        default=False,
        help_text="Wrap back to from_number once to_number is used"
    )
    is_completed = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['from_branch', 'is_active']),
        ]

    def __str__(self):
        return f"{self.prefix}{self.from_number}-{self.to_number}{self.postfix} ({self.from_branch} -> {self.to_branch})"

    def generate_challan_no(self) -> str:
        """Challan number for the current counter position."""
        padded = str(self.current_number).zfill(self.digits)
        return f"{self.prefix or ''}{padded}{self.postfix or ''}"

    def advance(self):
        """
        Move the counter past the number just issued.

        Wraps to from_number when auto_continue is set, otherwise marks
        the book completed once to_number has been used.
        """
        next_number = self.current_number + 1
        if next_number > self.to_number:
            if self.auto_continue:
                next_number = self.from_number
            else:
                self.is_completed = True
                next_number = self.to_number
        self.current_number = next_number
        self.save(update_fields=['current_number', 'is_completed'])

    @property
    def is_usable(self):
        return self.is_active and not self.is_completed


class Challan(models.Model):
    """
    Loading manifest grouping shipments onto one truck trip.

    total_bilty_count is maintained by the transit engine and must equal the
    number of active transit records on the challan. is_dispatched is set
    by the dispatch workflow and freezes all transit changes.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    challan_no = models.CharField(max_length=50, unique=True)
    branch = models.ForeignKey(
        'Branch',
        on_delete=models.PROTECT,
        related_name='challans',
        help_text="Origin branch loading the truck"
    )
    challan_book = models.ForeignKey(
        ChallanBook,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='challans'
    )

    # Vehicle and crew
    truck_no = models.CharField(max_length=20, blank=True)
    driver_name = models.CharField(max_length=100, blank=True)
    owner_name = models.CharField(max_length=100, blank=True)

    date = models.DateField(default=timezone.localdate)
    total_bilty_count = models.PositiveIntegerField(default=0)
    remarks = models.TextField(blank=True)

    is_active = models.BooleanField(default=True)
    is_dispatched = models.BooleanField(default=False)
    dispatch_date = models.DateTimeField(null=True, blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='challans_created'
    )
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['is_dispatched', '-created_at']
        indexes = [
            models.Index(fields=['branch', 'is_active', 'is_dispatched']),
        ]

    def __str__(self):
        return f"Challan {self.challan_no}"

    @property
    def is_locked(self):
        """Dispatched challans reject every transit mutation."""
        return self.is_dispatched

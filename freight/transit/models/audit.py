"""
Audit log for transit assignments, removals and milestone changes.
"""

import uuid
from datetime import date, datetime
from decimal import Decimal
from django.db import models
from django.conf import settings
from django.utils import timezone


def _to_json(obj):
    """Convert Decimal, UUID and date values so they fit a JSONField."""
    if isinstance(obj, dict):
        return {k: _to_json(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [_to_json(item) for item in obj]
    elif isinstance(obj, (Decimal, uuid.UUID)):
        return str(obj)
    elif isinstance(obj, (datetime, date)):
        return obj.isoformat()
    else:
        return obj


class AuditLog(models.Model):
    """
    Append-only trail of every change the transit engine makes.

    Transit rows are never hard-deleted, and together with this log they
    give the full history of an assignment.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    entity_type = models.CharField(
        max_length=50,
        help_text="Type of entity (Challan, TransitDetails, Bilty, etc.)"
    )
    entity_id = models.UUIDField(
        help_text="UUID of the entity being audited"
    )
    action = models.CharField(
        max_length=50,
        help_text="Action performed (assigned, removed, milestone_set, etc.)"
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='transit_audit_logs'
    )

    old_values = models.JSONField(default=dict, blank=True)
    new_values = models.JSONField(default=dict, blank=True)
    field_changes = models.JSONField(default=dict, blank=True)

    timestamp = models.DateTimeField(default=timezone.now)
    notes = models.TextField(blank=True)
    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        ordering = ['-timestamp']
        indexes = [
            models.Index(fields=['entity_type', 'entity_id', '-timestamp']),
            models.Index(fields=['action', '-timestamp']),
        ]

    def __str__(self):
        return f"{self.entity_type} {self.entity_id} - {self.action} by {self.user} at {self.timestamp}"

    @classmethod
    def log_change(cls, entity, action: str, user=None, old_values=None,
                   new_values=None, field_changes=None, notes="", metadata=None):
        """
        Create an audit log entry for an entity change.

        Args:
            entity: The model instance being audited
            action: The action performed
            user: User who performed the action
            old_values: Previous state
            new_values: New state
            field_changes: Specific field changes
            notes: Additional notes
            metadata: Additional metadata
        """
        return cls.objects.create(
            entity_type=entity.__class__.__name__,
            entity_id=entity.id,
            action=action,
            user=user,
            old_values=_to_json(old_values or {}),
            new_values=_to_json(new_values or {}),
            field_changes=_to_json(field_changes or {}),
            notes=notes,
            metadata=_to_json(metadata or {})
        )

    @classmethod
    def log_status_change(cls, entity, old_status: str, new_status: str, user=None, notes=""):
        """
        Log a status change for an entity.

        Args:
            entity: The model instance
            old_status: Previous status
            new_status: New status
            user: User making the change
            notes: Additional notes
        """
        return cls.log_change(
            entity=entity,
            action='status_changed',
            user=user,
            old_values={'status': old_status},
            new_values={'status': new_status},
            field_changes={'status': {'old': old_status, 'new': new_status}},
            notes=notes
        )

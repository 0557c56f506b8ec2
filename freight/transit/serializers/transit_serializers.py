"""
Transit serializers for the Transit & Challan Assignment module.
"""

from rest_framework import serializers

from ..models import TransitDetails, Milestone
from ..services.workflow import DeliveryWorkflow, status_label


class TransitDetailsSerializer(serializers.ModelSerializer):
    """Serializer for TransitDetails model."""

    challan_no = serializers.CharField(source='challan.challan_no', read_only=True)
    from_branch_code = serializers.CharField(source='from_branch.code', read_only=True)
    to_branch_code = serializers.CharField(source='to_branch.code', read_only=True)
    status = serializers.SerializerMethodField()
    status_label = serializers.SerializerMethodField()

    class Meta:
        model = TransitDetails
        fields = [
            'id', 'gr_no', 'challan', 'challan_no', 'challan_book', 'source',
            'bilty', 'manual_bilty', 'from_branch', 'from_branch_code',
            'to_branch', 'to_branch_code', 'state', 'deactivated_at',
            'deactivation_reason',
            'is_out_of_delivery_from_branch1', 'out_of_delivery_from_branch1_date',
            'is_delivered_at_branch2', 'delivered_at_branch2_date',
            'is_out_of_delivery_from_branch2', 'out_of_delivery_from_branch2_date',
            'out_for_door_delivery', 'out_for_door_delivery_date',
            'is_delivered_at_destination', 'delivered_at_destination_date',
            'status', 'status_label', 'created_at', 'updated_at'
        ]
        read_only_fields = fields

    def get_status(self, obj):
        return DeliveryWorkflow.status_of(obj)

    def get_status_label(self, obj):
        return status_label(obj)


class RemoveTransitSerializer(serializers.Serializer):
    """Serializer for removing one shipment from its challan."""

    branch_id = serializers.UUIDField()
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')


class BulkRemoveSerializer(serializers.Serializer):
    """Serializer for removing several shipments at once."""

    branch_id = serializers.UUIDField()
    transit_ids = serializers.ListField(
        child=serializers.CharField(max_length=64),
        allow_empty=True
    )
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')


class AdvanceSerializer(serializers.Serializer):
    """Serializer for setting a delivery milestone."""

    branch_id = serializers.UUIDField()
    milestone = serializers.ChoiceField(choices=Milestone.choices)

"""
Challan serializers for the Transit & Challan Assignment module.
"""

from rest_framework import serializers

from ..models import Challan, ChallanBook


class ChallanBookSerializer(serializers.ModelSerializer):
    """Serializer for ChallanBook model."""

    from_branch_code = serializers.CharField(source='from_branch.code', read_only=True)
    to_branch_code = serializers.CharField(source='to_branch.code', read_only=True)
    next_challan_no = serializers.SerializerMethodField()

    class Meta:
        model = ChallanBook
        fields = [
            'id', 'prefix', 'postfix', 'digits', 'from_number', 'to_number',
            'current_number', 'next_challan_no', 'from_branch', 'from_branch_code',
            'to_branch', 'to_branch_code', 'auto_continue', 'is_completed',
            'is_active', 'created_at'
        ]
        read_only_fields = ['id', 'current_number', 'is_completed', 'created_at']

    def get_next_challan_no(self, obj):
        if not obj.is_usable:
            return None
        return obj.generate_challan_no()


class ChallanListSerializer(serializers.ModelSerializer):
    """Serializer for challan listing."""

    branch_code = serializers.CharField(source='branch.code', read_only=True)

    class Meta:
        model = Challan
        fields = [
            'id', 'challan_no', 'branch', 'branch_code', 'truck_no', 'date',
            'total_bilty_count', 'is_dispatched', 'dispatch_date', 'created_at'
        ]


class ChallanDetailSerializer(serializers.ModelSerializer):
    """Serializer for challan details."""

    branch_code = serializers.CharField(source='branch.code', read_only=True)
    created_by_name = serializers.CharField(source='created_by.username', read_only=True, default=None)

    class Meta:
        model = Challan
        fields = [
            'id', 'challan_no', 'branch', 'branch_code', 'challan_book',
            'truck_no', 'driver_name', 'owner_name', 'date',
            'total_bilty_count', 'remarks', 'is_active', 'is_dispatched',
            'dispatch_date', 'created_by_name', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class AssignShipmentsSerializer(serializers.Serializer):
    """Serializer for assigning shipments to a challan."""

    branch_id = serializers.UUIDField()
    challan_book_id = serializers.UUIDField()
    gr_nos = serializers.ListField(
        child=serializers.CharField(max_length=50),
        allow_empty=True
    )


class ChallanCreateSerializer(serializers.Serializer):
    """Serializer for issuing a challan from a challan book."""

    branch_id = serializers.UUIDField()
    truck_no = serializers.CharField(max_length=20, required=False, allow_blank=True)
    driver_name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    owner_name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    date = serializers.DateField(required=False)
    remarks = serializers.CharField(required=False, allow_blank=True)


class ChallanSummarySerializer(serializers.Serializer):
    """Serializer for the challan aggregate view."""

    challan_id = serializers.UUIDField()
    challan_no = serializers.CharField()
    is_dispatched = serializers.BooleanField()
    count = serializers.IntegerField()
    stored_count = serializers.IntegerField()
    packages = serializers.IntegerField()
    weight = serializers.DecimalField(max_digits=14, decimal_places=2)
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    packages_by_mode = serializers.DictField(child=serializers.IntegerField())
    weight_by_mode = serializers.DictField(child=serializers.DecimalField(max_digits=14, decimal_places=2))
    amounts_by_mode = serializers.DictField(child=serializers.DecimalField(max_digits=14, decimal_places=2))
    status_counts = serializers.DictField(child=serializers.IntegerField())
    status_label = serializers.CharField()

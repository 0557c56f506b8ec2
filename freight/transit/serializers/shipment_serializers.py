"""
Shipment serializers for the Transit & Challan Assignment module.
"""

from rest_framework import serializers

from ..models import ShipmentSource


class AvailableShipmentSerializer(serializers.Serializer):
    """Serializer for a shipment in the availability pool."""

    id = serializers.UUIDField()
    source = serializers.CharField()
    gr_no = serializers.CharField()
    bilty_date = serializers.DateField(allow_null=True)
    consignor_name = serializers.CharField(allow_blank=True)
    consignee_name = serializers.CharField(allow_blank=True)
    no_of_pkg = serializers.IntegerField()
    wt = serializers.DecimalField(max_digits=10, decimal_places=2)
    total = serializers.DecimalField(max_digits=12, decimal_places=2)
    payment_mode = serializers.CharField()
    delivery_type = serializers.CharField()
    to_city_name = serializers.CharField()
    to_city_code = serializers.CharField()
    e_way_bill = serializers.CharField(allow_blank=True)
    pvt_marks = serializers.CharField(allow_blank=True)


class CancelShipmentSerializer(serializers.Serializer):
    """Serializer for cancelling a bilty or manual bilty."""

    branch_id = serializers.UUIDField()
    source = serializers.ChoiceField(choices=ShipmentSource.choices)
    shipment_id = serializers.UUIDField()
    reason = serializers.CharField(required=False, allow_blank=True, default='')

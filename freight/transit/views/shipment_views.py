"""
Shipment views for the Transit & Challan Assignment module.
"""

from rest_framework import viewsets
from rest_framework.decorators import action

from ..services import AvailabilityService, ShipmentService
from ..serializers.shipment_serializers import AvailableShipmentSerializer, CancelShipmentSerializer
from ..exceptions import BusinessException
from ..permissions import IsBranchStaff
from .base import branch_context, success_response, error_response


class ShipmentViewSet(viewsets.ViewSet):
    """
    ViewSet for the shipment pool of a branch.
    """

    permission_classes = [IsBranchStaff]

    @action(detail=False, methods=['get'])
    def available(self, request):
        """Shipments of the branch that are not on any active challan."""
        try:
            context = branch_context(request, request.query_params.get('branch_id'))
            order_by = request.query_params.get('order_by', 'gr')
            shipments = AvailabilityService.get_available_shipments(context, order_by)
        except BusinessException as e:
            return error_response(e)

        serializer = AvailableShipmentSerializer(shipments, many=True)
        return success_response({
            'count': len(shipments),
            'shipments': serializer.data
        })

    @action(detail=False, methods=['post'])
    def cancel(self, request):
        """Cancel a bilty or manual bilty."""
        serializer = CancelShipmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            context = branch_context(request, data['branch_id'])
            shipment = ShipmentService.cancel_shipment(
                data['source'], str(data['shipment_id']), context, data['reason']
            )
        except BusinessException as e:
            return error_response(e)

        return success_response({
            'shipment_id': shipment.id,
            'gr_no': shipment.gr_no,
            'is_active': shipment.is_active,
            'cancelled_at': shipment.cancelled_at
        })

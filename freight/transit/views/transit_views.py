"""
Transit views for the Transit & Challan Assignment module.
"""

from rest_framework import viewsets
from rest_framework.decorators import action
from django_filters.rest_framework import DjangoFilterBackend

from ..models import TransitDetails
from ..services import TransitService, DeliveryService
from ..serializers.transit_serializers import (
    TransitDetailsSerializer, RemoveTransitSerializer, BulkRemoveSerializer,
    AdvanceSerializer
)
from ..exceptions import BusinessException
from ..permissions import IsBranchStaff
from .base import branch_context, success_response, error_response


class TransitViewSet(viewsets.ReadOnlyModelViewSet):
    """
    ViewSet for transit records.

    Provides removal from a challan and delivery milestone updates.
    """

    queryset = TransitDetails.objects.select_related(
        'challan', 'from_branch', 'to_branch', 'bilty__to_city', 'manual_bilty'
    )
    serializer_class = TransitDetailsSerializer
    permission_classes = [IsBranchStaff]
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ['challan', 'state', 'from_branch', 'to_branch', 'gr_no', 'source']

    def get_serializer_class(self):
        """Return appropriate serializer based on action."""
        if self.action == 'remove':
            return RemoveTransitSerializer
        elif self.action == 'bulk_remove':
            return BulkRemoveSerializer
        elif self.action == 'advance':
            return AdvanceSerializer
        else:
            return TransitDetailsSerializer

    @action(detail=True, methods=['post'])
    def remove(self, request, pk=None):
        """Take one shipment off its challan."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            context = branch_context(request, data['branch_id'])
            result = TransitService.remove_from_transit(pk, context, data['reason'])
        except BusinessException as e:
            return error_response(e)

        return success_response(result)

    @action(detail=False, methods=['post'])
    def bulk_remove(self, request):
        """Take several shipments off their challans."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            context = branch_context(request, data['branch_id'])
            result = TransitService.bulk_remove(data['transit_ids'], context, data['reason'])
        except BusinessException as e:
            return error_response(e)

        return success_response(result)

    @action(detail=True, methods=['post'])
    def advance(self, request, pk=None):
        """Set a delivery milestone on the record."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            context = branch_context(request, data['branch_id'])
            transit = DeliveryService.advance(pk, data['milestone'], context)
        except BusinessException as e:
            return error_response(e)

        return success_response(TransitDetailsSerializer(transit).data)

    @action(detail=True, methods=['get'])
    def transitions(self, request, pk=None):
        """Milestones the record can be advanced to."""
        try:
            allowed = DeliveryService.available_transitions(pk)
        except BusinessException as e:
            return error_response(e)

        return success_response({'transit_id': pk, 'available_transitions': allowed})

"""
Challan views for the Transit & Challan Assignment module.
"""

from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend

from ..models import Challan, ChallanBook
from ..services import TransitService, ChallanService
from ..serializers.challan_serializers import (
    ChallanBookSerializer, ChallanListSerializer, ChallanDetailSerializer,
    AssignShipmentsSerializer, ChallanCreateSerializer, ChallanSummarySerializer
)
from ..exceptions import BusinessException
from ..permissions import IsBranchStaff
from .base import branch_context, success_response, error_response


class ChallanViewSet(viewsets.ReadOnlyModelViewSet):
    """
    ViewSet for challans.

    Challans are created from a challan book; this viewset covers reads
    and the transit actions on a challan.
    """

    queryset = Challan.objects.select_related('branch', 'created_by').filter(is_active=True)
    permission_classes = [IsBranchStaff]
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ['branch', 'is_dispatched', 'challan_book', 'date']

    def get_serializer_class(self):
        """Return appropriate serializer based on action."""
        if self.action == 'list':
            return ChallanListSerializer
        elif self.action == 'assign':
            return AssignShipmentsSerializer
        else:
            return ChallanDetailSerializer

    @action(detail=True, methods=['post'])
    def assign(self, request, pk=None):
        """Assign selected shipments to the challan."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            context = branch_context(request, data['branch_id'])
            result = TransitService.assign_to_challan(
                pk, str(data['challan_book_id']), data['gr_nos'], context
            )
        except BusinessException as e:
            return error_response(e)

        if not result['success']:
            # Every selected GR was rejected
            return Response({
                'success': False,
                'data': result
            }, status=status.HTTP_400_BAD_REQUEST)
        return success_response(result)

    @action(detail=True, methods=['get'])
    def summary(self, request, pk=None):
        """Counts and totals of the challan's active transit records."""
        try:
            summary = ChallanService.get_challan_summary(pk)
        except BusinessException as e:
            return error_response(e)

        return success_response(ChallanSummarySerializer(summary).data)

    @action(detail=True, methods=['get'])
    def transit(self, request, pk=None):
        """Active transit records of the challan with shipment details."""
        order_by = request.query_params.get('order_by', 'destination')
        try:
            records = ChallanService.get_transit_records(pk, order_by)
        except BusinessException as e:
            return error_response(e)

        return success_response({
            'count': len(records),
            'records': records
        })

    @action(detail=True, methods=['post'])
    def reconcile(self, request, pk=None):
        """Reset the stored bilty count to the live transit count."""
        try:
            context = branch_context(request, request.data.get('branch_id'))
            result = ChallanService.reconcile_count(pk, context)
        except BusinessException as e:
            return error_response(e)

        return success_response(result)


class ChallanBookViewSet(viewsets.ReadOnlyModelViewSet):
    """
    ViewSet for challan books.
    """

    queryset = ChallanBook.objects.select_related('from_branch', 'to_branch')
    serializer_class = ChallanBookSerializer
    permission_classes = [IsBranchStaff]
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ['from_branch', 'to_branch', 'is_active', 'is_completed']

    @action(detail=True, methods=['post'])
    def create_challan(self, request, pk=None):
        """Issue the next numbered challan from this book."""
        serializer = ChallanCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)

        try:
            context = branch_context(request, data.pop('branch_id'))
            challan = ChallanService.create_challan(pk, data, context)
        except BusinessException as e:
            return error_response(e)

        return success_response(
            ChallanDetailSerializer(challan).data,
            http_status=status.HTTP_201_CREATED
        )

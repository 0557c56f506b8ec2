"""
Transit & Challan Assignment Services
"""

from .ordering import compare_gr_numbers, sort_gr_numbers, sort_by_gr_number, sort_by_destination_city
from .workflow import (
    DeliveryWorkflow, RoutingClass, StatusLabel, status_label,
    least_advanced_label, validate_delivery_workflow
)
from .availability_service import AvailabilityService, filter_available
from .transit_service import TransitService
from .delivery_service import DeliveryService
from .challan_service import ChallanService
from .shipment_service import ShipmentService

__all__ = [
    # Ordering
    'compare_gr_numbers', 'sort_gr_numbers', 'sort_by_gr_number', 'sort_by_destination_city',

    # Workflow
    'DeliveryWorkflow', 'RoutingClass', 'StatusLabel', 'status_label',
    'least_advanced_label', 'validate_delivery_workflow',

    # Services
    'AvailabilityService', 'filter_available', 'TransitService',
    'DeliveryService', 'ChallanService', 'ShipmentService',
]

"""
Transit & Challan Assignment Views
"""

from .shipment_views import ShipmentViewSet
from .challan_views import ChallanViewSet, ChallanBookViewSet
from .transit_views import TransitViewSet

__all__ = [
    'ShipmentViewSet',
    'ChallanViewSet',
    'ChallanBookViewSet',
    'TransitViewSet',
]

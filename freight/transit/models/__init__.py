"""
Transit & Challan Assignment Models
"""

from .location import Branch, City
from .shipment import (
    Bilty, ManualBilty, PaymentMode, DeliveryType, SavingOption, ShipmentSource
)
from .challan import Challan, ChallanBook
from .transit import (
    TransitDetails, TransitState, Milestone, MILESTONE_ORDER, MILESTONE_FIELDS
)
from .audit import AuditLog

__all__ = [
    # Reference data
    'Branch', 'City',

    # Shipments
    'Bilty', 'ManualBilty', 'PaymentMode', 'DeliveryType',
    'SavingOption', 'ShipmentSource',

    # Challans
    'Challan', 'ChallanBook',

    # Transit
    'TransitDetails', 'TransitState', 'Milestone',
    'MILESTONE_ORDER', 'MILESTONE_FIELDS',

    # Audit
    'AuditLog',
]

"""
URL configuration for the Transit & Challan Assignment module.

Provides API endpoints for shipment availability, challan assignment and
delivery milestones.
"""

from rest_framework.routers import DefaultRouter

from .views import ShipmentViewSet, ChallanViewSet, ChallanBookViewSet, TransitViewSet

router = DefaultRouter()
router.register(r'shipments', ShipmentViewSet, basename='shipment')
router.register(r'challans', ChallanViewSet, basename='challan')
router.register(r'challan-books', ChallanBookViewSet, basename='challan-book')
router.register(r'transit', TransitViewSet, basename='transit')

urlpatterns = router.urls

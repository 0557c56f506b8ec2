"""
Custom permissions for the Transit & Challan Assignment module.
"""

from django.conf import settings
from rest_framework.permissions import BasePermission


def _staff_groups():
    return getattr(settings, 'TRANSIT_ENGINE', {}).get('STAFF_GROUPS', ['branch_staff'])


class IsBranchStaff(BasePermission):
    """
    Allows staff users and members of the configured branch staff groups.

    Group names come from TRANSIT_ENGINE['STAFF_GROUPS'].
    """

    message = "Only branch staff can load or unload challans."

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        if user.is_staff or user.is_superuser:
            return True
        return user.groups.filter(name__in=_staff_groups()).exists()

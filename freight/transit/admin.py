"""
Django admin configuration for the Transit & Challan Assignment module.
"""

from django.contrib import admin
from .models import (
    City, Branch, Bilty, ManualBilty, ChallanBook, Challan, TransitDetails, AuditLog
)


@admin.register(City)
class CityAdmin(admin.ModelAdmin):
    list_display = ['city_name', 'city_code']
    search_fields = ['city_name', 'city_code']


@admin.register(Branch)
class BranchAdmin(admin.ModelAdmin):
    list_display = ['code', 'name', 'city', 'is_active']
    list_filter = ['is_active']
    search_fields = ['code', 'name']


@admin.register(Bilty)
class BiltyAdmin(admin.ModelAdmin):
    list_display = ['gr_no', 'branch', 'to_city', 'payment_mode', 'delivery_type', 'saving_option', 'is_active']
    list_filter = ['saving_option', 'payment_mode', 'delivery_type', 'is_active']
    search_fields = ['gr_no', 'consignor_name', 'consignee_name']
    readonly_fields = ['id', 'created_at', 'cancelled_at']


@admin.register(ManualBilty)
class ManualBiltyAdmin(admin.ModelAdmin):
    list_display = ['gr_no', 'branch', 'station', 'payment_status', 'is_active']
    list_filter = ['payment_status', 'is_active']
    search_fields = ['gr_no', 'consignor', 'consignee']
    readonly_fields = ['id', 'created_at', 'updated_at', 'cancelled_at']


@admin.register(ChallanBook)
class ChallanBookAdmin(admin.ModelAdmin):
    list_display = ['__str__', 'current_number', 'auto_continue', 'is_completed', 'is_active']
    list_filter = ['is_active', 'is_completed', 'auto_continue']
    readonly_fields = ['id', 'created_at']


@admin.register(Challan)
class ChallanAdmin(admin.ModelAdmin):
    list_display = ['challan_no', 'branch', 'truck_no', 'date', 'total_bilty_count', 'is_dispatched']
    list_filter = ['is_dispatched', 'is_active', 'date']
    search_fields = ['challan_no', 'truck_no', 'driver_name']
    readonly_fields = ['id', 'total_bilty_count', 'created_at', 'updated_at']


@admin.register(TransitDetails)
class TransitDetailsAdmin(admin.ModelAdmin):
    list_display = ['gr_no', 'challan', 'from_branch', 'to_branch', 'state', 'created_at']
    list_filter = ['state', 'source', 'is_delivered_at_branch2', 'is_delivered_at_destination']
    search_fields = ['gr_no', 'challan__challan_no']
    readonly_fields = ['id', 'created_at', 'updated_at', 'deactivated_at']


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ['entity_type', 'entity_id', 'action', 'user', 'timestamp']
    list_filter = ['entity_type', 'action', 'timestamp']
    search_fields = ['entity_id', 'notes']
    readonly_fields = ['id', 'timestamp']

from django.contrib import admin

from .models import Claim, Zone


class ReadOnlyAdmin(admin.ModelAdmin):
    """Zones are reference data and claims only change through the ClaimStore."""

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Zone)
class ZoneAdmin(ReadOnlyAdmin):
    list_display = ('name', 'area', 'region', 'trade_node', 'kind')
    list_filter = ('kind', 'region')
    search_fields = ('name', 'area', 'region', 'trade_node')


@admin.register(Claim)
class ClaimAdmin(ReadOnlyAdmin):
    list_display = ('id', 'display_name', 'owner', 'granularity', 'target', 'created_at')
    list_filter = ('granularity',)
    search_fields = ('owner', 'display_name', 'target')

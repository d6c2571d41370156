# ==========================================
# apps/meals/admin.py
# ==========================================

from django.contrib import admin
from django.utils.html import format_html
from .models import MealCancellation


@admin.register(MealCancellation)
class MealCancellationAdmin(admin.ModelAdmin):
    """
    Read-mostly admin for meal cancellations.

    Prices are snapshots and refund state only moves through refund
    batches, so neither can be edited here.
    """

    list_display = [
        'child',
        'date',
        'meal_type',
        'meal_price',
        'refund_badge',
        'created_at',
    ]
    list_filter = ['meal_type', 'refunded', 'date']
    search_fields = ['child__name', 'child__surname', 'reason']
    date_hierarchy = 'date'
    raw_id_fields = ['child']
    readonly_fields = ['meal_price', 'refunded', 'refunded_at', 'created_at']

    def refund_badge(self, obj):
        """Display refund state as colored badge."""
        bg, fg, label = (
            ('#6B8E5E', 'white', 'Refunded') if obj.refunded
            else ('#E5C49A', '#2C1810', 'Outstanding')
        )
        return format_html(
            '<span style="background: {}; color: {}; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">{}</span>',
            bg, fg, label
        )
    refund_badge.short_description = 'Refund'

    def has_add_permission(self, request):
        """Cancellations are created through the API so the deadline applies."""
        return False

# ==========================================
# apps/payments/admin.py
# ==========================================

from django.contrib import admin
from django.utils.html import format_html
from .models import Payment, PaymentStatus


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = [
        'child',
        'amount',
        'description',
        'due_date',
        'status_badge',
        'paid_date',
    ]
    list_filter = ['status', 'due_date']
    search_fields = ['child__name', 'child__surname', 'description']
    date_hierarchy = 'due_date'
    raw_id_fields = ['child']

    def status_badge(self, obj):
        """Display payment status as colored badge."""
        colors = {
            PaymentStatus.PENDING: ('#E5C49A', '#2C1810'),
            PaymentStatus.PAID: ('#6B8E5E', 'white'),
            PaymentStatus.OVERDUE: ('#B85C5C', 'white'),
            PaymentStatus.CANCELLED: ('#999999', 'white'),
        }
        bg, fg = colors.get(obj.status, ('#ccc', '#666'))
        return format_html(
            '<span style="background: {}; color: {}; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">{}</span>',
            bg, fg, obj.get_status_display()
        )
    status_badge.short_description = 'Status'

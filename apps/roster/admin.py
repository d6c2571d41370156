# ==========================================
# apps/roster/admin.py
# ==========================================

from django.contrib import admin
from .models import Group, Child


class ChildInline(admin.TabularInline):
    """Children listed inside their group."""
    model = Child
    extra = 0
    fields = ['name', 'surname', 'parent']


@admin.register(Group)
class GroupAdmin(admin.ModelAdmin):
    list_display = [
        'name',
        'age_range',
        'breakfast_price',
        'lunch_price',
        'snack_price',
        'children_count',
    ]
    search_fields = ['name']
    inlines = [ChildInline]

    def children_count(self, obj):
        return obj.children.count()
    children_count.short_description = 'Children'


@admin.register(Child)
class ChildAdmin(admin.ModelAdmin):
    list_display = ['surname', 'name', 'group', 'parent']
    list_filter = ['group']
    search_fields = ['name', 'surname', 'parent__email']
    raw_id_fields = ['parent']

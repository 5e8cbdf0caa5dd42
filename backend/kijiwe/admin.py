from django.contrib import admin

from .models import Kijiwe, QueueEntry


class QueueEntryInline(admin.TabularInline):
    model = QueueEntry
    extra = 0
    readonly_fields = ['joined_at']


@admin.register(Kijiwe)
class KijiweAdmin(admin.ModelAdmin):
    list_display = ['id', 'name', 'latitude', 'longitude', 'admin', 'created_at']
    search_fields = ['name', 'admin__username']
    inlines = [QueueEntryInline]


@admin.register(QueueEntry)
class QueueEntryAdmin(admin.ModelAdmin):
    list_display = ['kijiwe', 'driver', 'joined_at']
    list_filter = ['kijiwe']

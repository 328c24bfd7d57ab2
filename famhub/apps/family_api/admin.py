from django.contrib import admin
from django.contrib import messages

from .models import (
    Child, Location, CheckIn, LocationSample, ContainmentState, GeofenceAlert,
    HealthLog, DrivingReport, Task, ChatMessage, UserDevice
)
from .tasks import send_geofence_alert_push


@admin.register(Child)
class ChildAdmin(admin.ModelAdmin):
    list_display = ('name', 'parent', 'device_id', 'battery_status', 'is_active', 'last_seen_at', 'updated_at')
    search_fields = ('name', 'parent__username', 'device_id')
    list_filter = ('parent', 'is_active')


@admin.register(Location)
class LocationAdmin(admin.ModelAdmin):
    list_display = ('name', 'owner', 'category', 'latitude', 'longitude', 'is_geofence_enabled', 'geofence_radius')
    search_fields = ('name', 'address', 'owner__username')
    list_filter = ('category', 'is_geofence_enabled')


@admin.register(CheckIn)
class CheckInAdmin(admin.ModelAdmin):
    list_display = ('location', 'child', 'owner', 'timestamp')
    search_fields = ('location__name', 'child__name', 'notes')
    date_hierarchy = 'timestamp'


@admin.register(LocationSample)
class LocationSampleAdmin(admin.ModelAdmin):
    list_display = ('child', 'timestamp', 'latitude', 'longitude', 'accuracy')
    search_fields = ('child__name',)
    list_filter = ('child', 'timestamp')
    date_hierarchy = 'timestamp'


@admin.register(ContainmentState)
class ContainmentStateAdmin(admin.ModelAdmin):
    list_display = ('child', 'location', 'is_inside', 'version', 'last_sample_at', 'updated_at')
    list_filter = ('is_inside',)
    readonly_fields = ('version', 'updated_at')


@admin.register(GeofenceAlert)
class GeofenceAlertAdmin(admin.ModelAdmin):
    list_display = ('owner', 'child', 'location', 'alert_type', 'timestamp', 'is_read')
    search_fields = ('owner__username', 'child__name', 'location__name')
    list_filter = ('alert_type', 'is_read', 'timestamp')
    date_hierarchy = 'timestamp'
    actions = ['resend_push_action']

    @admin.action(description='Re-send push notification for selected alerts')
    def resend_push_action(modeladmin, request, queryset):
        queued = 0
        for alert in queryset:
            send_geofence_alert_push.delay(alert.id)
            queued += 1
        modeladmin.message_user(request, f"Push queued for {queued} alert(s).", messages.SUCCESS)


@admin.register(HealthLog)
class HealthLogAdmin(admin.ModelAdmin):
    list_display = ('child', 'log_type', 'value', 'timestamp')
    search_fields = ('child__name', 'value', 'notes')
    list_filter = ('log_type', 'timestamp')
    date_hierarchy = 'timestamp'


@admin.register(DrivingReport)
class DrivingReportAdmin(admin.ModelAdmin):
    list_display = ('child', 'trip_start', 'distance', 'max_speed', 'hard_braking', 'phone_usage', 'score')
    list_filter = ('child',)
    date_hierarchy = 'trip_start'


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    list_display = ('title', 'owner', 'child', 'category', 'priority', 'due_date', 'completed', 'recurring')
    search_fields = ('title', 'description')
    list_filter = ('category', 'priority', 'completed', 'recurring')


@admin.register(ChatMessage)
class ChatMessageAdmin(admin.ModelAdmin):
    list_display = ('owner', 'role', 'timestamp')
    list_filter = ('role',)
    search_fields = ('owner__username', 'content')


@admin.register(UserDevice)
class UserDeviceAdmin(admin.ModelAdmin):
    list_display = ('user', 'device_type', 'device_token_short', 'created_at', 'is_active')
    list_filter = ('device_type', 'is_active', 'user')
    search_fields = ('user__username', 'device_token')
    readonly_fields = ('created_at',)

    def device_token_short(self, obj):
        if obj.device_token and isinstance(obj.device_token, str):
            return obj.device_token[:50] + "..." if len(obj.device_token) > 50 else obj.device_token
        return ""
    device_token_short.short_description = "Device Token (Short)"

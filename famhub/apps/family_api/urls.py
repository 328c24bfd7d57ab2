from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import (
    ChildViewSet,
    LocationViewSet,
    CheckInViewSet,
    HealthLogViewSet,
    DrivingReportViewSet,
    TaskViewSet,
    LocationUpdateView,
    ChildCurrentLocationView,
    ChildLocationHistoryView,
    AlertListView,
    MarkAlertReadView,
    MarkAllAlertsReadView,
    UnreadAlertCountView,
    ChildHealthSummaryView,
    ChildDrivingSummaryView,
    ChildHealthTrendsView,
    WeeklySummaryView,
    CorrectTextView,
    ValidateHealthInputView,
    ChatView,
    DeviceRegistrationView,
    health_check,
)
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

router = DefaultRouter()
router.register(r'children', ChildViewSet, basename='child')
router.register(r'locations', LocationViewSet, basename='location')
router.register(r'check-ins', CheckInViewSet, basename='check-in')
router.register(r'health-logs', HealthLogViewSet, basename='health-log')
router.register(r'driving-reports', DrivingReportViewSet, basename='driving-report')
router.register(r'tasks', TaskViewSet, basename='task')

urlpatterns = [
    # Health Check
    path('health/', health_check, name='health-check'),

    # API Documentation
    path('schema/', SpectacularAPIView.as_view(), name='schema'),
    path('docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),

    # Device Registration
    path('devices/register/', DeviceRegistrationView.as_view(), name='device-register'),

    # Location feed
    path('location/update/', LocationUpdateView.as_view(), name='location-update'),

    # Alert inbox
    path('alerts/', AlertListView.as_view(), name='alerts-list'),
    path('alerts/read-all/', MarkAllAlertsReadView.as_view(), name='alerts-read-all'),
    path('alerts/unread-count/', UnreadAlertCountView.as_view(), name='alerts-unread-count'),
    path('alerts/<int:alert_id>/read/', MarkAlertReadView.as_view(), name='alert-mark-read'),

    # Child-specific views
    path('children/<int:child_id>/location/current/', ChildCurrentLocationView.as_view(), name='child-current-location'),
    path('children/<int:child_id>/location/history/', ChildLocationHistoryView.as_view(), name='child-location-history'),
    path('children/<int:child_id>/health-summary/', ChildHealthSummaryView.as_view(), name='child-health-summary'),
    path('children/<int:child_id>/driving-summary/', ChildDrivingSummaryView.as_view(), name='child-driving-summary'),
    path('children/<int:child_id>/health-trends/', ChildHealthTrendsView.as_view(), name='child-health-trends'),

    path('summaries/weekly/', WeeklySummaryView.as_view(), name='weekly-summary'),

    # AI helpers
    path('ai/correct-text/', CorrectTextView.as_view(), name='ai-correct-text'),
    path('ai/validate-health-input/', ValidateHealthInputView.as_view(), name='ai-validate-health-input'),
    path('chat/', ChatView.as_view(), name='chat'),

    # Include router URLs
    path('', include(router.urls)),
]

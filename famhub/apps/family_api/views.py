from rest_framework import serializers as drf_serializers
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status, viewsets, mixins, generics
from rest_framework.decorators import api_view, permission_classes, action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.pagination import PageNumberPagination
from django.http import Http404
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.utils.dateparse import parse_datetime
from drf_spectacular.utils import extend_schema, OpenApiParameter, OpenApiTypes
import logging

from .serializers import (
    ChildSerializer,
    LocationSerializer,
    CheckInSerializer,
    LocationSampleSerializer,
    LocationUpdateSerializer,
    GeofenceAlertSerializer,
    HealthLogSerializer,
    DrivingReportSerializer,
    TaskSerializer,
    ChatMessageSerializer,
    ChatRequestSerializer,
    CorrectTextSerializer,
    HealthInputValidationSerializer,
    DeviceRegistrationSerializer,
)
from .models import Child, Location, HealthLog, DrivingReport, Task, ChatMessage, UserDevice
from .exceptions import FamilyHubError
from . import ai_service, alert_service, location_service, summary_service, task_service

logger = logging.getLogger(__name__)


def error_response(exc):
    return Response({"error": exc.message}, status=exc.status_code)


def parse_query_datetime(value):
    if not value:
        return None
    try:
        parsed = parse_datetime(value)
    except (ValueError, TypeError):
        return None
    if parsed and timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed, timezone.get_default_timezone())
    return parsed


def child_id_param(request):
    child_id = request.query_params.get('child_id') or None
    if child_id is not None and not child_id.isdigit():
        raise drf_serializers.ValidationError({"child_id": "child_id must be an integer."})
    return child_id


# ====== HEALTH CHECK ======
@api_view(['GET'])
@permission_classes([AllowAny])
def health_check(request):
    """Simple health check endpoint"""
    return Response({
        "status": "ok",
        "service": "FamHub API",
        "version": "1.0.0"
    })


class SimpleMessageResponseSerializer(drf_serializers.Serializer):
    message = drf_serializers.CharField()


# ====== FAMILY RECORDS ======
@extend_schema(
    summary="Manage Child Profiles",
    description="Allows authenticated guardians to list, create, retrieve, update, and delete child profiles."
)
class ChildViewSet(viewsets.ModelViewSet):
    serializer_class = ChildSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        return Child.objects.filter(parent=self.request.user).order_by('-created_at')

    def perform_create(self, serializer):
        serializer.save(parent=self.request.user)


@extend_schema(
    summary="Manage Locations",
    description="Places the family cares about. Geofence-enabled locations produce enter/leave alerts."
)
class LocationViewSet(viewsets.ModelViewSet):
    serializer_class = LocationSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        return Location.objects.filter(owner=self.request.user).order_by('-created_at')

    def perform_create(self, serializer):
        serializer.save(owner=self.request.user)


class CheckInViewSet(mixins.ListModelMixin, mixins.CreateModelMixin, viewsets.GenericViewSet):
    """Check-ins are append-only: list and create."""
    serializer_class = CheckInSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        child = None
        child_id = child_id_param(self.request)
        if child_id:
            child = get_object_or_404(Child, pk=child_id, parent=self.request.user)
        return location_service.recent_check_ins(self.request.user, limit=None, child=child)

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data
        try:
            check_in = location_service.record_check_in(
                request.user,
                data['location_id'],
                child_id=data.get('child_id'),
                notes=data.get('notes'),
                timestamp=data.get('timestamp'),
            )
        except FamilyHubError as e:
            return error_response(e)
        return Response(self.get_serializer(check_in).data, status=status.HTTP_201_CREATED)


class HealthLogViewSet(viewsets.ModelViewSet):
    serializer_class = HealthLogSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        queryset = HealthLog.objects.filter(owner=self.request.user).select_related('child')
        child_id = child_id_param(self.request)
        if child_id:
            queryset = queryset.filter(child_id=child_id)
        log_type = self.request.query_params.get('log_type')
        if log_type:
            queryset = queryset.filter(log_type=log_type)
        return queryset

    def perform_create(self, serializer):
        serializer.save(owner=self.request.user)


class DrivingReportViewSet(mixins.ListModelMixin, mixins.CreateModelMixin, mixins.RetrieveModelMixin,
                           mixins.DestroyModelMixin, viewsets.GenericViewSet):
    serializer_class = DrivingReportSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        queryset = DrivingReport.objects.filter(owner=self.request.user).select_related('child')
        child_id = child_id_param(self.request)
        if child_id:
            queryset = queryset.filter(child_id=child_id)
        return queryset

    def perform_create(self, serializer):
        serializer.save(owner=self.request.user)


class TaskViewSet(viewsets.ModelViewSet):
    serializer_class = TaskSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        return Task.objects.filter(owner=self.request.user).select_related('child').order_by('due_date', 'id')

    def perform_create(self, serializer):
        serializer.save(owner=self.request.user)

    @extend_schema(
        parameters=[
            OpenApiParameter(
                name='due_state',
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                required=False,
                enum=list(task_service.DUE_STATES),
                description='Only return tasks in this derived state'
            )
        ]
    )
    def list(self, request, *args, **kwargs):
        due_state = request.query_params.get('due_state')
        if not due_state:
            return super().list(request, *args, **kwargs)
        if due_state not in task_service.DUE_STATES:
            return Response({"error": f"due_state must be one of {', '.join(task_service.DUE_STATES)}."},
                            status=status.HTTP_400_BAD_REQUEST)
        tasks = task_service.filter_by_due_state(self.get_queryset(), due_state)
        page = self.paginate_queryset(tasks)
        if page is not None:
            return self.get_paginated_response(self.get_serializer(page, many=True).data)
        return Response(self.get_serializer(tasks, many=True).data)

    @extend_schema(request=None, responses=TaskSerializer)
    @action(detail=True, methods=['post'])
    def toggle(self, request, pk=None):
        task = self.get_object()
        follow_up = task_service.toggle_task(task)
        data = self.get_serializer(task).data
        if follow_up is not None:
            data['next_occurrence'] = self.get_serializer(follow_up).data
        return Response(data, status=status.HTTP_200_OK)


# ====== LOCATION FEED & GEOFENCING ======
class LocationUpdateView(APIView):
    """
    Receives location samples from a child's device and evaluates geofences.
    """
    permission_classes = [AllowAny]

    @extend_schema(
        summary="Submit Child Location Update",
        request=LocationUpdateSerializer,
        responses={
            201: OpenApiTypes.OBJECT,
            400: OpenApiTypes.OBJECT,
            403: OpenApiTypes.OBJECT,
            404: OpenApiTypes.OBJECT,
            409: OpenApiTypes.OBJECT,
        }
    )
    def post(self, request, *args, **kwargs):
        serializer = LocationUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        validated_input = serializer.validated_data
        child = Child.objects.select_related('parent').filter(pk=validated_input['child_id']).first()
        if child is None:
            return Response({"error": "Child not found."}, status=status.HTTP_404_NOT_FOUND)

        if not child.device_id or child.device_id != validated_input['device_id']:
            logger.warning(f"Device ID mismatch for child {child.id}")
            return Response({"error": "Device ID mismatch or not registered for this child."},
                            status=status.HTTP_403_FORBIDDEN)

        try:
            sample, alerts = location_service.record_location_sample(
                child,
                validated_input['latitude'],
                validated_input['longitude'],
                timestamp=validated_input['timestamp'],
                accuracy=validated_input.get('accuracy'),
            )
        except FamilyHubError as e:
            logger.warning(f"Rejected location sample for child {child.id}: {e.message}")
            return error_response(e)

        battery_status = validated_input.get('battery_status')
        if battery_status is not None:
            child.battery_status = battery_status
            child.save(update_fields=['battery_status'])

        return Response({
            "message": "Location updated successfully. Geofence checks performed.",
            "sample": LocationSampleSerializer(sample).data,
            "alerts": GeofenceAlertSerializer(alerts, many=True).data,
        }, status=status.HTTP_201_CREATED)


class ChildCurrentLocationView(generics.RetrieveAPIView):
    """
    Retrieves the most recent known location for a specific child.
    """
    serializer_class = LocationSampleSerializer
    permission_classes = [IsAuthenticated]

    def get_object(self):
        child = get_object_or_404(Child, pk=self.kwargs.get('child_id'), parent=self.request.user)
        sample = location_service.latest_sample(child)
        if not sample:
            raise Http404("No location data found for this child.")
        return sample


class ChildLocationHistoryView(generics.ListAPIView):
    """
    Retrieves the location history for a specific child.
    """
    serializer_class = LocationSampleSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = PageNumberPagination

    @extend_schema(
        summary="Retrieve Child Location History",
        parameters=[
            OpenApiParameter(
                name='start_timestamp',
                type=OpenApiTypes.DATETIME,
                location=OpenApiParameter.QUERY,
                required=False,
                description='Filter history from this ISO 8601 timestamp'
            ),
            OpenApiParameter(
                name='end_timestamp',
                type=OpenApiTypes.DATETIME,
                location=OpenApiParameter.QUERY,
                required=False,
                description='Filter history up to this ISO 8601 timestamp'
            )
        ]
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    def get_queryset(self):
        child = get_object_or_404(Child, pk=self.kwargs.get('child_id'), parent=self.request.user)
        return location_service.location_history(
            child,
            start=parse_query_datetime(self.request.query_params.get('start_timestamp')),
            end=parse_query_datetime(self.request.query_params.get('end_timestamp')),
        )


# ====== ALERT INBOX ======
class AlertListView(generics.ListAPIView):
    serializer_class = GeofenceAlertSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        child = None
        child_id = child_id_param(self.request)
        if child_id:
            child = get_object_or_404(Child, pk=child_id, parent=self.request.user)
        unread_only = self.request.query_params.get('unread') in ('1', 'true', 'True')
        return alert_service.list_alerts(self.request.user, child=child, unread_only=unread_only)


class MarkAlertReadView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(summary="Mark Geofence Alert As Read", request=None, responses=GeofenceAlertSerializer)
    def post(self, request, alert_id, *args, **kwargs):
        try:
            alert = alert_service.mark_alert_read(request.user, alert_id)
        except FamilyHubError as e:
            return error_response(e)
        return Response(GeofenceAlertSerializer(alert).data, status=status.HTTP_200_OK)


class MarkAllAlertsReadView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(summary="Mark All Geofence Alerts As Read", request=None, responses=OpenApiTypes.OBJECT)
    def post(self, request, *args, **kwargs):
        updated = alert_service.mark_all_alerts_read(request.user)
        return Response({"marked_read": updated}, status=status.HTTP_200_OK)


class UnreadAlertCountView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(summary="Unread Geofence Alert Count", responses=OpenApiTypes.OBJECT)
    def get(self, request, *args, **kwargs):
        return Response({"unread_count": alert_service.unread_alert_count(request.user)})


# ====== SUMMARIES & INSIGHTS ======
def _summary_now(request):
    return parse_query_datetime(request.query_params.get('now')) or timezone.now()


class ChildHealthSummaryView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(summary="Weekly Health Summary", responses=OpenApiTypes.OBJECT)
    def get(self, request, child_id, *args, **kwargs):
        child = get_object_or_404(Child, pk=child_id, parent=request.user)
        return Response(summary_service.weekly_health_summary(child, now=_summary_now(request)))


class ChildDrivingSummaryView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(summary="Weekly Driving Summary", responses=OpenApiTypes.OBJECT)
    def get(self, request, child_id, *args, **kwargs):
        child = get_object_or_404(Child, pk=child_id, parent=request.user)
        return Response(summary_service.weekly_driving_summary(child, now=_summary_now(request)))


class WeeklySummaryView(APIView):
    """
    Combined weekly summary for the child given by `?child_id=`.
    Without a child the summary is null rather than an error.
    """
    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Weekly Family Summary",
        parameters=[
            OpenApiParameter(
                name='child_id',
                type=OpenApiTypes.INT,
                location=OpenApiParameter.QUERY,
                required=False,
                description='Child to summarize'
            )
        ],
        responses=OpenApiTypes.OBJECT
    )
    def get(self, request, *args, **kwargs):
        child_id = request.query_params.get('child_id') or None
        if child_id is not None and not child_id.isdigit():
            return Response({"error": "child_id must be an integer."}, status=status.HTTP_400_BAD_REQUEST)
        try:
            summary = summary_service.family_weekly_summary(request.user, child_id, now=_summary_now(request))
        except FamilyHubError as e:
            return error_response(e)
        return Response({"summary": summary})


class ChildHealthTrendsView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(summary="AI Health Trend Analysis", request=None, responses=OpenApiTypes.OBJECT)
    def post(self, request, child_id, *args, **kwargs):
        child = get_object_or_404(Child, pk=child_id, parent=request.user)
        return Response({"analysis": ai_service.generate_trend_analysis(child)})


class CorrectTextView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(summary="Capitalize And Correct Text", request=CorrectTextSerializer, responses=OpenApiTypes.OBJECT)
    def post(self, request, *args, **kwargs):
        serializer = CorrectTextSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        text = serializer.validated_data['text']
        return Response({"text": ai_service.capitalize_and_correct_text(text)})


class ValidateHealthInputView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(summary="Validate Health Log Input", request=HealthInputValidationSerializer, responses=OpenApiTypes.OBJECT)
    def post(self, request, *args, **kwargs):
        serializer = HealthInputValidationSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data
        return Response(ai_service.validate_health_input(data['log_type'], data['value']))


# ====== CHAT ASSISTANT ======
class ChatView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(summary="Chat History", responses=ChatMessageSerializer(many=True))
    def get(self, request, *args, **kwargs):
        messages = ChatMessage.objects.filter(owner=request.user)
        return Response(ChatMessageSerializer(messages, many=True).data)

    @extend_schema(summary="Send Chat Message", request=ChatRequestSerializer, responses=OpenApiTypes.OBJECT)
    def post(self, request, *args, **kwargs):
        serializer = ChatRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        reply = ai_service.chat_reply(request.user, serializer.validated_data['message'])
        return Response({"reply": reply}, status=status.HTTP_201_CREATED)

    @extend_schema(summary="Clear Chat History", responses={204: None})
    def delete(self, request, *args, **kwargs):
        deleted, _ = ChatMessage.objects.filter(owner=request.user).delete()
        logger.info(f"Cleared {deleted} chat message(s) for user {request.user.id}")
        return Response(status=status.HTTP_204_NO_CONTENT)


# ====== DEVICES ======
class DeviceRegistrationView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(summary="Register Device For Push Notifications", request=DeviceRegistrationSerializer,
                   responses={200: SimpleMessageResponseSerializer, 201: SimpleMessageResponseSerializer})
    def post(self, request, *args, **kwargs):
        serializer = DeviceRegistrationSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        device, created = UserDevice.objects.update_or_create(
            device_token=serializer.validated_data['device_token'],
            defaults={
                'user': request.user,
                'device_type': serializer.validated_data.get('device_type'),
                'is_active': True,
            }
        )
        message = "Device registered successfully." if created else "Device registration updated."
        return Response({"message": message},
                        status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)

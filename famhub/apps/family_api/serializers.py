from rest_framework import serializers
from django.core.validators import MinValueValidator, MaxValueValidator
from djoser.serializers import UserCreateSerializer as BaseUserCreateSerializer
from djoser.serializers import UserSerializer as BaseUserSerializer

from .models import (
    Child, Location, CheckIn, LocationSample, GeofenceAlert, HealthLog,
    DrivingReport, Task, ChatMessage, UserDevice
)


class UserCreateSerializer(BaseUserCreateSerializer):
    class Meta(BaseUserCreateSerializer.Meta):
        fields = ['id', 'username', 'email', 'password', 'first_name', 'last_name']


class UserSerializer(BaseUserSerializer):
    class Meta(BaseUserSerializer.Meta):
        fields = ['id', 'username', 'email', 'first_name', 'last_name']


class ChildSerializer(serializers.ModelSerializer):
    parent = serializers.PrimaryKeyRelatedField(read_only=True, help_text="The guardian account this child belongs to (auto-assigned).")
    name = serializers.CharField(max_length=100, help_text="Name of the child.")
    allergies = serializers.ListField(
        child=serializers.CharField(max_length=100), required=False,
        help_text="List of known allergies."
    )
    device_id = serializers.CharField(
        required=False, allow_blank=True, allow_null=True, max_length=255,
        help_text="Unique identifier for the child's device, used to authenticate location updates."
    )
    battery_status = serializers.IntegerField(
        required=False, allow_null=True,
        validators=[MinValueValidator(0), MaxValueValidator(100)],
        help_text="Child's device battery percentage (0-100)."
    )
    last_seen_at = serializers.DateTimeField(read_only=True, allow_null=True, help_text="Timestamp of the last location update.")

    class Meta:
        model = Child
        fields = ['id', 'name', 'parent', 'birth_date', 'allergies', 'notes', 'device_id', 'battery_status',
                  'is_active', 'last_seen_at', 'created_at', 'updated_at']
        read_only_fields = ('id', 'parent', 'last_seen_at', 'created_at', 'updated_at')

    def validate_name(self, value):
        if not value.strip():
            raise serializers.ValidationError("Child's name cannot be empty.")
        return value.strip()

    def validate_device_id(self, value):
        # Blank ids would collide on the unique constraint
        return value or None


class LocationSerializer(serializers.ModelSerializer):
    owner = serializers.PrimaryKeyRelatedField(read_only=True)
    latitude = serializers.DecimalField(
        max_digits=9, decimal_places=6,
        validators=[MinValueValidator(-90.0), MaxValueValidator(90.0)],
        help_text="Latitude of the location's center (-90.0 to 90.0)."
    )
    longitude = serializers.DecimalField(
        max_digits=9, decimal_places=6,
        validators=[MinValueValidator(-180.0), MaxValueValidator(180.0)],
        help_text="Longitude of the location's center (-180.0 to 180.0)."
    )
    geofence_radius = serializers.FloatField(
        required=False, help_text="Geofence radius in meters. Must be positive when geofencing is enabled."
    )

    class Meta:
        model = Location
        fields = ['id', 'owner', 'name', 'address', 'category', 'latitude', 'longitude',
                  'is_geofence_enabled', 'geofence_radius', 'created_at', 'updated_at']
        read_only_fields = ('id', 'owner', 'created_at', 'updated_at')

    def validate(self, attrs):
        enabled = attrs.get('is_geofence_enabled', getattr(self.instance, 'is_geofence_enabled', False))
        radius = attrs.get('geofence_radius', getattr(self.instance, 'geofence_radius', 100.0))
        if enabled and (radius is None or radius <= 0):
            raise serializers.ValidationError({'geofence_radius': "Radius must be positive when geofencing is enabled."})
        return attrs


class CheckInSerializer(serializers.ModelSerializer):
    location_id = serializers.IntegerField(write_only=True)
    child_id = serializers.IntegerField(write_only=True, required=False, allow_null=True)
    location = serializers.PrimaryKeyRelatedField(read_only=True)
    child = serializers.PrimaryKeyRelatedField(read_only=True)
    location_name = serializers.CharField(source='location.name', read_only=True)
    child_name = serializers.CharField(source='child.name', read_only=True, allow_null=True)
    timestamp = serializers.DateTimeField(required=False)

    class Meta:
        model = CheckIn
        fields = ['id', 'location_id', 'child_id', 'location', 'child', 'location_name', 'child_name', 'timestamp', 'notes']
        read_only_fields = ('id', 'location', 'child', 'location_name', 'child_name')


class LocationSampleSerializer(serializers.ModelSerializer):
    latitude = serializers.DecimalField(
        max_digits=9, decimal_places=6,
        validators=[MinValueValidator(-90.0), MaxValueValidator(90.0)],
        help_text="Latitude of the sample (-90.0 to 90.0)."
    )
    longitude = serializers.DecimalField(
        max_digits=9, decimal_places=6,
        validators=[MinValueValidator(-180.0), MaxValueValidator(180.0)],
        help_text="Longitude of the sample (-180.0 to 180.0)."
    )
    timestamp = serializers.DateTimeField(help_text="Timestamp of the reading (ISO 8601 format).")
    accuracy = serializers.FloatField(
        required=False, allow_null=True,
        validators=[MinValueValidator(0.0)],
        help_text="Accuracy of the location in meters (optional, positive value)."
    )

    class Meta:
        model = LocationSample
        fields = ['id', 'latitude', 'longitude', 'timestamp', 'accuracy']
        read_only_fields = ('id',)


class LocationUpdateSerializer(serializers.Serializer):
    child_id = serializers.IntegerField(help_text="ID of the child providing the location update.")
    device_id = serializers.CharField(max_length=255, help_text="Device ID of the child's device for authentication.")
    latitude = serializers.FloatField(help_text="Current latitude (-90.0 to 90.0).")
    longitude = serializers.FloatField(help_text="Current longitude (-180.0 to 180.0).")
    timestamp = serializers.DateTimeField(help_text="Timestamp of the location reading (ISO 8601 format).")
    accuracy = serializers.FloatField(required=False, allow_null=True, help_text="GPS accuracy in meters.")
    battery_status = serializers.IntegerField(
        required=False, allow_null=True, validators=[MinValueValidator(0), MaxValueValidator(100)],
        help_text="Device battery level (0-100)."
    )


class GeofenceAlertSerializer(serializers.ModelSerializer):
    alert_type_display = serializers.CharField(source='get_alert_type_display', read_only=True)
    child_name = serializers.CharField(source='child.name', read_only=True)
    location_name = serializers.CharField(source='location.name', read_only=True)
    message = serializers.CharField(read_only=True)

    class Meta:
        model = GeofenceAlert
        fields = [
            'id', 'child', 'child_name', 'location', 'location_name', 'alert_type',
            'alert_type_display', 'message', 'timestamp', 'is_read'
        ]
        read_only_fields = fields


class HealthLogSerializer(serializers.ModelSerializer):
    child = serializers.PrimaryKeyRelatedField(queryset=Child.objects.none())
    timestamp = serializers.DateTimeField(required=False)

    class Meta:
        model = HealthLog
        fields = ['id', 'child', 'log_type', 'value', 'notes', 'timestamp']
        read_only_fields = ('id',)

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        request = self.context.get('request')
        if request is not None and request.user.is_authenticated:
            self.fields['child'].queryset = Child.objects.filter(parent=request.user)

    def validate(self, attrs):
        log_type = attrs.get('log_type', getattr(self.instance, 'log_type', None))
        value = attrs.get('value', getattr(self.instance, 'value', ''))
        if log_type == 'sleep':
            try:
                hours = float(value)
            except (TypeError, ValueError):
                raise serializers.ValidationError({'value': "Sleep must be a number of hours."})
            if not 0 <= hours <= 24:
                raise serializers.ValidationError({'value': "Sleep hours must be between 0 and 24."})
        elif not str(value).strip():
            raise serializers.ValidationError({'value': "Value cannot be empty."})
        return attrs


class DrivingReportSerializer(serializers.ModelSerializer):
    child = serializers.PrimaryKeyRelatedField(queryset=Child.objects.none())
    score = serializers.IntegerField(validators=[MinValueValidator(0), MaxValueValidator(100)])

    class Meta:
        model = DrivingReport
        fields = ['id', 'child', 'start_location', 'end_location', 'trip_start', 'trip_end', 'distance',
                  'max_speed', 'hard_braking', 'phone_usage', 'score']
        read_only_fields = ('id',)

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        request = self.context.get('request')
        if request is not None and request.user.is_authenticated:
            self.fields['child'].queryset = Child.objects.filter(parent=request.user)

    def validate(self, attrs):
        trip_end = attrs.get('trip_end')
        if trip_end and trip_end < attrs.get('trip_start', trip_end):
            raise serializers.ValidationError({'trip_end': "Trip cannot end before it starts."})
        return attrs


class TaskSerializer(serializers.ModelSerializer):
    child = serializers.PrimaryKeyRelatedField(queryset=Child.objects.none(), required=False, allow_null=True)
    due_state = serializers.CharField(read_only=True, help_text="Derived on read: completed, overdue or upcoming.")
    is_overdue = serializers.BooleanField(read_only=True)

    class Meta:
        model = Task
        fields = ['id', 'title', 'description', 'due_date', 'child', 'category', 'priority', 'recurring',
                  'completed', 'completed_at', 'due_state', 'is_overdue', 'created_at']
        read_only_fields = ('id', 'completed_at', 'due_state', 'is_overdue', 'created_at')

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        request = self.context.get('request')
        if request is not None and request.user.is_authenticated:
            self.fields['child'].queryset = Child.objects.filter(parent=request.user)

    def validate_title(self, value):
        if not value.strip():
            raise serializers.ValidationError("Title cannot be empty.")
        return value.strip()

    def validate_recurring(self, value):
        return value or None


class ChatMessageSerializer(serializers.ModelSerializer):
    class Meta:
        model = ChatMessage
        fields = ['id', 'role', 'content', 'timestamp']
        read_only_fields = fields


class ChatRequestSerializer(serializers.Serializer):
    message = serializers.CharField(max_length=4000)


class CorrectTextSerializer(serializers.Serializer):
    text = serializers.CharField(allow_blank=True, max_length=4000)


class HealthInputValidationSerializer(serializers.Serializer):
    log_type = serializers.ChoiceField(choices=HealthLog.LOG_TYPES)
    value = serializers.CharField(allow_blank=True, max_length=255)


class DeviceRegistrationSerializer(serializers.ModelSerializer):
    device_token = serializers.CharField(validators=[])

    class Meta:
        model = UserDevice
        fields = ['device_token', 'device_type']

    def validate_device_token(self, value):
        if not value.strip():
            raise serializers.ValidationError("Device token cannot be empty.")
        return value.strip()

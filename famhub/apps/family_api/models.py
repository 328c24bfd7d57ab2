from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.utils import timezone

from .task_service import classify_task


class Child(models.Model):
    parent = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='children')
    name = models.CharField(max_length=100)
    birth_date = models.DateField(blank=True, null=True)
    allergies = models.JSONField(default=list, blank=True)
    notes = models.TextField(blank=True, default='')
    device_id = models.CharField(max_length=255, unique=True, blank=True, null=True) # Unique ID for the child's device
    battery_status = models.IntegerField(blank=True, null=True) # Percentage
    last_seen_at = models.DateTimeField(blank=True, null=True)
    is_active = models.BooleanField(default=True, help_text="Is the child's profile/tracking active?")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name


class Location(models.Model):
    CATEGORY_CHOICES = [
        ('home', 'Home'),
        ('school', 'School'),
        ('work', 'Work'),
        ('friend', "Friend's House"),
        ('activity', 'Activity'),
        ('other', 'Other'),
    ]
    owner = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='locations')
    name = models.CharField(max_length=100)
    address = models.CharField(max_length=255, blank=True, null=True)
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default='other')
    latitude = models.DecimalField(max_digits=9, decimal_places=6)
    longitude = models.DecimalField(max_digits=9, decimal_places=6)
    is_geofence_enabled = models.BooleanField(default=False)
    geofence_radius = models.FloatField(default=100.0, help_text="Radius in meters")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    def clean(self):
        if self.is_geofence_enabled and (self.geofence_radius is None or self.geofence_radius <= 0):
            raise ValidationError({'geofence_radius': "Radius must be positive when geofencing is enabled."})


class CheckIn(models.Model):
    owner = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='check_ins')
    location = models.ForeignKey(Location, on_delete=models.CASCADE, related_name='check_ins')
    child = models.ForeignKey(Child, on_delete=models.SET_NULL, blank=True, null=True, related_name='check_ins')
    timestamp = models.DateTimeField(default=timezone.now)
    notes = models.TextField(blank=True, null=True)

    def __str__(self):
        who = self.child.name if self.child else "Family"
        return f"{who} at {self.location.name}"

    class Meta:
        ordering = ['-timestamp']


class LocationSample(models.Model):
    child = models.ForeignKey(Child, on_delete=models.CASCADE, related_name='location_samples')
    latitude = models.DecimalField(max_digits=9, decimal_places=6)
    longitude = models.DecimalField(max_digits=9, decimal_places=6)
    timestamp = models.DateTimeField()
    accuracy = models.FloatField(blank=True, null=True) # In meters

    def __str__(self):
        return f"{self.child.name} at {self.timestamp}"

    class Meta:
        ordering = ['-timestamp']


class ContainmentState(models.Model):
    """Last known inside/outside state of a child for one geofence."""
    child = models.ForeignKey(Child, on_delete=models.CASCADE, related_name='containment_states')
    location = models.ForeignKey(Location, on_delete=models.CASCADE, related_name='containment_states')
    is_inside = models.BooleanField(default=False)
    version = models.PositiveIntegerField(default=0)
    last_sample_at = models.DateTimeField(blank=True, null=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        state = "inside" if self.is_inside else "outside"
        return f"{self.child.name} {state} {self.location.name}"

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['child', 'location'], name='unique_child_location_containment'),
        ]


class GeofenceAlert(models.Model):
    ENTER = 'enter'
    LEAVE = 'leave'
    ALERT_TYPES = [
        (ENTER, 'Entered'),
        (LEAVE, 'Left'),
    ]
    owner = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='geofence_alerts')
    child = models.ForeignKey(Child, on_delete=models.CASCADE, related_name='geofence_alerts')
    location = models.ForeignKey(Location, on_delete=models.CASCADE, related_name='geofence_alerts')
    alert_type = models.CharField(max_length=10, choices=ALERT_TYPES)
    timestamp = models.DateTimeField(default=timezone.now)
    is_read = models.BooleanField(default=False)

    def __str__(self):
        verb = "entered" if self.alert_type == self.ENTER else "left"
        return f"{self.child.name} {verb} {self.location.name}"

    @property
    def message(self):
        return f"{self}."

    class Meta:
        ordering = ['-timestamp', '-id']


class HealthLog(models.Model):
    LOG_TYPES = [
        ('meal', 'Meal'),
        ('sleep', 'Sleep'),
        ('mood', 'Mood'),
        ('symptom', 'Symptom'),
        ('medicine', 'Medicine'),
    ]
    owner = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='health_logs')
    child = models.ForeignKey(Child, on_delete=models.CASCADE, related_name='health_logs')
    log_type = models.CharField(max_length=20, choices=LOG_TYPES)
    value = models.CharField(max_length=255)
    notes = models.TextField(blank=True, null=True)
    timestamp = models.DateTimeField(default=timezone.now)

    def __str__(self):
        return f"{self.get_log_type_display()} for {self.child.name}: {self.value}"

    class Meta:
        ordering = ['-timestamp']


class DrivingReport(models.Model):
    owner = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='driving_reports')
    child = models.ForeignKey(Child, on_delete=models.CASCADE, related_name='driving_reports')
    start_location = models.CharField(max_length=150)
    end_location = models.CharField(max_length=150)
    trip_start = models.DateTimeField()
    trip_end = models.DateTimeField(blank=True, null=True)
    distance = models.FloatField(default=0.0, validators=[MinValueValidator(0.0)], help_text="Miles")
    max_speed = models.FloatField(default=0.0, validators=[MinValueValidator(0.0)], help_text="mph")
    hard_braking = models.PositiveIntegerField(default=0)
    phone_usage = models.PositiveIntegerField(default=0, help_text="Minutes of phone use while driving")
    score = models.PositiveSmallIntegerField(validators=[MinValueValidator(0), MaxValueValidator(100)])

    def __str__(self):
        return f"{self.child.name}: {self.start_location} -> {self.end_location} ({self.score})"

    class Meta:
        ordering = ['-trip_start']


class Task(models.Model):
    CATEGORY_CHOICES = [
        ('feeding', 'Feeding'),
        ('napping', 'Napping'),
        ('medicine', 'Medicine'),
        ('activity', 'Activity'),
        ('other', 'Other'),
    ]
    PRIORITY_CHOICES = [
        ('low', 'Low'),
        ('medium', 'Medium'),
        ('high', 'High'),
    ]
    RECURRENCE_CHOICES = [
        ('daily', 'Daily'),
        ('weekly', 'Weekly'),
        ('monthly', 'Monthly'),
    ]
    owner = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='tasks')
    child = models.ForeignKey(Child, on_delete=models.SET_NULL, blank=True, null=True, related_name='tasks')
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, null=True)
    due_date = models.DateTimeField()
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default='other')
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default='medium')
    recurring = models.CharField(max_length=10, choices=RECURRENCE_CHOICES, blank=True, null=True)
    completed = models.BooleanField(default=False)
    completed_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.title

    @property
    def due_state(self):
        return classify_task(self.completed, self.due_date)

    @property
    def is_overdue(self):
        return self.due_state == 'overdue'

    class Meta:
        ordering = ['due_date']


class ChatMessage(models.Model):
    ROLE_CHOICES = [
        ('user', 'User'),
        ('assistant', 'Assistant'),
    ]
    owner = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='chat_messages')
    role = models.CharField(max_length=10, choices=ROLE_CHOICES)
    content = models.TextField()
    timestamp = models.DateTimeField(default=timezone.now)

    def __str__(self):
        return f"{self.role}: {self.content[:40]}"

    class Meta:
        ordering = ['timestamp', 'id']


class UserDevice(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='devices')
    device_token = models.TextField(unique=True)
    device_type = models.CharField(max_length=10, blank=True, null=True, choices=[('android', 'Android'), ('ios', 'iOS'), ('web', 'Web')])
    created_at = models.DateTimeField(auto_now_add=True)
    is_active = models.BooleanField(default=True)

    def __str__(self):
        token_preview = self.device_token[:20] + "..." if self.device_token and len(self.device_token) > 20 else self.device_token
        return f"{self.user.username} - {self.device_type or 'UnknownType'} ({token_preview})"

    class Meta:
        ordering = ['-created_at']

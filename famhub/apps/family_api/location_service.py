# famhub/apps/family_api/location_service.py
import logging

from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from .exceptions import ConflictError, NotFoundError, ValidationError
from .geofence import evaluate_sample, validate_sample
from .models import CheckIn, Child, ContainmentState, GeofenceAlert, Location, LocationSample
from .notifications import notify_geofence_alerts, notify_location_update

logger = logging.getLogger(__name__)


def get_family_child(owner, child_id):
    if child_id is None:
        return None
    child = Child.objects.filter(pk=child_id, parent=owner).first()
    if child is None:
        raise NotFoundError(f"Child {child_id} not found.")
    return child


def get_family_location(owner, location_id):
    location = Location.objects.filter(pk=location_id, owner=owner).first()
    if location is None:
        raise NotFoundError(f"Location {location_id} not found.")
    return location


def current_containment(child):
    """Mapping of location id -> is_inside for every geofence the child has been evaluated against."""
    return dict(
        ContainmentState.objects.filter(child=child).values_list('location_id', 'is_inside')
    )


def _write_state(child, location, state, inside, timestamp):
    if state is None:
        # A concurrent request creating the same row surfaces as IntegrityError.
        ContainmentState.objects.create(
            child=child, location=location, is_inside=inside, version=1, last_sample_at=timestamp
        )
        return

    updated = ContainmentState.objects.filter(pk=state.pk, version=state.version).update(
        is_inside=inside,
        version=F('version') + 1,
        last_sample_at=timestamp,
        updated_at=timezone.now(),
    )
    if updated == 0:
        raise ConflictError(
            f"Containment state for child {child.id} at location {location.id} changed concurrently."
        )


def record_location_sample(child, latitude, longitude, timestamp=None, accuracy=None):
    """
    Store a location sample for `child` and evaluate it against the family's
    geofences.

    The sample, the containment states and the resulting alerts are written
    in one transaction; the containment rows are locked for the duration so
    two samples for the same child cannot both observe "outside" and both
    emit an 'enter'. A sample older than the one a location was last
    evaluated with is stored but leaves that location's state untouched.
    Returns (sample, alerts).
    """
    validate_sample(latitude, longitude)
    if accuracy is not None and accuracy < 0:
        raise ValidationError("Accuracy must be a positive number of meters.")
    timestamp = timestamp or timezone.now()
    parent_user = child.parent

    try:
        with transaction.atomic():
            sample = LocationSample.objects.create(
                child=child, latitude=latitude, longitude=longitude,
                timestamp=timestamp, accuracy=accuracy,
            )
            Child.objects.filter(pk=child.pk).update(last_seen_at=timezone.now())

            locations = list(Location.objects.filter(owner=parent_user, is_geofence_enabled=True).order_by('id'))
            states = {
                state.location_id: state
                for state in ContainmentState.objects.select_for_update().filter(
                    child=child, location__in=locations
                )
            }
            # Older than the last evaluated sample: logged, but state stays as is.
            stale = {
                location_id for location_id, state in states.items()
                if state.last_sample_at and state.last_sample_at > timestamp
            }
            if stale:
                logger.info(f"Sample {sample.id} for child {child.id} is older than the last evaluated one; "
                            f"skipping {len(stale)} location(s)")
                locations = [location for location in locations if location.id not in stale]
            previous = {
                location_id: state.is_inside for location_id, state in states.items() if location_id not in stale
            }

            evaluation = evaluate_sample(latitude, longitude, locations, previous)

            for location in locations:
                _write_state(child, location, states.get(location.id), evaluation.state[location.id], timestamp)

            alerts = []
            for transition in evaluation.transitions:
                alert = GeofenceAlert.objects.create(
                    owner=parent_user,
                    child=child,
                    location=transition.location,
                    alert_type=transition.alert_type,
                    timestamp=timestamp,
                )
                logger.info(
                    f"Geofence {transition.alert_type} for child {child.id} at location {transition.location.id} "
                    f"({transition.distance:.0f}m from center, radius {transition.location.geofence_radius}m)"
                )
                alerts.append(alert)

            transaction.on_commit(lambda: notify_location_update(child, sample))
            if alerts:
                transaction.on_commit(lambda: notify_geofence_alerts(alerts))
    except IntegrityError as e:
        logger.warning(f"Containment state race for child {child.id}: {e}")
        raise ConflictError(f"Containment state for child {child.id} changed concurrently.") from e

    return sample, alerts


def record_check_in(owner, location_id, child_id=None, notes=None, timestamp=None):
    location = get_family_location(owner, location_id)
    child = get_family_child(owner, child_id)
    check_in = CheckIn.objects.create(
        owner=owner,
        location=location,
        child=child,
        notes=notes or None,
        timestamp=timestamp or timezone.now(),
    )
    logger.info(f"Check-in {check_in.id} recorded at location {location.id} for child {child_id}")
    return check_in


def recent_check_ins(owner, limit=20, child=None):
    queryset = CheckIn.objects.filter(owner=owner).select_related('location', 'child')
    if child is not None:
        queryset = queryset.filter(child=child)
    return queryset[:limit] if limit else queryset


def latest_sample(child):
    return LocationSample.objects.filter(child=child).order_by('-timestamp').first()


def location_history(child, start=None, end=None):
    queryset = LocationSample.objects.filter(child=child).order_by('timestamp')
    if start:
        queryset = queryset.filter(timestamp__gte=start)
    if end:
        queryset = queryset.filter(timestamp__lte=end)
    return queryset

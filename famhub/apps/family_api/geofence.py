# famhub/apps/family_api/geofence.py
"""
Containment evaluation for geofenced locations.

Nothing in here touches the database: callers pass the sample, the candidate
locations and the previous containment mapping, and get back the transitions
plus the new mapping. `location_service` wraps this in a transaction.
"""
from collections import namedtuple

from django.conf import settings

from .exceptions import InvalidSampleError
from .geolocation_utils import coordinates_are_valid, distance_in_meters, is_within_radius

ENTER = 'enter'
LEAVE = 'leave'

Transition = namedtuple('Transition', ['location', 'alert_type', 'distance'])
Evaluation = namedtuple('Evaluation', ['transitions', 'state', 'distances'])


def alert_on_first_sample():
    return getattr(settings, 'GEOFENCE_ALERT_ON_FIRST_SAMPLE', False)


def validate_sample(latitude, longitude):
    if not coordinates_are_valid(latitude, longitude):
        raise InvalidSampleError(
            f"Invalid coordinates ({latitude}, {longitude}): latitude must be between -90 and 90, "
            f"longitude between -180 and 180."
        )


def evaluate_sample(latitude, longitude, locations, previous_state, first_sample_alerts=None):
    """
    Compare one sample against every geofence-enabled location.

    previous_state maps location id -> bool ("was inside"). A location missing
    from the mapping has no history yet: its state is initialised, and an
    'enter' is only emitted when first_sample_alerts is on.

    Returns an Evaluation with the list of Transitions, the full updated
    mapping (previous_state is not mutated) and the distance to each location.
    """
    validate_sample(latitude, longitude)
    if first_sample_alerts is None:
        first_sample_alerts = alert_on_first_sample()

    new_state = dict(previous_state)
    transitions = []
    distances = {}

    for location in locations:
        if not location.is_geofence_enabled:
            continue
        distance = distance_in_meters(latitude, longitude, location.latitude, location.longitude)
        distances[location.id] = distance
        inside = is_within_radius(distance, location.geofence_radius)
        was_inside = previous_state.get(location.id)
        new_state[location.id] = inside

        if was_inside is None:
            if inside and first_sample_alerts:
                transitions.append(Transition(location, ENTER, distance))
            continue

        if inside and not was_inside:
            transitions.append(Transition(location, ENTER, distance))
        elif was_inside and not inside:
            transitions.append(Transition(location, LEAVE, distance))

    return Evaluation(transitions, new_state, distances)

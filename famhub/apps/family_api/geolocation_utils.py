# famhub/apps/family_api/geolocation_utils.py
import math

EARTH_RADIUS_KM = 6371.0


def haversine_distance(lat1, lon1, lat2, lon2, earth_radius_km=EARTH_RADIUS_KM):
    """
    Calculate the distance between two points on Earth (specified in decimal degrees)
    using the Haversine formula. Result is in kilometers.
    """
    lat1_rad = math.radians(lat1)
    lon1_rad = math.radians(lon1)
    lat2_rad = math.radians(lat2)
    lon2_rad = math.radians(lon2)

    dlon = lon2_rad - lon1_rad
    dlat = lat2_rad - lat1_rad

    a = math.sin(dlat / 2)**2 + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2)**2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return earth_radius_km * c


def distance_in_meters(lat1, lon1, lat2, lon2):
    """
    Calculates distance and returns it in meters.
    Ensures inputs are float, as they might come from Django Decimal fields.
    """
    return haversine_distance(float(lat1), float(lon1), float(lat2), float(lon2)) * 1000.0


def coordinates_are_valid(latitude, longitude):
    """True when both values are finite numbers inside [-90, 90] / [-180, 180]."""
    try:
        lat = float(latitude)
        lon = float(longitude)
    except (TypeError, ValueError):
        return False
    if math.isnan(lat) or math.isnan(lon):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0


def is_within_radius(distance_meters, radius_meters):
    # Boundary counts as inside.
    return distance_meters <= float(radius_meters)

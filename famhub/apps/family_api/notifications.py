# famhub/apps/family_api/notifications.py
import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

logger = logging.getLogger(__name__)


def family_group_name(user_id):
    return f'user_{user_id}_notifications'


def _group_send(user_id, event):
    channel_layer = get_channel_layer()
    if channel_layer is None:
        logger.warning("No channel layer configured; skipping websocket notification.")
        return False
    try:
        async_to_sync(channel_layer.group_send)(family_group_name(user_id), event)
    except Exception as e:
        logger.error(f"Error sending websocket notification to user {user_id}: {e}", exc_info=True)
        return False
    return True


def geofence_alert_payload(alert):
    return {
        'type': 'geofence_alert',
        'alert_id': alert.id,
        'child_id': alert.child_id,
        'child_name': alert.child.name,
        'location_id': alert.location_id,
        'location_name': alert.location.name,
        'alert_type': alert.alert_type,
        'message': alert.message,
        'timestamp': alert.timestamp.isoformat(),
    }


def notify_geofence_alerts(alerts):
    """Push freshly created alerts to the family's websocket group and queue the FCM push."""
    from .tasks import send_geofence_alert_push

    for alert in alerts:
        _group_send(alert.owner_id, {"type": "send_notification", "message": geofence_alert_payload(alert)})
        try:
            send_geofence_alert_push.delay(alert.id)
        except Exception as e:
            logger.error(f"Could not queue push for geofence alert {alert.id}: {e}", exc_info=True)


def notify_location_update(child, sample):
    payload = {
        'type': 'location_update',
        'child_id': child.id,
        'child_name': child.name,
        'latitude': float(sample.latitude),
        'longitude': float(sample.longitude),
        'timestamp': sample.timestamp.isoformat(),
        'accuracy': float(sample.accuracy) if sample.accuracy is not None else None,
        'battery_status': child.battery_status,
    }
    _group_send(child.parent_id, {"type": "location.update", "payload": payload})

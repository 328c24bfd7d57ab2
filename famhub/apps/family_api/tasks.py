# famhub/apps/family_api/tasks.py
from celery import shared_task
import logging

from .fcm_service import send_fcm_to_user
from .models import GeofenceAlert

logger = logging.getLogger(__name__)


@shared_task(name="send_geofence_alert_push")
def send_geofence_alert_push(alert_id):
    alert = GeofenceAlert.objects.select_related('owner', 'child', 'location').filter(pk=alert_id).first()
    if alert is None:
        logger.error(f"Geofence alert {alert_id} not found. Skipping push.")
        return f"Alert {alert_id} not found."

    push_title = f"Geofence Alert: {alert.child.name}"
    push_data = {
        'alert_type': alert.alert_type,
        'child_id': str(alert.child_id),
        'child_name': alert.child.name,
        'location_id': str(alert.location_id),
        'location_name': alert.location.name,
        'alert_id': str(alert.id),
    }
    sent = send_fcm_to_user(alert.owner, title=push_title, body=alert.message, data=push_data)
    if sent:
        logger.info(f"Sent geofence {alert.alert_type} push for alert {alert.id} to user {alert.owner_id}")
    else:
        logger.info(f"Geofence push for alert {alert.id} not delivered (no devices or FCM unavailable).")
    return f"Push for alert {alert.id}: {'sent' if sent else 'skipped'}"

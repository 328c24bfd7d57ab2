# famhub/apps/family_api/tests/test_consumers.py
from channels.layers import get_channel_layer
from channels.testing import WebsocketCommunicator
from django.contrib.auth.models import AnonymousUser, User
from django.test import TestCase

from apps.family_api.consumers import NotificationConsumer
from apps.family_api.notifications import family_group_name


class NotificationConsumerTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username='ws_parent', password='password')

    def _communicator(self, user):
        communicator = WebsocketCommunicator(NotificationConsumer.as_asgi(), '/ws/notifications/')
        communicator.scope['user'] = user
        return communicator

    async def test_anonymous_connection_rejected(self):
        communicator = self._communicator(AnonymousUser())
        connected, _ = await communicator.connect()
        self.assertFalse(connected)

    async def test_family_receives_geofence_notification(self):
        communicator = self._communicator(self.user)
        connected, _ = await communicator.connect()
        self.assertTrue(connected)

        welcome = await communicator.receive_json_from()
        self.assertEqual(welcome['type'], 'connection_established')

        await get_channel_layer().group_send(
            family_group_name(self.user.id),
            {'type': 'send_notification', 'message': {'type': 'geofence_alert', 'alert_type': 'enter'}}
        )
        event = await communicator.receive_json_from()
        self.assertEqual(event['type'], 'notification')
        self.assertEqual(event['payload']['alert_type'], 'enter')

        await get_channel_layer().group_send(
            family_group_name(self.user.id),
            {'type': 'location.update', 'payload': {'child_id': 1, 'latitude': 10.0}}
        )
        event = await communicator.receive_json_from()
        self.assertEqual(event['type'], 'location_update')
        self.assertEqual(event['payload']['latitude'], 10.0)

        await communicator.disconnect()

    async def test_client_messages_get_info_reply(self):
        communicator = self._communicator(self.user)
        await communicator.connect()
        await communicator.receive_json_from()
        await communicator.send_to(text_data='{"hello": "server"}')
        reply = await communicator.receive_json_from()
        self.assertEqual(reply['type'], 'info')
        await communicator.disconnect()

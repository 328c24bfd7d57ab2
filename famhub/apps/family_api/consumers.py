import json
import logging

from channels.generic.websocket import AsyncWebsocketConsumer

from .notifications import family_group_name

logger = logging.getLogger(__name__)


class NotificationConsumer(AsyncWebsocketConsumer):
    async def connect(self):
        self.user = self.scope.get("user")
        if not self.user or not self.user.is_authenticated:
            await self.close()
            return

        self.room_group_name = family_group_name(self.user.id)
        await self.channel_layer.group_add(
            self.room_group_name,
            self.channel_name
        )
        await self.accept()
        await self.send(text_data=json.dumps({
            'type': 'connection_established',
            'message': f'Connected to notification channel. Group: {self.room_group_name}!'
        }))

    async def disconnect(self, close_code):
        if hasattr(self, 'room_group_name'):
            await self.channel_layer.group_discard(
                self.room_group_name,
                self.channel_name
            )

    # Clients only listen on this channel
    async def receive(self, text_data=None, bytes_data=None):
        await self.send(text_data=json.dumps({
            'type': 'info',
            'message': 'This channel is primarily for server-to-client notifications.'
        }))

    async def send_notification(self, event):
        await self.send(text_data=json.dumps({
            'type': 'notification',
            'payload': event['message']
        }))

    async def location_update(self, event):
        await self.send(text_data=json.dumps({
            'type': 'location_update',
            'payload': event['payload']
        }))
        logger.debug(f"Relayed location update to user {self.user.id}")

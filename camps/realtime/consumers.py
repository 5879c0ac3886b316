import json

from channels.generic.websocket import AsyncWebsocketConsumer

from camps.services.events import CAMPS_GROUP


class CampUpdatesConsumer(AsyncWebsocketConsumer):
    """Pushes ``camp.participants`` events to every connected browser.

    Read-only: anything the client sends is ignored.
    """
    GROUP = CAMPS_GROUP

    async def connect(self):
        await self.channel_layer.group_add(self.GROUP, self.channel_name)
        await self.accept()
        await self.send(json.dumps({"type": "welcome", "message": "connected"}))

    async def disconnect(self, close_code):
        await self.channel_layer.group_discard(self.GROUP, self.channel_name)

    async def camp_participants(self, event):
        # event: {"type": "camp.participants", "campId": int, "participants": int}
        await self.send(json.dumps(event))

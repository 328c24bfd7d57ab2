import os

from django.core.asgi import get_asgi_application
from channels.routing import ProtocolTypeRouter, URLRouter
from channels.auth import AuthMiddlewareStack

# Set default settings module
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'famhub_config.settings')

# Initialize Django application
django_application = get_asgi_application()

# Import routing after Django is set up
from apps.family_api import routing  # noqa: E402

application = ProtocolTypeRouter({
    "http": django_application,
    "websocket": AuthMiddlewareStack(
        URLRouter(
            routing.websocket_urlpatterns
        )
    ),
})

# famhub_config/urls.py
from django.contrib import admin
from django.urls import path, include
from django.http import HttpResponse


def root_view(request):
    return HttpResponse(
        "FamHub API is running. Use /api/docs/ for interactive documentation.",
        content_type="text/plain"
    )


urlpatterns = [
    path('', root_view, name='root'),

    # Admin interface
    path('admin/', admin.site.urls),

    # Auth: djoser user management and JWT endpoints
    path('api/auth/', include('djoser.urls')),
    path('api/auth/', include('djoser.urls.jwt')),

    # App endpoints
    path('api/', include('apps.family_api.urls')),
]

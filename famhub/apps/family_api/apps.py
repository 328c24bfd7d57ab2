from django.apps import AppConfig


class FamilyApiConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.family_api'
    label = 'family_api'

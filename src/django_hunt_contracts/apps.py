"""Django app configuration for django-hunt-contracts."""

from django.apps import AppConfig


class DjangoHuntContractsConfig(AppConfig):
    """App configuration for django-hunt-contracts."""

    name = 'django_hunt_contracts'
    verbose_name = 'Hunt Contracts'
    default_auto_field = 'django.db.models.BigAutoField'

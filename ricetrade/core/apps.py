from django.apps import AppConfig


class CoreConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'ricetrade.core'
    verbose_name = 'Trading backend access'

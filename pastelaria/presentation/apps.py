from django.apps import AppConfig


class PresentationConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'pastelaria.presentation'
    label = 'presentation' # Define um label para evitar conflitos de nomes
    verbose_name = 'Pastelaria: API REST'

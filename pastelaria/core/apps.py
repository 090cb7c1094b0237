# pastelaria/core/apps.py

from django.apps import AppConfig

class CoreConfig(AppConfig):
    # O nome completo do path da aplicação
    name = 'pastelaria.core'
    label = 'core'
    verbose_name = 'Pastelaria: Entidades e Casos de Uso'

    # Camada sem modelos de banco de dados (Infrastructure cuida disso).
    default_auto_field = 'django.db.models.BigAutoField'

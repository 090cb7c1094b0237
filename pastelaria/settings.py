"""
Configurações para o projeto Pastelaria (backend do quiosque).
"""

import os
from decouple import config, Csv
from pathlib import Path

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent


# ====================================================================
# CONFIGURAÇÕES BÁSICAS
# ====================================================================

# A SECRET_KEY deve ser lida de uma variável de ambiente por segurança.
SECRET_KEY = config('SECRET_KEY', default='django-insecure-default-key-for-development')

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = config('DEBUG', default=False, cast=bool)

ALLOWED_HOSTS = config('ALLOWED_HOSTS', default='localhost,127.0.0.1,testserver', cast=Csv())


# ====================================================================
# APLICAÇÕES INSTALADAS
# ====================================================================

INSTALLED_APPS = [
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.staticfiles',

    # Aplicações de Terceiros (Primeiro)
    'rest_framework',
    'drf_spectacular',
    'corsheaders',

    # Nossas Aplicações (Nessa ordem para referências de Models)
    'pastelaria.core.apps.CoreConfig', # Entidades e Lógica Pura
    'pastelaria.infrastructure.apps.InfrastructureConfig', # Models, Repositórios e Gateways
    'pastelaria.presentation.apps.PresentationConfig', # API REST
]


# ====================================================================
# MIDDLEWARE E TEMPLATES
# ====================================================================

MIDDLEWARE = [
    # Antes do CommonMiddleware para responder aos preflights OPTIONS
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
    'pastelaria.presentation.middleware.RequestLogMiddleware',
]

ROOT_URLCONF = 'pastelaria.urls'

# Usado apenas pela interface do Swagger (drf-spectacular)
TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
            ],
        },
    },
]

WSGI_APPLICATION = 'pastelaria.wsgi.application'

# O quiosque envia as rotas sem barra final (/api/orders)
APPEND_SLASH = False


# O quiosque roda em outra origem (ex: http://localhost:5173) e chama a API diretamente
CORS_ALLOW_ALL_ORIGINS = config('CORS_ALLOW_ALL_ORIGINS', default=True, cast=bool)
CORS_ALLOWED_ORIGINS = config('CORS_ALLOWED_ORIGINS', default='', cast=Csv())


# ====================================================================
# CONFIGURAÇÃO DO BANCO DE DADOS E DO ARMAZENAMENTO
# ====================================================================

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': config('DATABASE_PATH', default=str(BASE_DIR / 'db.sqlite3')),
    }
}

# 'sqlite' (Django ORM) ou 'json' (arquivos users.json, orders.json, user_orders.json, menu.json)
PASTELARIA_ARMAZENAMENTO = config('PASTELARIA_ARMAZENAMENTO', default='sqlite')
PASTELARIA_DATA_DIR = config('PASTELARIA_DATA_DIR', default=str(BASE_DIR / 'data'))

# Aceita o total numérico enviado pelo quiosque; se False, o servidor sempre recalcula.
PASTELARIA_CONFIAR_TOTAL_CLIENTE = config('PASTELARIA_CONFIAR_TOTAL_CLIENTE', default=True, cast=bool)

# Sessões do chat de atendimento
CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'pastelaria-chat',
    }
}
CHAT_SESSAO_TTL = config('CHAT_SESSAO_TTL', default=3600, cast=int)


# ====================================================================
# INTERNACIONALIZAÇÃO
# ====================================================================

LANGUAGE_CODE = 'pt-br'

TIME_ZONE = 'America/Sao_Paulo'

USE_I18N = True

USE_TZ = True


# ====================================================================
# ARQUIVOS ESTÁTICOS
# ====================================================================

STATIC_URL = '/static/'
STATIC_ROOT = os.path.join(BASE_DIR, 'staticfiles')


# Default primary key field type
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'


# ====================================================================
# CONFIGURAÇÕES DO DJANGO REST FRAMEWORK (DRF) E DOCS (SPECTACULAR)
# ====================================================================

SPECTACULAR_SETTINGS = {
    'TITLE': 'API da Pastelaria',
    'DESCRIPTION': 'Cardápio, clientes, fila de pedidos da cozinha e sugestões por IA do quiosque.',
    'VERSION': '1.0.0',
    'SERVE_INCLUDE_SCHEMA': False,
}

REST_FRAMEWORK = {
    # Sem autenticação: o quiosque informa o cliente em cada requisição.
    'DEFAULT_AUTHENTICATION_CLASSES': [],
    'DEFAULT_PERMISSION_CLASSES': ['rest_framework.permissions.AllowAny'],
    'UNAUTHENTICATED_USER': None,
    'DEFAULT_RENDERER_CLASSES': ['rest_framework.renderers.JSONRenderer'],
    'DEFAULT_PARSER_CLASSES': ['rest_framework.parsers.JSONParser'],
    'COERCE_DECIMAL_TO_STRING': False,
    'TEST_REQUEST_DEFAULT_FORMAT': 'json',
    'DEFAULT_SCHEMA_CLASS': 'drf_spectacular.openapi.AutoSchema',
    'EXCEPTION_HANDLER': 'pastelaria.presentation.exception_handler.tratar_excecao',
}


# ====================================================================
# CONFIGURAÇÕES DE SERVIÇOS EXTERNOS (Gemini) E LOGGING
# ====================================================================

GEMINI_API_KEY = config('GEMINI_API_KEY', default='')
GEMINI_MODEL = config('GEMINI_MODEL', default='gemini-2.5-flash')
GEMINI_API_URL = config('GEMINI_API_URL', default='https://generativelanguage.googleapis.com/v1beta')
GEMINI_TIMEOUT = config('GEMINI_TIMEOUT', default=30, cast=float)


LOG_LEVEL = config('LOG_LEVEL', default='INFO')
LOG_FILE = config('LOG_FILE', default='')

LOG_HANDLERS = ['console'] + (['file'] if LOG_FILE else [])

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'formatters': {
        'verbose': {
            'format': '{levelname} {asctime} {module} {process:d} {thread:d} {message}',
            'style': '{',
        },
    },
    'loggers': {
        'django': {
            'handlers': LOG_HANDLERS,
            'level': 'WARNING',
            'propagate': True,
        },
        'pastelaria': {
            'handlers': LOG_HANDLERS,
            'level': LOG_LEVEL,
            'propagate': False,
        },
    },
}

if LOG_FILE:
    LOGGING['handlers']['file'] = {
        'level': LOG_LEVEL,
        'class': 'logging.handlers.RotatingFileHandler',
        'filename': LOG_FILE,
        'maxBytes': 1024 * 1024 * 5,  # 5 MB
        'backupCount': 5,
        'formatter': 'verbose',
    }

# pastelaria/urls.py
"""
Configuração principal de URL do projeto Pastelaria.

Este arquivo centraliza o roteamento, incluindo:
1. Verificação de saúde (/)
2. Rotas da API do quiosque (pastelaria.presentation)
3. Rotas da Documentação da API (Swagger)
"""
from django.urls import path, include
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

from pastelaria.presentation.views import health


urlpatterns = [
    path('', health, name='health'),

    # Inclui as URLs da API do quiosque
    path('api/', include('pastelaria.presentation.urls')),

    # ====================================================================
    # ROTAS DE DOCUMENTAÇÃO DA API (DRF SPECTACULAR)
    # ====================================================================
    # 1. Rota para o arquivo Schema YAML (gerado automaticamente)
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),

    # 2. Rota para a interface de usuário do Swagger (visualização interativa)
    path('api/docs/swagger/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
]

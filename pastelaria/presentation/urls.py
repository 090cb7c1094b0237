"""
Define as rotas da API REST do quiosque (prefixo /api/).
As rotas não têm barra final, no formato consumido pelo frontend.
"""
from django.urls import path

from . import views

urlpatterns = [
    # ====================================================================
    # 1. CARDÁPIO E USUÁRIOS
    # ====================================================================
    path('menu', views.CardapioAPIView.as_view(), name='menu'),
    path('users', views.UsuariosAPIView.as_view(), name='users'),
    path('users/cpf/<str:cpf>', views.UsuarioPorCpfAPIView.as_view(), name='user_por_cpf'),
    path('users/<str:usuario_id>/historico', views.HistoricoUsuarioAPIView.as_view(), name='user_historico'),

    # ====================================================================
    # 2. PEDIDOS
    # ====================================================================
    path('orders', views.PedidosAPIView.as_view(), name='orders'),
    path('orders/<str:pedido_id>', views.PedidoDetalheAPIView.as_view(), name='order_detalhe'),
    path('user-orders', views.HistoricoPedidosAPIView.as_view(), name='user_orders'),

    # ====================================================================
    # 3. IA
    # ====================================================================
    path('ai/suggestion', views.TextoLivreAPIView.as_view(), name='ai_suggestion'),
    path('ai/chat', views.ChatAPIView.as_view(), name='ai_chat'),
    path('ai/menu-suggestion', views.SugestaoCardapioAPIView.as_view(), name='ai_menu_suggestion'),
    path('ai/cart-suggestion', views.SugestaoCarrinhoAPIView.as_view(), name='ai_cart_suggestion'),
    path('ai/chef-message', views.MensagemChefAPIView.as_view(), name='ai_chef_message'),
]

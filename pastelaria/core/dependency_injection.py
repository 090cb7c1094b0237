# pastelaria/core/dependency_injection.py
"""
Módulo de Injeção de Dependência (DI).
Responsável por instanciar os Use Cases com suas dependências de Repositórios/Gateways
concretos da camada de Infraestrutura.
"""
from django.conf import settings

from pastelaria.infrastructure.instances import (
    obter_gerador_texto,
    obter_repositorios,
    obter_sessoes_chat,
)
from .use_cases import (
    ChatUseCase,
    CriarPedidoUseCase,
    FinalizarPedidoUseCase,
    GerenciarUsuariosUseCase,
    ListarCardapioUseCase,
    ListarPedidosUseCase,
    SugestoesUseCase,
)

# ====================================================================
# Use Cases de Cardápio/Usuários
# ====================================================================

def get_listar_cardapio_use_case() -> ListarCardapioUseCase:
    return ListarCardapioUseCase(obter_repositorios().produtos)

def get_gerenciar_usuarios_use_case() -> GerenciarUsuariosUseCase:
    return GerenciarUsuariosUseCase(obter_repositorios().usuarios)


# ====================================================================
# Use Cases de Pedidos
# ====================================================================

def get_criar_pedido_use_case() -> CriarPedidoUseCase:
    repos = obter_repositorios()
    return CriarPedidoUseCase(
        pedido_repo=repos.pedidos,
        usuario_repo=repos.usuarios,
        confiar_total_cliente=settings.PASTELARIA_CONFIAR_TOTAL_CLIENTE,
    )

def get_finalizar_pedido_use_case() -> FinalizarPedidoUseCase:
    return FinalizarPedidoUseCase(obter_repositorios().pedidos)

def get_listar_pedidos_use_case() -> ListarPedidosUseCase:
    return ListarPedidosUseCase(obter_repositorios().pedidos)


# ====================================================================
# Use Cases de IA
# ====================================================================

def get_sugestoes_use_case() -> SugestoesUseCase:
    repos = obter_repositorios()
    return SugestoesUseCase(
        gerador=obter_gerador_texto(),
        produto_repo=repos.produtos,
        usuario_repo=repos.usuarios,
        pedido_repo=repos.pedidos,
    )

def get_chat_use_case() -> ChatUseCase:
    return ChatUseCase(obter_gerador_texto(), obter_sessoes_chat())

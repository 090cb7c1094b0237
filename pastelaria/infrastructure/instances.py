"""
Módulo de inicialização dos repositórios.
Deve ser importado somente depois que o Django estiver configurado.

O backend de persistência é escolhido pelo setting PASTELARIA_ARMAZENAMENTO
('sqlite' ou 'json'), lido a cada chamada.
"""
import logging
from typing import Dict, NamedTuple

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from pastelaria.core.ports import IPedidoRepository, IProdutoRepository, IUsuarioRepository

from .armazenamento_json import (
    ArmazenamentoJSON,
    PedidoRepositoryJSON,
    ProdutoRepositoryJSON,
    UsuarioRepositoryJSON,
)
from .gateways import GeminiGateway, SessoesChatCache
from .repositories import PedidoRepositoryDjango, ProdutoRepositoryDjango, UsuarioRepositoryDjango

logger = logging.getLogger(__name__)

ARMAZENAMENTO_SQLITE = 'sqlite'
ARMAZENAMENTO_JSON = 'json'


class Repositorios(NamedTuple):
    produtos: IProdutoRepository
    usuarios: IUsuarioRepository
    pedidos: IPedidoRepository


# Uma instância de ArmazenamentoJSON por diretório de dados
_armazenamentos: Dict[str, ArmazenamentoJSON] = {}


def obter_armazenamento_json() -> ArmazenamentoJSON:
    diretorio = str(settings.PASTELARIA_DATA_DIR)
    if diretorio not in _armazenamentos:
        logger.info("Usando armazenamento JSON em %s.", diretorio)
        _armazenamentos[diretorio] = ArmazenamentoJSON(diretorio)
    return _armazenamentos[diretorio]


def obter_repositorios() -> Repositorios:
    backend = settings.PASTELARIA_ARMAZENAMENTO
    if backend == ARMAZENAMENTO_JSON:
        armazenamento = obter_armazenamento_json()
        return Repositorios(
            produtos=ProdutoRepositoryJSON(armazenamento),
            usuarios=UsuarioRepositoryJSON(armazenamento),
            pedidos=PedidoRepositoryJSON(armazenamento),
        )
    if backend == ARMAZENAMENTO_SQLITE:
        return Repositorios(
            produtos=ProdutoRepositoryDjango(),
            usuarios=UsuarioRepositoryDjango(),
            pedidos=PedidoRepositoryDjango(),
        )
    raise ImproperlyConfigured(
        f"PASTELARIA_ARMAZENAMENTO inválido: {backend!r} (use 'sqlite' ou 'json')."
    )


# Um GeminiGateway por configuração (chave, modelo, URL, timeout)
_geradores: Dict[tuple, GeminiGateway] = {}


def obter_gerador_texto() -> GeminiGateway:
    chave = (settings.GEMINI_API_KEY, settings.GEMINI_MODEL, settings.GEMINI_API_URL, settings.GEMINI_TIMEOUT)
    if chave not in _geradores:
        _geradores[chave] = GeminiGateway()
    return _geradores[chave]


def obter_sessoes_chat() -> SessoesChatCache:
    return SessoesChatCache()

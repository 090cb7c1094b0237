# pastelaria/core/ports.py
"""
Definição das Portas (Interfaces/Protocolos) da Arquitetura Limpa.

Estes protocolos definem o contrato que a camada de Infraestrutura (Repositorios, Gateways)
DEVE seguir para se conectar à camada Core (Casos de Uso). Existem duas implementações
de repositório: arquivos JSON e Django ORM (SQLite).
"""

from typing import Protocol, List, Optional
from abc import abstractmethod
from datetime import datetime

from pastelaria.core.entities import Produto, Pedido, Usuario


# ====================================================================
# 1. REPOSITÓRIOS (Portas de Persistência)
# ====================================================================

class IProdutoRepository(Protocol):
    """Protocolo para leitura do cardápio."""

    @abstractmethod
    def listar_todos(self, categoria: Optional[str] = None) -> List[Produto]: ...

    @abstractmethod
    def buscar_por_id(self, produto_id: str) -> Optional[Produto]: ...

    @abstractmethod
    def carregar_cardapio_inicial(self, produtos: List[Produto]) -> int:
        """Grava os produtos que ainda não existem. Retorna quantos foram criados."""
        ...


class IUsuarioRepository(Protocol):
    """Protocolo para a persistência de Usuários."""

    @abstractmethod
    def listar_todos(self) -> List[Usuario]: ...

    @abstractmethod
    def buscar_por_id(self, usuario_id: str) -> Optional[Usuario]: ...

    @abstractmethod
    def buscar_por_cpf(self, cpf: str) -> Optional[Usuario]:
        """Recebe o CPF já normalizado (somente dígitos)."""
        ...

    @abstractmethod
    def criar(self, usuario: Usuario) -> Usuario:
        """Cria o usuário. Levanta ConflitoError se o CPF já existir."""
        ...


class IPedidoRepository(Protocol):
    """Protocolo para a fila de pedidos ativos e o histórico."""

    @abstractmethod
    def listar_ativos(self) -> List[Pedido]: ...

    @abstractmethod
    def listar_historico(self, usuario_id: Optional[str] = None) -> List[Pedido]: ...

    @abstractmethod
    def criar_pedido(self, pedido: Pedido) -> Pedido:
        """
        Insere o pedido na fila ativa, no histórico e no histórico embutido do usuário
        (se ele existir) em uma única operação atômica. Se o id já estiver em uso, grava
        com o próximo sufixo livre (_1, _2, ...) e devolve o pedido com o id final.
        """
        ...

    @abstractmethod
    def concluir_pedido(self, pedido_id: str, concluido_em: datetime) -> Pedido:
        """
        Remove o pedido da fila ativa e marca como concluído no histórico (e no histórico
        embutido do usuário). Levanta PedidoNaoEncontradoError se não estiver ativo.
        """
        ...


# ====================================================================
# 2. GATEWAYS (Portas de Serviços Externos)
# ====================================================================

class IGeradorTexto(Protocol):
    """Protocolo para o serviço externo de geração de texto (modelo de linguagem)."""

    @property
    @abstractmethod
    def disponivel(self) -> bool: ...

    @abstractmethod
    def gerar_texto(
        self,
        prompt: str,
        instrucao_sistema: Optional[str] = None,
        historico: Optional[List[dict]] = None,
    ) -> str:
        """
        Envia o prompt e retorna o texto gerado.
        `historico` é a conversa anterior como [{'papel': 'user'|'model', 'texto': ...}].
        Levanta ServicoIndisponivelError em qualquer falha.
        """
        ...


class ISessoesChat(Protocol):
    """Protocolo para guardar as sessões de chat entre requisições."""

    @abstractmethod
    def obter(self, sessao_id: str): ...

    @abstractmethod
    def salvar(self, sessao) -> None: ...

from dataclasses import dataclass, field
from decimal import Decimal
from datetime import datetime
from itertools import count
from typing import Iterator, List, Optional

# ====================================================================
# ENTIDADES CORE
# Representam os objetos de negócio puros.
# ====================================================================

CATEGORIA_PASTEL = 'Pastel'
CATEGORIA_BEBIDA = 'Bebida'
CATEGORIA_DOCE = 'Doce'
CATEGORIAS = (CATEGORIA_PASTEL, CATEGORIA_BEBIDA, CATEGORIA_DOCE)

# Valores de status gravados no JSON/banco (mantidos em inglês, como o kiosk consome)
STATUS_ATIVO = 'active'
STATUS_CONCLUIDO = 'completed'
STATUS_PEDIDO = (STATUS_ATIVO, STATUS_CONCLUIDO)

CENTAVOS = Decimal('0.01')

# Maior valor que cabe nas colunas monetárias (10 dígitos, 2 decimais)
TOTAL_MAXIMO = Decimal('99999999.99')


def arredondar(valor: Decimal) -> Decimal:
    """Arredonda um valor monetário para 2 casas."""
    return Decimal(valor).quantize(CENTAVOS)


def ids_candidatos(base: str) -> Iterator[str]:
    """base, base_1, base_2, ... para pedidos criados no mesmo milissegundo."""
    yield base
    for sufixo in count(1):
        yield f"{base}_{sufixo}"


@dataclass
class Produto:
    """Entidade do Produto do cardápio (dado de referência, imutável no fluxo de pedido)."""
    id: str
    nome: str
    preco: Decimal
    categoria: str
    descricao: str = ''
    video_url: Optional[str] = None
    popular: bool = False


@dataclass
class ItemCarrinho:
    """Item do carrinho: existe apenas no estado transitório do cliente."""
    produto: Produto
    quantidade: int

    @property
    def nome(self) -> str:
        return self.produto.nome

    @property
    def categoria(self) -> str:
        return self.produto.categoria

    @property
    def subtotal(self) -> Decimal:
        """Calcula o subtotal do item."""
        return self.produto.preco * self.quantidade


@dataclass
class ItemPedido:
    """Snapshot de um item no momento da compra (nome e preço desacoplados do cardápio)."""
    produto_id: str
    nome: str
    quantidade: int
    preco: Decimal

    @property
    def subtotal(self) -> Decimal:
        return self.preco * self.quantidade


@dataclass
class Pedido:
    """Entidade do Pedido, visível na fila da cozinha e no histórico."""
    id: str
    usuario_id: str
    itens: List[ItemPedido]
    total: Decimal
    criado_em: datetime
    usuario_nome: str = ''
    status: str = STATUS_ATIVO
    concluido_em: Optional[datetime] = None

    @property
    def ativo(self) -> bool:
        return self.status == STATUS_ATIVO

    def concluir(self, momento: datetime):
        """Transição active -> completed."""
        self.status = STATUS_CONCLUIDO
        self.concluido_em = momento


@dataclass
class Usuario:
    """Entidade do Usuário (cliente do quiosque), identificado pelo CPF."""
    id: str
    nome: str
    cpf: str
    email: str = ''
    historico: List[Pedido] = field(default_factory=list)
    pontos: int = 0

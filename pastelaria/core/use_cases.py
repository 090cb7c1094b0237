# pastelaria/core/use_cases.py
"""
Implementação dos Casos de Uso (Lógica de Negócio) da aplicação.
Esta camada depende apenas das Entidades e Portas (Interfaces) do Core,
garantindo o isolamento da lógica de negócio.
"""
import logging
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Iterable, List, Optional, Tuple

# Entidades e Exceções
from pastelaria.core.entities import (
    ItemCarrinho, ItemPedido, Pedido, Produto, Usuario, STATUS_ATIVO, TOTAL_MAXIMO, arredondar
)
from pastelaria.core.exceptions import (
    DadosInvalidosError,
    PedidoNaoEncontradoError,
    ServicoIndisponivelError,
    UsuarioNaoEncontradoError,
)

# Portas (Interfaces) - Importadas do pastelaria/core/ports.py
from pastelaria.core.ports import (
    IGeradorTexto,
    IPedidoRepository,
    IProdutoRepository,
    IUsuarioRepository,
    ISessoesChat,
)
from pastelaria.core import sugestoes

logger = logging.getLogger(__name__)

NOME_PADRAO = "Sem Nome"
TAMANHO_CPF = 11
SUGESTAO_PADRAO = "Bem-vindo à nossa pastelaria! Explore nossos deliciosos pastéis!"


def normalizar_cpf(cpf: Optional[str]) -> str:
    """Mantém apenas os dígitos do CPF."""
    return re.sub(r'\D', '', str(cpf or ''))


def agora_utc() -> datetime:
    return datetime.now(timezone.utc)


# ====================================================================
# 1. CASOS DE USO DO CARDÁPIO E USUÁRIOS
# ====================================================================

class ListarCardapioUseCase:
    """Caso de Uso responsável por listar o cardápio, com filtro opcional por categoria."""
    def __init__(self, produto_repo: IProdutoRepository):
        self.produto_repo = produto_repo

    def executar(self, categoria: Optional[str] = None) -> List[Produto]:
        return self.produto_repo.listar_todos(categoria=categoria or None)


class GerenciarUsuariosUseCase:
    """Consulta e cadastro de clientes identificados pelo CPF."""
    def __init__(self, usuario_repo: IUsuarioRepository, relogio: Callable[[], datetime] = agora_utc):
        self.usuario_repo = usuario_repo
        self.relogio = relogio

    def listar_todos(self) -> List[Usuario]:
        return self.usuario_repo.listar_todos()

    def buscar_por_cpf(self, cpf: str) -> Usuario:
        """Compara apenas os dígitos: '123.456.789-00' encontra '12345678900'."""
        usuario = self.usuario_repo.buscar_por_cpf(normalizar_cpf(cpf))
        if not usuario:
            raise UsuarioNaoEncontradoError(f"Nenhum usuário com o CPF {cpf}.")
        return usuario

    def cadastrar(
        self,
        nome: Optional[str],
        cpf: Optional[str],
        email: Optional[str] = None,
        usuario_id: Optional[str] = None,
    ) -> Usuario:
        """
        Cadastra um novo cliente.

        O CPF é obrigatório e precisa ter 11 dígitos após a normalização.
        O repositório levanta ConflitoError se o CPF já estiver cadastrado.
        """
        if not cpf:
            raise DadosInvalidosError("CPF é obrigatório.")
        cpf_normalizado = normalizar_cpf(cpf)
        if len(cpf_normalizado) != TAMANHO_CPF:
            raise DadosInvalidosError("CPF inválido: informe 11 dígitos.")

        usuario = Usuario(
            id=usuario_id or f"user_{int(self.relogio().timestamp() * 1000)}",
            nome=(nome or '').strip() or NOME_PADRAO,
            cpf=cpf_normalizado,
            email=email or '',
        )
        criado = self.usuario_repo.criar(usuario)
        logger.info("Usuário %s cadastrado (CPF final %s).", criado.id, cpf_normalizado[-2:])
        return criado

    def historico_do_usuario(self, usuario_id: str) -> List[Pedido]:
        usuario = self.usuario_repo.buscar_por_id(usuario_id)
        if not usuario:
            raise UsuarioNaoEncontradoError(f"Usuário {usuario_id} não encontrado.")
        return usuario.historico


# ====================================================================
# 2. CASOS DE USO DE PEDIDO
# ====================================================================

class CriarPedidoUseCase:
    """
    Caso de Uso do checkout: valida os itens, resolve o total, gera o id e persiste
    o pedido na fila ativa, no histórico e no histórico do usuário de uma só vez.
    """
    def __init__(
        self,
        pedido_repo: IPedidoRepository,
        usuario_repo: IUsuarioRepository,
        confiar_total_cliente: bool = True,
        relogio: Callable[[], datetime] = agora_utc,
    ):
        self.pedido_repo = pedido_repo
        self.usuario_repo = usuario_repo
        self.confiar_total_cliente = confiar_total_cliente
        self.relogio = relogio

    def _validar_itens(self, itens: List[ItemPedido]):
        if not itens:
            raise DadosInvalidosError("O pedido precisa ter ao menos um item.")
        for item in itens:
            if isinstance(item.quantidade, bool) or not isinstance(item.quantidade, int) or item.quantidade <= 0:
                raise DadosInvalidosError(f"Quantidade inválida para o item {item.produto_id}.")
            preco = None if item.preco is None else Decimal(item.preco)
            if preco is None or not preco.is_finite() or not 0 <= preco <= TOTAL_MAXIMO:
                raise DadosInvalidosError(f"Preço inválido para o item {item.produto_id}.")

    def _calcular_total(self, itens: List[ItemPedido]) -> Decimal:
        return sum((item.subtotal for item in itens), Decimal('0'))

    @staticmethod
    def _validar_total(total: Decimal) -> Decimal:
        """O total precisa caber na coluna monetária (10 dígitos, 2 decimais)."""
        if not total.is_finite() or total < 0 or total > TOTAL_MAXIMO:
            raise DadosInvalidosError(f"Total inválido: deve estar entre 0 e {TOTAL_MAXIMO}.")
        return arredondar(total)

    def executar(
        self,
        usuario_id: str,
        itens: List[ItemPedido],
        usuario_nome: Optional[str] = None,
        total: Optional[Decimal] = None,
    ) -> Pedido:
        if not usuario_id:
            raise DadosInvalidosError("userId é obrigatório.")
        self._validar_itens(itens)

        if total is not None and self.confiar_total_cliente:
            total_final = self._validar_total(Decimal(total))
        else:
            total_final = self._validar_total(self._calcular_total(itens))

        if not usuario_nome:
            usuario = self.usuario_repo.buscar_por_id(usuario_id)
            usuario_nome = usuario.nome if usuario else ''

        momento = self.relogio()
        pedido = Pedido(
            # Colisões no mesmo milissegundo ganham sufixo no repositório
            id=f"order_{int(momento.timestamp() * 1000)}",
            usuario_id=usuario_id,
            usuario_nome=usuario_nome,
            itens=list(itens),
            total=total_final,
            criado_em=momento,
            status=STATUS_ATIVO,
        )
        salvo = self.pedido_repo.criar_pedido(pedido)
        logger.info("Pedido %s criado para %s (total %s).", salvo.id, usuario_id, salvo.total)
        return salvo


class FinalizarPedidoUseCase:
    """Ação da cozinha "marcar como pronto": active -> completed."""
    def __init__(self, pedido_repo: IPedidoRepository, relogio: Callable[[], datetime] = agora_utc):
        self.pedido_repo = pedido_repo
        self.relogio = relogio

    def executar(self, pedido_id: str) -> None:
        if not pedido_id:
            raise PedidoNaoEncontradoError()
        self.pedido_repo.concluir_pedido(pedido_id, self.relogio())
        logger.info("Pedido %s concluído.", pedido_id)


class ListarPedidosUseCase:
    """Projeções de leitura: fila ativa (FIFO) e histórico (mais recentes primeiro)."""
    def __init__(self, pedido_repo: IPedidoRepository):
        self.pedido_repo = pedido_repo

    def ativos(self) -> List[Pedido]:
        return sorted(self.pedido_repo.listar_ativos(), key=lambda p: p.criado_em)

    def historico(self, usuario_id: Optional[str] = None) -> List[Pedido]:
        # Empates no mesmo instante mantêm a ordem de inserção antes de inverter
        crescente = sorted(
            self.pedido_repo.listar_historico(usuario_id=usuario_id or None),
            key=lambda p: p.criado_em,
        )
        return crescente[::-1]


# ====================================================================
# 3. CASOS DE USO DE SUGESTÕES (IA)
# ====================================================================

class SugestoesUseCase:
    """
    Sugestões geradas pelo modelo de linguagem.

    Com exceção de `texto_livre`, nenhuma falha do serviço externo chega ao cliente:
    cada operação tem um texto padrão para quando a IA está desabilitada ou falha.
    """
    def __init__(
        self,
        gerador: IGeradorTexto,
        produto_repo: IProdutoRepository,
        usuario_repo: IUsuarioRepository,
        pedido_repo: IPedidoRepository,
    ):
        self.gerador = gerador
        self.produto_repo = produto_repo
        self.usuario_repo = usuario_repo
        self.pedido_repo = pedido_repo

    def montar_carrinho(self, itens: Iterable[Tuple[str, int]], cardapio: List[Produto]) -> List[ItemCarrinho]:
        """Resolve pares (produto_id, quantidade) contra o cardápio; ids desconhecidos são ignorados."""
        por_id = {p.id: p for p in cardapio}
        return [
            ItemCarrinho(produto=por_id[produto_id], quantidade=quantidade)
            for produto_id, quantidade in itens
            if produto_id in por_id
        ]

    def _contexto_cliente(self, usuario_id: Optional[str], nome_cliente: Optional[str]):
        historico: List[Pedido] = []
        if usuario_id:
            historico = self.pedido_repo.listar_historico(usuario_id=usuario_id)
            if not nome_cliente:
                usuario = self.usuario_repo.buscar_por_id(usuario_id)
                nome_cliente = usuario.nome if usuario else None
        return historico, nome_cliente

    def _gerar(self, prompt: str) -> Optional[str]:
        if not self.gerador.disponivel:
            logger.info("IA desabilitada; usando texto padrão.")
            return None
        try:
            return self.gerador.gerar_texto(prompt).strip() or None
        except ServicoIndisponivelError as e:
            logger.warning("Falha na IA, usando texto padrão: %s", e.message)
            return None

    def sugestao_cardapio(
        self,
        usuario_id: Optional[str] = None,
        nome_cliente: Optional[str] = None,
        itens_carrinho: Iterable[Tuple[str, int]] = (),
    ) -> Tuple[str, str]:
        cardapio = self.produto_repo.listar_todos()
        carrinho = self.montar_carrinho(itens_carrinho, cardapio)
        historico, nome_cliente = self._contexto_cliente(usuario_id, nome_cliente)

        categoria = sugestoes.selecionar_categoria_sugestao(historico, carrinho)
        prompt = sugestoes.montar_prompt_sugestao(historico, carrinho, cardapio, nome_cliente)
        return self._gerar(prompt) or SUGESTAO_PADRAO, categoria

    def sugestao_carrinho(
        self,
        nome_cliente: Optional[str] = None,
        itens_carrinho: Iterable[Tuple[str, int]] = (),
        usuario_id: Optional[str] = None,
    ) -> str:
        cardapio = self.produto_repo.listar_todos()
        carrinho = self.montar_carrinho(itens_carrinho, cardapio)
        if usuario_id and not nome_cliente:
            usuario = self.usuario_repo.buscar_por_id(usuario_id)
            nome_cliente = usuario.nome if usuario else None

        modelo = sugestoes.montar_sugestao_carrinho(carrinho, cardapio, nome_cliente)
        if not modelo:
            return ""
        prompt = sugestoes.montar_prompt_polimento(carrinho, modelo, nome_cliente)
        return self._gerar(prompt) or modelo

    def mensagem_do_chef(self, usuario_id: Optional[str] = None, nome_cliente: Optional[str] = None) -> str:
        cardapio = self.produto_repo.listar_todos()
        historico, nome_cliente = self._contexto_cliente(usuario_id, nome_cliente)

        prompt = sugestoes.montar_prompt_chef(historico, nome_cliente, cardapio)
        texto = self._gerar(prompt)
        if texto:
            return texto
        return (
            f"Olá {nome_cliente or 'amigo'}! O Chef recomenda experimentar nossos campeões — "
            f"{sugestoes.nomes_populares(cardapio)}. Volte sempre!"
        )

    def texto_livre(self, prompt: str) -> str:
        """Repassa o prompt diretamente; falhas viram ServicoIndisponivelError (503)."""
        if not prompt or not str(prompt).strip():
            raise DadosInvalidosError("prompt é obrigatório.")
        if not self.gerador.disponivel:
            raise ServicoIndisponivelError("Serviço de IA desabilitado: GEMINI_API_KEY não configurada.")
        return self.gerador.gerar_texto(prompt)


@dataclass
class SessaoChat:
    """Conversa de um cliente com o chatbot. `historico` alterna turnos 'user' e 'model'."""
    id: str
    historico: List[dict] = field(default_factory=list)

    def registrar(self, pergunta: str, resposta: str):
        self.historico.append({'papel': 'user', 'texto': pergunta})
        self.historico.append({'papel': 'model', 'texto': resposta})


class ChatUseCase:
    """Chat de atendimento com sessão explícita, guardada entre requisições."""
    def __init__(self, gerador: IGeradorTexto, sessoes: ISessoesChat):
        self.gerador = gerador
        self.sessoes = sessoes

    def _obter_ou_criar(self, sessao_id: Optional[str]) -> SessaoChat:
        sessao = self.sessoes.obter(sessao_id) if sessao_id else None
        if sessao is None:
            sessao = SessaoChat(id=uuid.uuid4().hex)
            logger.debug("Nova sessão de chat %s.", sessao.id)
        return sessao

    def enviar_mensagem(self, mensagem: str, sessao_id: Optional[str] = None) -> Tuple[str, str]:
        if not mensagem or not str(mensagem).strip():
            raise DadosInvalidosError("message é obrigatório.")
        if not self.gerador.disponivel:
            raise ServicoIndisponivelError("Serviço de IA desabilitado: GEMINI_API_KEY não configurada.")

        sessao = self._obter_ou_criar(sessao_id)
        resposta = self.gerador.gerar_texto(
            mensagem,
            instrucao_sistema=sugestoes.INSTRUCAO_CHAT,
            historico=list(sessao.historico),
        )
        sessao.registrar(mensagem, resposta)
        self.sessoes.salvar(sessao)
        return resposta, sessao.id

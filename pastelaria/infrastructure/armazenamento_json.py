"""
Armazenamento em arquivos JSON e os repositórios que o utilizam.

Cada coleção vive em um arquivo fixo dentro do diretório de dados
(users.json, orders.json, user_orders.json, menu.json). Salvar uma coleção
sobrescreve o arquivo inteiro.

Gravações feitas dentro de `transacao()` são confirmadas juntas: os documentos
vão primeiro para um journal (.journal.json), depois cada arquivo é substituído
via arquivo temporário + os.replace, e por fim o journal é removido. Um journal
que sobrou de uma interrupção é reaplicado no primeiro acesso.
"""
import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional

from pastelaria.core.entities import (
    Pedido, Produto, Usuario, STATUS_ATIVO, STATUS_CONCLUIDO, ids_candidatos,
)
from pastelaria.core.exceptions import ConflitoError, PedidoNaoEncontradoError, PersistenciaError
from pastelaria.core.ports import IPedidoRepository, IProdutoRepository, IUsuarioRepository

from .mappers import PedidoMapper, ProdutoMapper, UsuarioMapper, data_para_iso

logger = logging.getLogger(__name__)

ARQUIVO_USUARIOS = 'users.json'
ARQUIVO_PEDIDOS = 'orders.json'
ARQUIVO_HISTORICO = 'user_orders.json'
ARQUIVO_CARDAPIO = 'menu.json'
ARQUIVO_JOURNAL = '.journal.json'


class ArmazenamentoJSON:
    """Persistência das quatro coleções em arquivos JSON dentro de `diretorio`."""

    # Um lock por diretório, compartilhado por todas as instâncias do processo.
    _locks: Dict[str, threading.RLock] = {}
    _locks_guard = threading.Lock()
    _recuperados: set = set()

    def __init__(self, diretorio):
        self.diretorio = Path(diretorio)
        chave = str(self.diretorio.resolve())
        with self._locks_guard:
            self.lock = self._locks.setdefault(chave, threading.RLock())
        self._chave = chave
        self._pendentes: Optional[Dict[str, list]] = None

    # ----------------------------------------------------------------
    # Leitura e escrita de baixo nível
    # ----------------------------------------------------------------

    def _caminho(self, nome: str) -> Path:
        return self.diretorio / nome

    def _ler(self, nome: str) -> list:
        caminho = self._caminho(nome)
        try:
            with open(caminho, encoding='utf-8') as arquivo:
                dados = json.load(arquivo)
        except FileNotFoundError:
            return []
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("Arquivo %s ilegível, usando lista vazia: %s", caminho, e)
            return []
        if not isinstance(dados, list):
            logger.warning("Arquivo %s não contém uma lista, usando lista vazia.", caminho)
            return []
        return dados

    def _escrever_atomico(self, nome: str, conteudo: str):
        """Grava em um temporário no mesmo diretório e substitui o destino com os.replace."""
        descritor, temporario = tempfile.mkstemp(prefix=f'.{nome}.', suffix='.tmp', dir=self.diretorio)
        try:
            with os.fdopen(descritor, 'w', encoding='utf-8') as arquivo:
                arquivo.write(conteudo)
                arquivo.flush()
                os.fsync(arquivo.fileno())
            os.replace(temporario, self._caminho(nome))
        except OSError:
            if os.path.exists(temporario):
                os.unlink(temporario)
            raise

    @staticmethod
    def _serializar(documento) -> str:
        return json.dumps(documento, indent=2, ensure_ascii=False)

    def _confirmar(self, pendentes: Dict[str, list]):
        if not pendentes:
            return
        try:
            self.diretorio.mkdir(parents=True, exist_ok=True)
            self._escrever_atomico(ARQUIVO_JOURNAL, self._serializar(pendentes))
            for nome, documento in pendentes.items():
                self._escrever_atomico(nome, self._serializar(documento))
            os.unlink(self._caminho(ARQUIVO_JOURNAL))
        except OSError as e:
            logger.error("Falha ao gravar %s em %s: %s", ", ".join(pendentes), self.diretorio, e)
            raise PersistenciaError(f"Falha ao salvar os dados: {e}") from e
        logger.debug("Gravados %s em %s.", ", ".join(pendentes), self.diretorio)

    def _recuperar(self):
        """Reaplica um journal deixado por uma gravação interrompida."""
        if self._chave in self._recuperados:
            return
        caminho = self._caminho(ARQUIVO_JOURNAL)
        if caminho.exists():
            self._reaplicar_journal(caminho)
        # Só depois de reaplicado: uma falha aqui é tentada de novo no próximo acesso
        self._recuperados.add(self._chave)

    def _reaplicar_journal(self, caminho: Path):
        try:
            with open(caminho, encoding='utf-8') as arquivo:
                pendentes = json.load(arquivo)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("Journal %s ilegível, descartado: %s", caminho, e)
            caminho.unlink(missing_ok=True)
            return
        if not isinstance(pendentes, dict):
            logger.warning("Journal %s em formato inesperado, descartado.", caminho)
            caminho.unlink(missing_ok=True)
            return
        logger.warning("Reaplicando gravação interrompida (%s).", ", ".join(pendentes))
        self._confirmar(pendentes)

    # ----------------------------------------------------------------
    # Transação
    # ----------------------------------------------------------------

    @contextmanager
    def transacao(self):
        """
        Agrupa as gravações feitas dentro do bloco e as confirma juntas.
        Uma exceção dentro do bloco descarta tudo. Transações aninhadas
        participam da transação externa.
        """
        with self.lock:
            self._recuperar()
            if self._pendentes is not None:
                yield self
                return
            self._pendentes = {}
            try:
                yield self
                pendentes = self._pendentes
            finally:
                self._pendentes = None
            self._confirmar(pendentes)

    def _carregar(self, nome: str) -> list:
        with self.lock:
            self._recuperar()
            if self._pendentes is not None and nome in self._pendentes:
                return list(self._pendentes[nome])
            return self._ler(nome)

    def _salvar(self, nome: str, documento: list):
        with self.transacao():
            self._pendentes[nome] = list(documento)

    # ----------------------------------------------------------------
    # Coleções
    # ----------------------------------------------------------------

    def carregar_usuarios(self) -> list:
        return self._carregar(ARQUIVO_USUARIOS)

    def salvar_usuarios(self, usuarios: list):
        self._salvar(ARQUIVO_USUARIOS, usuarios)

    def carregar_pedidos(self) -> list:
        return self._carregar(ARQUIVO_PEDIDOS)

    def salvar_pedidos(self, pedidos: list):
        self._salvar(ARQUIVO_PEDIDOS, pedidos)

    def carregar_historico(self) -> list:
        return self._carregar(ARQUIVO_HISTORICO)

    def salvar_historico(self, historico: list):
        self._salvar(ARQUIVO_HISTORICO, historico)

    def carregar_cardapio(self) -> list:
        return self._carregar(ARQUIVO_CARDAPIO)

    def salvar_cardapio(self, cardapio: list):
        self._salvar(ARQUIVO_CARDAPIO, cardapio)


def _mapear(documentos: list, conversor: Callable):
    """Converte documentos em entidades, ignorando registros malformados."""
    entidades = []
    for documento in documentos:
        try:
            entidades.append(conversor(documento))
        except (AttributeError, KeyError, TypeError, ValueError, ArithmeticError) as e:
            logger.warning("Registro ignorado (%s): %r", e, documento)
    return entidades


# ====================================================================
# REPOSITÓRIOS (Implementação em arquivos JSON)
# ====================================================================

class ProdutoRepositoryJSON(IProdutoRepository):
    def __init__(self, armazenamento: ArmazenamentoJSON):
        self.armazenamento = armazenamento

    def listar_todos(self, categoria: Optional[str] = None) -> List[Produto]:
        produtos = _mapear(self.armazenamento.carregar_cardapio(), ProdutoMapper.from_dict)
        if categoria:
            produtos = [p for p in produtos if p.categoria == categoria]
        return produtos

    def buscar_por_id(self, produto_id: str) -> Optional[Produto]:
        return next((p for p in self.listar_todos() if p.id == produto_id), None)

    def carregar_cardapio_inicial(self, produtos: List[Produto]) -> int:
        with self.armazenamento.transacao():
            cardapio = self.armazenamento.carregar_cardapio()
            existentes = {str(p.get('id')) for p in cardapio if isinstance(p, dict)}
            novos = [ProdutoMapper.to_dict(p) for p in produtos if p.id not in existentes]
            if novos:
                self.armazenamento.salvar_cardapio(cardapio + novos)
        return len(novos)


class UsuarioRepositoryJSON(IUsuarioRepository):
    def __init__(self, armazenamento: ArmazenamentoJSON):
        self.armazenamento = armazenamento

    def listar_todos(self) -> List[Usuario]:
        return _mapear(self.armazenamento.carregar_usuarios(), UsuarioMapper.from_dict)

    def buscar_por_id(self, usuario_id: str) -> Optional[Usuario]:
        return next((u for u in self.listar_todos() if u.id == usuario_id), None)

    def buscar_por_cpf(self, cpf: str) -> Optional[Usuario]:
        return next((u for u in self.listar_todos() if u.cpf == cpf), None)

    def criar(self, usuario: Usuario) -> Usuario:
        with self.armazenamento.transacao():
            usuarios = self.armazenamento.carregar_usuarios()
            for existente in usuarios:
                if not isinstance(existente, dict):
                    continue
                if str(existente.get('cpf')) == usuario.cpf:
                    raise ConflitoError("CPF já cadastrado.")
                if str(existente.get('id')) == usuario.id:
                    raise ConflitoError(f"Usuário {usuario.id} já existe.")
            usuarios.append(UsuarioMapper.to_dict(usuario))
            self.armazenamento.salvar_usuarios(usuarios)
        return usuario


class PedidoRepositoryJSON(IPedidoRepository):
    def __init__(self, armazenamento: ArmazenamentoJSON):
        self.armazenamento = armazenamento

    def listar_ativos(self) -> List[Pedido]:
        pedidos = _mapear(self.armazenamento.carregar_pedidos(), PedidoMapper.from_dict)
        return [p for p in pedidos if p.status == STATUS_ATIVO]

    def listar_historico(self, usuario_id: Optional[str] = None) -> List[Pedido]:
        historico = _mapear(self.armazenamento.carregar_historico(), PedidoMapper.from_dict)
        if usuario_id:
            historico = [p for p in historico if p.usuario_id == usuario_id]
        return historico

    def criar_pedido(self, pedido: Pedido) -> Pedido:
        with self.armazenamento.transacao():
            pedidos = self.armazenamento.carregar_pedidos()
            historico = self.armazenamento.carregar_historico()
            usuarios = self.armazenamento.carregar_usuarios()

            ocupados = {d.get('id') for d in pedidos + historico if isinstance(d, dict)}
            pedido = replace(pedido, id=next(i for i in ids_candidatos(pedido.id) if i not in ocupados))
            documento = PedidoMapper.to_dict(pedido)

            pedidos.append(documento)
            historico.append(documento)
            self.armazenamento.salvar_pedidos(pedidos)
            self.armazenamento.salvar_historico(historico)

            usuario = next(
                (u for u in usuarios if isinstance(u, dict) and u.get('id') == pedido.usuario_id), None
            )
            if usuario is not None:
                usuario['historico'] = list(usuario.get('historico') or []) + [documento]
                self.armazenamento.salvar_usuarios(usuarios)
        return pedido

    @staticmethod
    def _marcar_concluido(documentos: list, pedido_id: str, concluido_em: str) -> bool:
        alterado = False
        for documento in documentos:
            if isinstance(documento, dict) and documento.get('id') == pedido_id:
                documento['status'] = STATUS_CONCLUIDO
                documento['completedAt'] = concluido_em
                alterado = True
        return alterado

    def concluir_pedido(self, pedido_id: str, concluido_em: datetime) -> Pedido:
        momento = data_para_iso(concluido_em)
        with self.armazenamento.transacao():
            pedidos = self.armazenamento.carregar_pedidos()
            documento = next(
                (p for p in pedidos if isinstance(p, dict) and p.get('id') == pedido_id), None
            )
            if documento is None:
                raise PedidoNaoEncontradoError(f"Pedido {pedido_id} não está na fila.")

            self.armazenamento.salvar_pedidos([p for p in pedidos if p is not documento])

            historico = self.armazenamento.carregar_historico()
            if not self._marcar_concluido(historico, pedido_id, momento):
                historico.append(dict(documento, status=STATUS_CONCLUIDO, completedAt=momento))
            self.armazenamento.salvar_historico(historico)

            usuarios = self.armazenamento.carregar_usuarios()
            for usuario in usuarios:
                if isinstance(usuario, dict) and usuario.get('id') == documento.get('userId'):
                    if self._marcar_concluido(usuario.get('historico') or [], pedido_id, momento):
                        self.armazenamento.salvar_usuarios(usuarios)
                    break

        return PedidoMapper.from_dict(dict(documento, status=STATUS_CONCLUIDO, completedAt=momento))

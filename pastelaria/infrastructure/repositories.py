"""
Camada de Infraestrutura: Implementação dos Repositórios com o Django ORM (SQLite).

Esta camada traduz as operações abstratas definidas nas Portas do Core
em chamadas concretas ao framework. Erros de banco viram PersistenciaError.
"""
import logging
from dataclasses import replace
from datetime import datetime
from typing import List, Optional

from django.db import DatabaseError, IntegrityError, transaction

# Importações da Camada CORE (ENTIDADES e PORTAS)
from pastelaria.core.entities import (
    Pedido, Produto, Usuario, STATUS_ATIVO, STATUS_CONCLUIDO, ids_candidatos,
)
from pastelaria.core.ports import IPedidoRepository, IProdutoRepository, IUsuarioRepository
from pastelaria.core.exceptions import ConflitoError, PedidoNaoEncontradoError, PersistenciaError

# get_model faz o Lazy Loading dos Modelos Django
from .mappers import PedidoMapper, ProdutoMapper, UsuarioMapper, data_para_iso, get_model

logger = logging.getLogger(__name__)


class ProdutoRepositoryDjango(IProdutoRepository):
    """Implementação do ProdutoRepository usando o Django ORM."""

    @property
    def ProdutoModel(self):
        return get_model('infrastructure', 'Produto')

    def listar_todos(self, categoria: Optional[str] = None) -> List[Produto]:
        qs = self.ProdutoModel.objects.all().order_by('categoria', 'id')
        if categoria:
            qs = qs.filter(categoria=categoria)
        return [ProdutoMapper.to_entity(model) for model in qs]

    def buscar_por_id(self, produto_id: str) -> Optional[Produto]:
        try:
            return ProdutoMapper.to_entity(self.ProdutoModel.objects.get(pk=produto_id))
        except self.ProdutoModel.DoesNotExist:
            return None

    def carregar_cardapio_inicial(self, produtos: List[Produto]) -> int:
        try:
            with transaction.atomic():
                existentes = set(self.ProdutoModel.objects.values_list('id', flat=True))
                novos = [ProdutoMapper.to_model(p) for p in produtos if p.id not in existentes]
                self.ProdutoModel.objects.bulk_create(novos)
        except DatabaseError as e:
            raise PersistenciaError(f"Falha ao carregar o cardápio: {e}") from e
        return len(novos)


class UsuarioRepositoryDjango(IUsuarioRepository):
    """Implementação do UsuarioRepository usando o Django ORM."""

    @property
    def UsuarioModel(self):
        return get_model('infrastructure', 'Usuario')

    def listar_todos(self) -> List[Usuario]:
        return [UsuarioMapper.to_entity(model) for model in self.UsuarioModel.objects.order_by('nome')]

    def buscar_por_id(self, usuario_id: str) -> Optional[Usuario]:
        try:
            return UsuarioMapper.to_entity(self.UsuarioModel.objects.get(pk=usuario_id))
        except self.UsuarioModel.DoesNotExist:
            return None

    def buscar_por_cpf(self, cpf: str) -> Optional[Usuario]:
        return UsuarioMapper.to_entity(self.UsuarioModel.objects.filter(cpf=cpf).first())

    def criar(self, usuario: Usuario) -> Usuario:
        if self.UsuarioModel.objects.filter(cpf=usuario.cpf).exists():
            raise ConflitoError("CPF já cadastrado.")
        if self.UsuarioModel.objects.filter(pk=usuario.id).exists():
            raise ConflitoError(f"Usuário {usuario.id} já existe.")
        try:
            with transaction.atomic():
                model = UsuarioMapper.to_model(usuario)
                model.save(force_insert=True)
        except IntegrityError as e:
            # Corrida entre a verificação acima e o INSERT
            raise ConflitoError("CPF já cadastrado.") from e
        except DatabaseError as e:
            raise PersistenciaError(f"Falha ao salvar o usuário: {e}") from e
        return UsuarioMapper.to_entity(model)


class PedidoRepositoryDjango(IPedidoRepository):
    """
    Implementação do PedidoRepository usando o Django ORM.
    A fila ativa e o histórico são projeções da mesma tabela.
    """

    @property
    def PedidoModel(self):
        return get_model('infrastructure', 'Pedido')

    @property
    def UsuarioModel(self):
        return get_model('infrastructure', 'Usuario')

    def listar_ativos(self) -> List[Pedido]:
        qs = self.PedidoModel.objects.filter(status=STATUS_ATIVO).order_by('criado_em', 'id')
        return [PedidoMapper.to_entity(model) for model in qs]

    def listar_historico(self, usuario_id: Optional[str] = None) -> List[Pedido]:
        qs = self.PedidoModel.objects.all().order_by('criado_em', 'id')
        if usuario_id:
            qs = qs.filter(usuario_id=usuario_id)
        return [PedidoMapper.to_entity(model) for model in qs]

    def _inserir_com_id_livre(self, pedido: Pedido) -> Pedido:
        """Grava com o primeiro id livre entre pedido.id, pedido.id_1, pedido.id_2, ..."""
        for pedido_id in ids_candidatos(pedido.id):
            if self.PedidoModel.objects.filter(pk=pedido_id).exists():
                continue
            candidato = replace(pedido, id=pedido_id)
            try:
                with transaction.atomic():
                    PedidoMapper.to_model(candidato).save(force_insert=True)
            except IntegrityError:
                # Outro pedido ocupou o id entre a verificação e o INSERT
                if not self.PedidoModel.objects.filter(pk=pedido_id).exists():
                    raise
                logger.info("Id %s ocupado, tentando o próximo.", pedido_id)
                continue
            return candidato

    def criar_pedido(self, pedido: Pedido) -> Pedido:
        """Cria o pedido e o anexa ao histórico do usuário ATOMICAMENTE."""
        try:
            with transaction.atomic():
                pedido = self._inserir_com_id_livre(pedido)

                usuario = self.UsuarioModel.objects.select_for_update().filter(pk=pedido.usuario_id).first()
                if usuario is not None:
                    usuario.historico = list(usuario.historico or []) + [PedidoMapper.to_dict(pedido)]
                    usuario.save(update_fields=['historico'])
        except DatabaseError as e:
            logger.error("Falha ao gravar o pedido %s: %s", pedido.id, e)
            raise PersistenciaError(f"Falha ao salvar o pedido: {e}") from e
        return PedidoMapper.to_entity(self.PedidoModel.objects.get(pk=pedido.id))

    def concluir_pedido(self, pedido_id: str, concluido_em: datetime) -> Pedido:
        try:
            with transaction.atomic():
                model = (
                    self.PedidoModel.objects.select_for_update()
                    .filter(pk=pedido_id, status=STATUS_ATIVO)
                    .first()
                )
                if model is None:
                    raise PedidoNaoEncontradoError(f"Pedido {pedido_id} não está na fila.")

                model.status = STATUS_CONCLUIDO
                model.concluido_em = concluido_em
                model.save(update_fields=['status', 'concluido_em'])

                usuario = self.UsuarioModel.objects.select_for_update().filter(pk=model.usuario_id).first()
                if usuario is not None:
                    historico = list(usuario.historico or [])
                    for snapshot in historico:
                        if snapshot.get('id') == pedido_id:
                            snapshot['status'] = STATUS_CONCLUIDO
                            snapshot['completedAt'] = data_para_iso(concluido_em)
                    usuario.historico = historico
                    usuario.save(update_fields=['historico'])
        except DatabaseError as e:
            logger.error("Falha ao concluir o pedido %s: %s", pedido_id, e)
            raise PersistenciaError(f"Falha ao concluir o pedido: {e}") from e
        return PedidoMapper.to_entity(model)

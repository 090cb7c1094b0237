"""
Mapeadores (Mappers) para converter entre:
1. Modelos do Django ORM
2. Entidades de Domínio (pastelaria.core.entities)
3. Documentos JSON (arquivos do armazenamento e colunas JSON do banco)

O formato dos documentos é o mesmo consumido pelo quiosque (camelCase).
"""
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional, Type

from django.apps import apps
from django.db import models
from django.utils.dateparse import parse_datetime

# Importa as entidades do Core
from pastelaria.core.entities import (
    ItemPedido as ItemPedidoEntity,
    Pedido as PedidoEntity,
    Produto as ProdutoEntity,
    Usuario as UsuarioEntity,
    STATUS_ATIVO,
)

logger = logging.getLogger(__name__)


# ====================================================================
# Uso de apps.get_model para evitar dependências circulares
# ====================================================================

def get_model(app_label: str, model_name: str):
    """Retorna um modelo do Django de forma segura (lazy loading)."""
    return apps.get_model(app_label, model_name)


def data_para_iso(momento: Optional[datetime]) -> Optional[str]:
    """ISO-8601 em UTC com milissegundos, ex: 2025-01-01T12:00:00.000Z."""
    if momento is None:
        return None
    if momento.tzinfo is None:
        momento = momento.replace(tzinfo=timezone.utc)
    return momento.astimezone(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def iso_para_data(valor: Any) -> Optional[datetime]:
    if not valor:
        return None
    if isinstance(valor, datetime):
        return valor
    momento = parse_datetime(str(valor))
    if momento is not None and momento.tzinfo is None:
        momento = momento.replace(tzinfo=timezone.utc)
    return momento


def _decimal(valor: Any) -> Decimal:
    return Decimal(str(valor if valor is not None else 0))


def _numero(valor: Decimal):
    """Decimais viram números no JSON (int quando não há centavos)."""
    valor = Decimal(valor)
    return int(valor) if valor == valor.to_integral_value() else float(valor)


# ====================================================================
# MAPPER DO CARDÁPIO
# ====================================================================

class ProdutoMapper:
    """Mapeador para Produto."""

    @classmethod
    def model_class(cls) -> Type[models.Model]:
        return get_model('infrastructure', 'Produto')

    @staticmethod
    def to_entity(model: Any) -> Optional[ProdutoEntity]:
        """Converte Produto Model para Produto Entity."""
        if not model: return None
        return ProdutoEntity(
            id=model.id,
            nome=model.nome,
            descricao=model.descricao,
            preco=model.preco,
            categoria=model.categoria,
            video_url=model.video_url,
            popular=model.popular,
        )

    @classmethod
    def to_model(cls, entity: ProdutoEntity, model: Optional[Any] = None) -> Any:
        """Converte Produto Entity para Produto Model."""
        if not model:
            model = cls.model_class()(id=entity.id)
        model.nome = entity.nome
        model.descricao = entity.descricao
        model.preco = entity.preco
        model.categoria = entity.categoria
        model.video_url = entity.video_url
        model.popular = entity.popular
        return model

    @staticmethod
    def to_dict(entity: ProdutoEntity) -> dict:
        return {
            'id': entity.id,
            'name': entity.nome,
            'description': entity.descricao,
            'price': _numero(entity.preco),
            'category': entity.categoria,
            'videoUrl': entity.video_url,
            'popular': entity.popular,
        }

    @staticmethod
    def from_dict(dados: dict) -> ProdutoEntity:
        return ProdutoEntity(
            id=str(dados['id']),
            nome=dados.get('name', ''),
            descricao=dados.get('description') or '',
            preco=_decimal(dados.get('price')),
            categoria=dados.get('category', ''),
            video_url=dados.get('videoUrl'),
            popular=bool(dados.get('popular', False)),
        )


# ====================================================================
# MAPPERS DE PEDIDO
# ====================================================================

class ItemPedidoMapper:
    """Itens vivem apenas como snapshot dentro do pedido (sem tabela própria)."""

    @staticmethod
    def to_dict(entity: ItemPedidoEntity) -> dict:
        return {
            'productId': entity.produto_id,
            'name': entity.nome,
            'quantity': entity.quantidade,
            'price': _numero(entity.preco),
        }

    @staticmethod
    def from_dict(dados: dict) -> ItemPedidoEntity:
        return ItemPedidoEntity(
            produto_id=str(dados.get('productId', '')),
            nome=dados.get('name', ''),
            quantidade=int(dados.get('quantity', 0)),
            preco=_decimal(dados.get('price')),
        )


class PedidoMapper:
    """Mapeador para Pedido."""

    @classmethod
    def model_class(cls) -> Type[models.Model]:
        return get_model('infrastructure', 'Pedido')

    @staticmethod
    def to_entity(model: Any) -> Optional[PedidoEntity]:
        """Converte Pedido Model para Pedido Entity, incluindo o snapshot dos itens."""
        if not model: return None
        return PedidoEntity(
            id=model.id,
            usuario_id=model.usuario_id,
            usuario_nome=model.usuario_nome,
            itens=[ItemPedidoMapper.from_dict(item) for item in model.itens],
            total=model.total,
            criado_em=model.criado_em,
            status=model.status,
            concluido_em=model.concluido_em,
        )

    @classmethod
    def to_model(cls, entity: PedidoEntity, model: Optional[Any] = None) -> Any:
        """Converte Pedido Entity para Pedido Model."""
        if not model:
            model = cls.model_class()(id=entity.id)
        model.usuario_id = entity.usuario_id
        model.usuario_nome = entity.usuario_nome
        model.itens = [ItemPedidoMapper.to_dict(item) for item in entity.itens]
        model.total = entity.total
        model.criado_em = entity.criado_em
        model.status = entity.status
        model.concluido_em = entity.concluido_em
        return model

    @staticmethod
    def to_dict(entity: PedidoEntity) -> dict:
        dados = {
            'id': entity.id,
            'userId': entity.usuario_id,
            'userName': entity.usuario_nome,
            'items': [ItemPedidoMapper.to_dict(item) for item in entity.itens],
            'total': _numero(entity.total),
            'timestamp': data_para_iso(entity.criado_em),
            'status': entity.status,
        }
        if entity.concluido_em is not None:
            dados['completedAt'] = data_para_iso(entity.concluido_em)
        return dados

    @staticmethod
    def from_dict(dados: dict) -> PedidoEntity:
        criado_em = iso_para_data(dados.get('timestamp'))
        if criado_em is None:
            raise ValueError(f"Pedido {dados.get('id')} sem timestamp válido.")
        return PedidoEntity(
            id=str(dados['id']),
            usuario_id=str(dados.get('userId', '')),
            usuario_nome=dados.get('userName') or '',
            itens=[ItemPedidoMapper.from_dict(item) for item in dados.get('items') or []],
            total=_decimal(dados.get('total')),
            criado_em=criado_em,
            status=dados.get('status') or STATUS_ATIVO,
            concluido_em=iso_para_data(dados.get('completedAt')),
        )


# ====================================================================
# MAPPER DE USUÁRIO
# ====================================================================

def _pedidos_embutidos(documentos: Any) -> list:
    """Snapshots do histórico do usuário; registros malformados são ignorados."""
    pedidos = []
    for documento in documentos or []:
        try:
            pedidos.append(PedidoMapper.from_dict(documento))
        except (AttributeError, KeyError, TypeError, ValueError, ArithmeticError) as e:
            logger.warning("Snapshot de pedido ignorado (%s): %r", e, documento)
    return pedidos


class UsuarioMapper:
    """Mapeador para o Usuário."""

    @classmethod
    def model_class(cls) -> Type[models.Model]:
        return get_model('infrastructure', 'Usuario')

    @staticmethod
    def to_entity(model: Any) -> Optional[UsuarioEntity]:
        """Converte Usuario Model para Usuario Entity."""
        if not model: return None
        return UsuarioEntity(
            id=model.id,
            nome=model.nome,
            email=model.email,
            cpf=model.cpf,
            historico=_pedidos_embutidos(model.historico),
            pontos=model.pontos,
        )

    @classmethod
    def to_model(cls, entity: UsuarioEntity, model: Optional[Any] = None) -> Any:
        if not model:
            model = cls.model_class()(id=entity.id)
        model.nome = entity.nome
        model.email = entity.email
        model.cpf = entity.cpf
        model.historico = [PedidoMapper.to_dict(p) for p in entity.historico]
        model.pontos = entity.pontos
        return model

    @staticmethod
    def to_dict(entity: UsuarioEntity) -> dict:
        return {
            'id': entity.id,
            'name': entity.nome,
            'email': entity.email,
            'cpf': entity.cpf,
            'historico': [PedidoMapper.to_dict(p) for p in entity.historico],
            'pontos': entity.pontos,
        }

    @staticmethod
    def from_dict(dados: dict) -> UsuarioEntity:
        return UsuarioEntity(
            id=str(dados['id']),
            nome=dados.get('name') or '',
            email=dados.get('email') or '',
            cpf=str(dados.get('cpf') or ''),
            historico=_pedidos_embutidos(dados.get('historico')),
            pontos=int(dados.get('pontos') or 0),
        )

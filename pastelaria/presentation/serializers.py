from decimal import Decimal

from rest_framework import serializers

from pastelaria.core.entities import ItemPedido, TOTAL_MAXIMO
from pastelaria.infrastructure.mappers import data_para_iso


class DataISOField(serializers.Field):
    """Datas sempre em UTC, no formato 2025-01-01T12:00:00.000Z."""

    def to_representation(self, value):
        return data_para_iso(value)


# ====================================================================
# SERIALIZERS DE SAÍDA (Entidades -> JSON do quiosque)
# ====================================================================

class ProdutoSerializer(serializers.Serializer):
    id = serializers.CharField()
    name = serializers.CharField(source='nome')
    description = serializers.CharField(source='descricao')
    price = serializers.DecimalField(source='preco', max_digits=10, decimal_places=2)
    category = serializers.CharField(source='categoria')
    videoUrl = serializers.CharField(source='video_url', allow_null=True)
    popular = serializers.BooleanField()


class ItemPedidoSerializer(serializers.Serializer):
    productId = serializers.CharField(source='produto_id')
    name = serializers.CharField(source='nome')
    quantity = serializers.IntegerField(source='quantidade')
    price = serializers.DecimalField(source='preco', max_digits=10, decimal_places=2)


class PedidoSerializer(serializers.Serializer):
    """Pedido como aparece na fila da cozinha e no histórico."""
    id = serializers.CharField()
    userId = serializers.CharField(source='usuario_id')
    userName = serializers.CharField(source='usuario_nome')
    items = ItemPedidoSerializer(source='itens', many=True)
    total = serializers.DecimalField(max_digits=10, decimal_places=2)
    timestamp = DataISOField(source='criado_em')
    status = serializers.CharField()
    completedAt = DataISOField(source='concluido_em')

    def to_representation(self, instance):
        data = super().to_representation(instance)
        # completedAt só existe depois da conclusão
        if data.get('completedAt') is None:
            data.pop('completedAt', None)
        return data


class UsuarioSerializer(serializers.Serializer):
    id = serializers.CharField()
    name = serializers.CharField(source='nome')
    email = serializers.CharField()
    cpf = serializers.CharField()
    historico = PedidoSerializer(many=True)
    pontos = serializers.IntegerField()


# ====================================================================
# SERIALIZERS DE ENTRADA (validação do corpo das requisições)
# ====================================================================

class CadastroUsuarioSerializer(serializers.Serializer):
    """A validação do CPF (11 dígitos) fica no caso de uso."""
    id = serializers.CharField(required=False, allow_blank=True, max_length=64)
    name = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=255)
    cpf = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=32)
    email = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=255)


class ItemPedidoEntradaSerializer(serializers.Serializer):
    productId = serializers.CharField(max_length=64)
    name = serializers.CharField(required=False, allow_blank=True, default='', max_length=255)
    quantity = serializers.IntegerField(min_value=1)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0'))


class CriarPedidoSerializer(serializers.Serializer):
    userId = serializers.CharField(max_length=64)
    userName = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=255)
    items = ItemPedidoEntradaSerializer(many=True, allow_empty=False)
    # Valores não numéricos são ignorados e o total é recalculado.
    total = serializers.JSONField(required=False, allow_null=True)

    def validate_total(self, value):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        total = Decimal(str(value))
        if not total.is_finite() or total < 0 or total > TOTAL_MAXIMO:
            raise serializers.ValidationError(f"O total deve estar entre 0 e {TOTAL_MAXIMO}.")
        return total

    def itens_pedido(self):
        return [
            ItemPedido(
                produto_id=item['productId'],
                nome=item.get('name', ''),
                quantidade=item['quantity'],
                preco=item['price'],
            )
            for item in self.validated_data['items']
        ]


class ItemCarrinhoEntradaSerializer(serializers.Serializer):
    productId = serializers.CharField(max_length=64)
    quantity = serializers.IntegerField(min_value=1, default=1)


class SugestaoCardapioSerializer(serializers.Serializer):
    userId = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    userName = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    cart = ItemCarrinhoEntradaSerializer(many=True, required=False, default=list)

    def itens_carrinho(self):
        return [(item['productId'], item['quantity']) for item in self.validated_data.get('cart', [])]


class MensagemChefSerializer(serializers.Serializer):
    userId = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    userName = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class TextoLivreSerializer(serializers.Serializer):
    prompt = serializers.CharField()


class ChatSerializer(serializers.Serializer):
    message = serializers.CharField()
    sessionId = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class TextoSerializer(serializers.Serializer):
    text = serializers.CharField()


class SugestaoCardapioRespostaSerializer(serializers.Serializer):
    text = serializers.CharField()
    category = serializers.CharField()


class ChatRespostaSerializer(serializers.Serializer):
    text = serializers.CharField()
    sessionId = serializers.CharField()

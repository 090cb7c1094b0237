# Define os modelos do banco de dados (SQLite) para a camada de infraestrutura.

from decimal import Decimal

from django.db import models

from pastelaria.core.entities import (
    CATEGORIA_BEBIDA, CATEGORIA_DOCE, CATEGORIA_PASTEL, STATUS_ATIVO, STATUS_CONCLUIDO
)

# ====================================================================
# 1. Produto (Cardápio)
# ====================================================================

class Produto(models.Model):
    """Item do cardápio do quiosque. Dado de referência carregado pelo load_initial_data."""

    CATEGORIA_CHOICES = [
        (CATEGORIA_PASTEL, 'Pastel'),
        (CATEGORIA_BEBIDA, 'Bebida'),
        (CATEGORIA_DOCE, 'Doce'),
    ]

    id = models.CharField(primary_key=True, max_length=64)
    nome = models.CharField(max_length=255, verbose_name="Nome do Produto")
    descricao = models.TextField(blank=True, default='', verbose_name="Descrição")
    preco = models.DecimalField(max_digits=10, decimal_places=2, verbose_name="Preço de Venda")
    categoria = models.CharField(max_length=20, choices=CATEGORIA_CHOICES)
    video_url = models.CharField(max_length=500, blank=True, null=True)
    popular = models.BooleanField(default=False)

    class Meta:
        verbose_name = "Produto"
        verbose_name_plural = "Produtos"
        db_table = 'products'

    def __str__(self):
        return self.nome


# ====================================================================
# 2. Usuário (Cliente do quiosque)
# ====================================================================

class Usuario(models.Model):
    """
    Cliente identificado pelo CPF (somente dígitos). Não há senha: o quiosque
    apenas seleciona o cliente para associar o pedido.
    """
    id = models.CharField(primary_key=True, max_length=64)
    nome = models.CharField(max_length=255)
    email = models.CharField(max_length=255, blank=True, default='')
    cpf = models.CharField('CPF', max_length=11, unique=True)
    # Snapshots dos pedidos do cliente, no mesmo formato do histórico geral.
    historico = models.JSONField(default=list, blank=True)
    pontos = models.PositiveIntegerField(default=0)

    class Meta:
        verbose_name = 'Usuário'
        verbose_name_plural = 'Usuários'
        db_table = 'users'

    def __str__(self):
        return f"{self.nome} ({self.cpf})"


# ====================================================================
# 3. Pedido
# ====================================================================

class Pedido(models.Model):
    """
    Pedido do quiosque. A fila ativa é a projeção status='active';
    o histórico é a tabela inteira.
    """
    STATUS_CHOICES = [
        (STATUS_ATIVO, 'Na fila'),
        (STATUS_CONCLUIDO, 'Concluído'),
    ]

    id = models.CharField(primary_key=True, max_length=64)
    # Sem FK: o pedido pode referenciar um cliente que não está cadastrado.
    usuario_id = models.CharField(max_length=64, db_index=True)
    usuario_nome = models.CharField(max_length=255, blank=True, default='')
    # Snapshot dos itens: [{productId, name, quantity, price}]
    itens = models.JSONField(default=list)
    total = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    criado_em = models.DateTimeField(db_index=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ATIVO, db_index=True)
    concluido_em = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name = 'Pedido'
        verbose_name_plural = 'Pedidos'
        db_table = 'orders'
        ordering = ['criado_em']

    def __str__(self):
        return f"Pedido {self.id} - {self.usuario_nome or self.usuario_id}"

"""Cardápio inicial do quiosque, carregado pelo comando load_initial_data."""
from decimal import Decimal

from pastelaria.core.entities import CATEGORIA_BEBIDA, CATEGORIA_DOCE, CATEGORIA_PASTEL, Produto

CARDAPIO_INICIAL = [
    # Pastéis
    Produto(
        id='1', nome='Pastel de Carne', preco=Decimal('12.50'), categoria=CATEGORIA_PASTEL,
        descricao='Carne moída temperada com cebola e azeitona.',
        video_url='/videos/pastel-carne.mp4', popular=True,
    ),
    Produto(
        id='2', nome='Pastel de Queijo', preco=Decimal('11.00'), categoria=CATEGORIA_PASTEL,
        descricao='Muçarela derretida na massa crocante.',
        video_url='/videos/pastel-queijo.mp4', popular=True,
    ),
    Produto(
        id='3', nome='Pastel de Frango com Catupiry', preco=Decimal('13.50'), categoria=CATEGORIA_PASTEL,
        descricao='Frango desfiado com Catupiry original.',
        video_url='/videos/pastel-frango.mp4', popular=True,
    ),
    Produto(
        id='4', nome='Pastel de Palmito', preco=Decimal('13.00'), categoria=CATEGORIA_PASTEL,
        descricao='Palmito refogado com tomate e cheiro-verde.',
        video_url='/videos/pastel-palmito.mp4',
    ),
    Produto(
        id='5', nome='Pastel de Pizza', preco=Decimal('12.00'), categoria=CATEGORIA_PASTEL,
        descricao='Muçarela, presunto, tomate e orégano.',
        video_url='/videos/pastel-pizza.mp4',
    ),
    # Bebidas
    Produto(
        id='6', nome='Coca-Cola', preco=Decimal('6.00'), categoria=CATEGORIA_BEBIDA,
        descricao='Lata 350ml gelada.', video_url='/videos/coca-cola.mp4',
    ),
    Produto(
        id='7', nome='Caldo de Cana', preco=Decimal('8.00'), categoria=CATEGORIA_BEBIDA,
        descricao='Copo de 500ml, moído na hora.', video_url='/videos/caldo-de-cana.mp4', popular=True,
    ),
    Produto(
        id='8', nome='Suco de Laranja', preco=Decimal('7.50'), categoria=CATEGORIA_BEBIDA,
        descricao='Natural, 400ml.', video_url='/videos/suco-laranja.mp4',
    ),
    # Doces
    Produto(
        id='9', nome='Pastel de Chocolate', preco=Decimal('10.00'), categoria=CATEGORIA_DOCE,
        descricao='Chocolate ao leite com granulado.', video_url='/videos/pastel-chocolate.mp4',
    ),
    Produto(
        id='10', nome='Pastel de Banana com Canela', preco=Decimal('9.50'), categoria=CATEGORIA_DOCE,
        descricao='Banana, açúcar e canela.', video_url='/videos/pastel-banana.mp4',
    ),
]

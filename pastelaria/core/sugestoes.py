# pastelaria/core/sugestoes.py
"""
Construção dos prompts enviados ao modelo de linguagem.

Funções puras: recebem o estado atual (histórico, carrinho, cardápio) e devolvem
o texto do prompt. Nenhuma chamada de rede acontece aqui.
"""
from decimal import Decimal
from typing import List, Optional, Sequence

from pastelaria.core.entities import (
    CATEGORIA_BEBIDA, CATEGORIA_DOCE, ItemCarrinho, Pedido, Produto
)

CATEGORIA_BOAS_VINDAS = 'boas_vindas'
CATEGORIA_COMPLEMENTO = 'complemento'
CATEGORIA_UPSELL = 'upsell'

INSTRUCAO_CHAT = (
    'Você é um chatbot de atendimento ao cliente para a "Pastelaria Kiosk Pro". '
    'Seja amigável, prestativo e conciso. Responda perguntas sobre o cardápio, '
    'horários de funcionamento (9h às 22h) e ajude os clientes com dúvidas gerais. '
    'Não processe pedidos, apenas tire dúvidas. Não invente preços que não conhece. '
    'O cardápio inclui pastéis, bebidas e doces.'
)


def _preco(valor: Decimal) -> str:
    return f"R${Decimal(valor):.2f}"


def _descrever_carrinho(carrinho: Sequence[ItemCarrinho]) -> str:
    return ", ".join(f"{item.quantidade}x {item.nome}" for item in carrinho)


def _descrever_historico(historico: Sequence[Pedido]) -> str:
    return "; ".join(
        ", ".join(f"{item.quantidade}x {item.nome}" for item in pedido.itens)
        for pedido in historico
    )


def _populares(cardapio: Sequence[Produto]) -> List[Produto]:
    return [p for p in cardapio if p.popular]


def selecionar_categoria_sugestao(historico: Sequence[Pedido], carrinho: Sequence[ItemCarrinho]) -> str:
    """
    Tabela de decisão do tipo de sugestão:
    sem histórico e carrinho vazio -> boas-vindas; sem histórico com carrinho -> complemento;
    com histórico -> upsell personalizado.
    """
    if historico:
        return CATEGORIA_UPSELL
    if carrinho:
        return CATEGORIA_COMPLEMENTO
    return CATEGORIA_BOAS_VINDAS


def montar_prompt_sugestao(
    historico: Sequence[Pedido],
    carrinho: Sequence[ItemCarrinho],
    cardapio: Sequence[Produto],
    nome_cliente: Optional[str] = None,
) -> str:
    """Monta o prompt de sugestão do cardápio conforme a categoria escolhida."""
    cliente = nome_cliente or "cliente"
    categoria = selecionar_categoria_sugestao(historico, carrinho)
    populares = ", ".join(f"{p.nome} ({_preco(p.preco)})" for p in _populares(cardapio))

    if categoria == CATEGORIA_BOAS_VINDAS:
        contexto = f"Este é um cliente novo na pastelaria. Nome do cliente: {cliente}."
        instrucoes = (
            "Seja extremamente amigável e acolhedor!\n"
            f"Faça uma boas-vindas calorosa usando o nome do cliente ({cliente}) e sugira "
            "os produtos mais populares e bem avaliados da loja.\n"
            f"Itens mais populares: {populares}.\n"
            "A sugestão deve ser entusiasmada, curta, personalizada com o nome e amigável."
        )
    elif categoria == CATEGORIA_COMPLEMENTO:
        contexto = (
            f"Este é um cliente novo na pastelaria. Nome do cliente: {cliente}. "
            f"Itens selecionados no carrinho: {_descrever_carrinho(carrinho)}."
        )
        instrucoes = (
            "O cliente já adicionou alguns itens ao carrinho.\n"
            "Sugira itens complementares ou alternativos baseado no que ele já escolheu.\n"
            f"Use o nome do cliente ({cliente}) para personalizar a sugestão.\n"
            "Seja entusiasmado, breve e amigável."
        )
    else:
        no_carrinho = _descrever_carrinho(carrinho) if carrinho else "carrinho vazio"
        contexto = f"Cliente: {cliente}. Histórico de pedidos: {_descrever_historico(historico)}."
        instrucoes = (
            f"Você conhece bem o cliente {cliente}.\n"
            "Faça uma sugestão de upsell inteligente com base no histórico de compras.\n"
            f"Itens no carrinho atual: {no_carrinho}.\n"
            "Personalize a sugestão usando o nome do cliente e os produtos que ele já comprou.\n"
            "Não sugira itens que já estão no carrinho."
        )

    texto_carrinho = (
        f"Itens no carrinho atual: {_descrever_carrinho(carrinho)}."
        if carrinho else "O carrinho está vazio."
    )
    texto_cardapio = "Cardápio disponível: " + ", ".join(
        f"{p.nome} ({_preco(p.preco)}){' ⭐' if p.popular else ''}" for p in cardapio
    ) + "."

    return (
        "Você é um assistente de vendas amigável para uma pastelaria.\n\n"
        f"{contexto}\n{texto_carrinho}\n{texto_cardapio}\n\n{instrucoes}\n\n"
        "Gere uma sugestão para este cliente (máximo uma frase, curta e amigável):"
    )


def montar_sugestao_carrinho(
    carrinho: Sequence[ItemCarrinho],
    cardapio: Sequence[Produto],
    nome_cliente: Optional[str] = None,
) -> str:
    """
    Sugestão-modelo baseada nas categorias que faltam no carrinho.
    Retorna string vazia quando o carrinho está vazio ou não há o que sugerir.
    """
    if not carrinho:
        return ""

    cliente = nome_cliente or "você"
    categorias = {item.categoria for item in carrinho}
    no_carrinho = {item.produto.id for item in carrinho}
    candidatos = [p for p in cardapio if p.id not in no_carrinho]

    if CATEGORIA_BEBIDA not in categorias:
        bebidas = [p.nome for p in candidatos if p.categoria == CATEGORIA_BEBIDA]
        if bebidas:
            return f"Que tal acompanhar com uma bebida, {cliente}? {' ou '.join(bebidas)}?"
    elif CATEGORIA_DOCE not in categorias:
        doces = [p.nome for p in candidatos if p.categoria == CATEGORIA_DOCE]
        if doces:
            return f"{cliente}, que tal um doce para sobremesa? {' ou '.join(doces)}?"
    else:
        outros = [p.nome for p in candidatos if p.popular]
        if outros:
            return (
                f"{cliente}, que tal adicionar mais? "
                f"Nossos clientes também adoram {' e '.join(outros)}!"
            )
    return ""


def montar_prompt_polimento(
    carrinho: Sequence[ItemCarrinho],
    sugestao: str,
    nome_cliente: Optional[str] = None,
) -> str:
    cliente = nome_cliente or "você"
    return (
        "Você é um assistente de vendas amigável para uma pastelaria.\n\n"
        f"Cliente: {cliente}\n"
        f"Itens no carrinho: {_descrever_carrinho(carrinho)}.\n\n"
        f'Sugestão inicial: "{sugestao}"\n\n'
        "Melhore e reescreva essa sugestão para deixá-la mais atrativa, personalizada com "
        "o nome do cliente, curta (máximo uma frase) e amigável:"
    )


def nomes_populares(cardapio: Sequence[Produto], limite: int = 3) -> str:
    return ", ".join(p.nome for p in _populares(cardapio)[:limite])


def montar_prompt_chef(
    historico: Sequence[Pedido],
    nome_cliente: Optional[str] = None,
    cardapio: Sequence[Produto] = (),
) -> str:
    cliente = nome_cliente or "amigo"
    resumo = (
        f"O cliente já pediu anteriormente: {_descrever_historico(historico)}."
        if historico else ""
    )
    return (
        "Você é o Chef da pastelaria, carismático e memorável. Crie UMA mensagem curta e "
        f"calorosa (máximo duas frases) destinada ao cliente chamado '{cliente}', que o faça "
        "se sentir especial e convidado a voltar. Evite linguagem genérica; personalize usando "
        "o nome quando disponível e, se fizer sentido, mencione algum item popular "
        f"({nomes_populares(cardapio)}) ou um toque sobre o histórico: {resumo}\n"
        f'Termine com um pequeno convite para voltar (ex: "Volte sempre, {cliente}!").'
    )

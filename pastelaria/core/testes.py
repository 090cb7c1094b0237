# pastelaria/core/testes.py

import unittest
from dataclasses import replace
from unittest.mock import Mock
from datetime import datetime, timedelta, timezone
from decimal import Decimal

# Importamos as classes que queremos testar
from pastelaria.core.use_cases import (
    ChatUseCase, CriarPedidoUseCase, FinalizarPedidoUseCase, GerenciarUsuariosUseCase,
    ListarPedidosUseCase, SessaoChat, SugestoesUseCase, SUGESTAO_PADRAO, normalizar_cpf,
)
from pastelaria.core.entities import (
    ItemCarrinho, ItemPedido, Pedido, Produto, Usuario, STATUS_ATIVO,
    CATEGORIA_BEBIDA, CATEGORIA_DOCE, CATEGORIA_PASTEL,
)
from pastelaria.core.exceptions import (
    ConflitoError, DadosInvalidosError, PedidoNaoEncontradoError,
    ServicoIndisponivelError, UsuarioNaoEncontradoError,
)
from pastelaria.core import sugestoes

MOMENTO = datetime(2025, 3, 10, 15, 30, 0, tzinfo=timezone.utc)
MOMENTO_MS = int(MOMENTO.timestamp() * 1000)

PASTEL_CARNE = Produto(id='1', nome='Pastel de Carne', preco=Decimal('12.50'), categoria=CATEGORIA_PASTEL, popular=True)
PASTEL_QUEIJO = Produto(id='2', nome='Pastel de Queijo', preco=Decimal('11.00'), categoria=CATEGORIA_PASTEL, popular=True)
COCA = Produto(id='6', nome='Coca-Cola', preco=Decimal('6.00'), categoria=CATEGORIA_BEBIDA)
CALDO = Produto(id='7', nome='Caldo de Cana', preco=Decimal('8.00'), categoria=CATEGORIA_BEBIDA, popular=True)
CHOCOLATE = Produto(id='9', nome='Pastel de Chocolate', preco=Decimal('10.00'), categoria=CATEGORIA_DOCE)
CARDAPIO = [PASTEL_CARNE, PASTEL_QUEIJO, COCA, CALDO, CHOCOLATE]


def _pedido(pedido_id, minutos=0, usuario_id='user_1'):
    return Pedido(
        id=pedido_id,
        usuario_id=usuario_id,
        itens=[ItemPedido('1', 'Pastel de Carne', 1, Decimal('12.50'))],
        total=Decimal('12.50'),
        criado_em=MOMENTO + timedelta(minutes=minutos),
    )


# ====================================================================
# PEDIDOS
# ====================================================================

class TestCriarPedidoUseCase(unittest.TestCase):

    def setUp(self):
        """
        Prepara o caso de uso com repositórios "Mock" e um relógio fixo.
        """
        self.pedido_repo_mock = Mock()
        self.pedido_repo_mock.criar_pedido.side_effect = lambda pedido: pedido
        self.usuario_repo_mock = Mock()
        self.usuario_repo_mock.buscar_por_id.return_value = None

        self.use_case = CriarPedidoUseCase(
            pedido_repo=self.pedido_repo_mock,
            usuario_repo=self.usuario_repo_mock,
            relogio=lambda: MOMENTO,
        )
        self.itens = [
            ItemPedido(produto_id='1', nome='Pastel de Carne', quantidade=2, preco=Decimal('12.5')),
            ItemPedido(produto_id='6', nome='Coca-Cola', quantidade=1, preco=Decimal('6')),
        ]

    def test_calcula_total_quando_cliente_nao_envia(self):
        """
        Cenário: 2x Pastel de Carne (12.50) + 1x Coca-Cola (6.00) sem total informado.
        """
        # ACT
        pedido = self.use_case.executar(usuario_id='user_1', itens=self.itens, usuario_nome='Ana')

        # ASSERT
        self.assertEqual(pedido.total, Decimal('31.00'))
        self.assertEqual(pedido.status, STATUS_ATIVO)
        self.assertEqual(pedido.id, f'order_{MOMENTO_MS}')
        self.assertEqual(pedido.criado_em, MOMENTO)
        self.assertIsNone(pedido.concluido_em)
        self.pedido_repo_mock.criar_pedido.assert_called_once_with(pedido)

    def test_confia_no_total_numerico_do_cliente(self):
        pedido = self.use_case.executar(usuario_id='user_1', itens=self.itens, total=Decimal('29.9'))
        self.assertEqual(pedido.total, Decimal('29.90'))

    def test_recalcula_total_quando_nao_confia_no_cliente(self):
        self.use_case.confiar_total_cliente = False
        pedido = self.use_case.executar(usuario_id='user_1', itens=self.itens, total=Decimal('1.00'))
        self.assertEqual(pedido.total, Decimal('31.00'))

    def test_id_final_vem_do_repositorio(self):
        """
        Cenário: já existe pedido no mesmo milissegundo; o repositório grava com sufixo.
        """
        self.pedido_repo_mock.criar_pedido.side_effect = lambda pedido: replace(pedido, id=f'{pedido.id}_2')
        pedido = self.use_case.executar(usuario_id='user_1', itens=self.itens)
        self.assertEqual(self.pedido_repo_mock.criar_pedido.call_args[0][0].id, f'order_{MOMENTO_MS}')
        self.assertEqual(pedido.id, f'order_{MOMENTO_MS}_2')

    def test_total_do_cliente_acima_do_limite(self):
        with self.assertRaises(DadosInvalidosError):
            self.use_case.executar(usuario_id='user_1', itens=self.itens, total=Decimal('12345678901'))
        self.pedido_repo_mock.criar_pedido.assert_not_called()

    def test_total_do_cliente_negativo(self):
        with self.assertRaises(DadosInvalidosError):
            self.use_case.executar(usuario_id='user_1', itens=self.itens, total=Decimal('-1'))
        self.pedido_repo_mock.criar_pedido.assert_not_called()

    def test_total_calculado_acima_do_limite(self):
        """
        Cenário: 1000x um item de 99.999.999,99 estoura a coluna do total.
        """
        itens = [ItemPedido(produto_id='1', nome='Pastel', quantidade=1000, preco=Decimal('99999999.99'))]
        with self.assertRaises(DadosInvalidosError):
            self.use_case.executar(usuario_id='user_1', itens=itens)
        self.pedido_repo_mock.criar_pedido.assert_not_called()

    def test_preco_acima_do_limite(self):
        itens = [ItemPedido(produto_id='1', nome='Pastel', quantidade=1, preco=Decimal('100000000'))]
        with self.assertRaises(DadosInvalidosError):
            self.use_case.executar(usuario_id='user_1', itens=itens, total=Decimal('10'))

    def test_nome_do_cliente_vem_do_cadastro(self):
        self.usuario_repo_mock.buscar_por_id.return_value = Usuario(id='user_1', nome='Ana', cpf='12345678900')
        pedido = self.use_case.executar(usuario_id='user_1', itens=self.itens)
        self.assertEqual(pedido.usuario_nome, 'Ana')

    def test_cliente_desconhecido_fica_sem_nome(self):
        pedido = self.use_case.executar(usuario_id='guest', itens=self.itens)
        self.assertEqual(pedido.usuario_nome, '')

    def test_pedido_sem_itens_falha(self):
        with self.assertRaises(DadosInvalidosError):
            self.use_case.executar(usuario_id='user_1', itens=[])
        self.pedido_repo_mock.criar_pedido.assert_not_called()

    def test_pedido_sem_usuario_falha(self):
        with self.assertRaises(DadosInvalidosError):
            self.use_case.executar(usuario_id='', itens=self.itens)
        self.pedido_repo_mock.criar_pedido.assert_not_called()

    def test_quantidade_zero_falha(self):
        itens = [ItemPedido(produto_id='1', nome='Pastel de Carne', quantidade=0, preco=Decimal('12.5'))]
        with self.assertRaises(DadosInvalidosError):
            self.use_case.executar(usuario_id='user_1', itens=itens)

    def test_preco_negativo_falha(self):
        itens = [ItemPedido(produto_id='1', nome='Pastel de Carne', quantidade=1, preco=Decimal('-1'))]
        with self.assertRaises(DadosInvalidosError):
            self.use_case.executar(usuario_id='user_1', itens=itens)


class TestFinalizarPedidoUseCase(unittest.TestCase):

    def setUp(self):
        self.pedido_repo_mock = Mock()
        self.use_case = FinalizarPedidoUseCase(self.pedido_repo_mock, relogio=lambda: MOMENTO)

    def test_conclui_pedido_ativo(self):
        self.use_case.executar('order_1')
        self.pedido_repo_mock.concluir_pedido.assert_called_once_with('order_1', MOMENTO)

    def test_pedido_fora_da_fila_propaga_erro(self):
        self.pedido_repo_mock.concluir_pedido.side_effect = PedidoNaoEncontradoError()
        with self.assertRaises(PedidoNaoEncontradoError):
            self.use_case.executar('order_inexistente')


class TestListarPedidosUseCase(unittest.TestCase):

    def setUp(self):
        self.pedido_repo_mock = Mock()
        self.use_case = ListarPedidosUseCase(self.pedido_repo_mock)

    def test_fila_ativa_em_ordem_de_chegada(self):
        self.pedido_repo_mock.listar_ativos.return_value = [_pedido('b', 5), _pedido('a', 0), _pedido('c', 9)]
        self.assertEqual([p.id for p in self.use_case.ativos()], ['a', 'b', 'c'])

    def test_historico_mais_recentes_primeiro(self):
        self.pedido_repo_mock.listar_historico.return_value = [_pedido('a', 0), _pedido('c', 9), _pedido('b', 5)]
        historico = self.use_case.historico('user_1')
        self.assertEqual([p.id for p in historico], ['c', 'b', 'a'])
        self.pedido_repo_mock.listar_historico.assert_called_once_with(usuario_id='user_1')


# ====================================================================
# USUÁRIOS
# ====================================================================

class TestGerenciarUsuariosUseCase(unittest.TestCase):

    def setUp(self):
        self.usuario_repo_mock = Mock()
        self.usuario_repo_mock.criar.side_effect = lambda usuario: usuario
        self.use_case = GerenciarUsuariosUseCase(self.usuario_repo_mock, relogio=lambda: MOMENTO)

    def test_normalizar_cpf(self):
        self.assertEqual(normalizar_cpf('123.456.789-00'), '12345678900')
        self.assertEqual(normalizar_cpf(None), '')

    def test_cadastro_normaliza_cpf_e_aplica_padroes(self):
        # ACT
        usuario = self.use_case.cadastrar(nome=None, cpf='123.456.789-00')

        # ASSERT
        self.assertEqual(usuario.cpf, '12345678900')
        self.assertEqual(usuario.nome, 'Sem Nome')
        self.assertEqual(usuario.email, '')
        self.assertEqual(usuario.id, f'user_{MOMENTO_MS}')
        self.assertEqual(usuario.pontos, 0)
        self.assertEqual(usuario.historico, [])

    def test_cadastro_mantem_id_informado(self):
        usuario = self.use_case.cadastrar(nome='Ana', cpf='12345678900', usuario_id='cliente-7')
        self.assertEqual(usuario.id, 'cliente-7')

    def test_cadastro_sem_cpf_falha(self):
        with self.assertRaises(DadosInvalidosError):
            self.use_case.cadastrar(nome='Ana', cpf='')
        self.usuario_repo_mock.criar.assert_not_called()

    def test_cadastro_com_cpf_curto_falha(self):
        with self.assertRaises(DadosInvalidosError):
            self.use_case.cadastrar(nome='Ana', cpf='123.456')

    def test_cadastro_duplicado_propaga_conflito(self):
        self.usuario_repo_mock.criar.side_effect = ConflitoError()
        with self.assertRaises(ConflitoError):
            self.use_case.cadastrar(nome='Ana', cpf='12345678900')

    def test_busca_por_cpf_usa_somente_digitos(self):
        ana = Usuario(id='user_1', nome='Ana', cpf='12345678900')
        self.usuario_repo_mock.buscar_por_cpf.return_value = ana
        self.assertIs(self.use_case.buscar_por_cpf('123.456.789-00'), ana)
        self.usuario_repo_mock.buscar_por_cpf.assert_called_once_with('12345678900')

    def test_busca_por_cpf_inexistente(self):
        self.usuario_repo_mock.buscar_por_cpf.return_value = None
        with self.assertRaises(UsuarioNaoEncontradoError):
            self.use_case.buscar_por_cpf('00000000000')

    def test_historico_de_usuario_inexistente(self):
        self.usuario_repo_mock.buscar_por_id.return_value = None
        with self.assertRaises(UsuarioNaoEncontradoError):
            self.use_case.historico_do_usuario('user_x')


# ====================================================================
# CONSTRUÇÃO DOS PROMPTS
# ====================================================================

class TestSugestoes(unittest.TestCase):

    def test_categoria_da_sugestao(self):
        carrinho = [ItemCarrinho(PASTEL_CARNE, 1)]
        historico = [_pedido('order_1')]
        self.assertEqual(sugestoes.selecionar_categoria_sugestao([], []), sugestoes.CATEGORIA_BOAS_VINDAS)
        self.assertEqual(sugestoes.selecionar_categoria_sugestao([], carrinho), sugestoes.CATEGORIA_COMPLEMENTO)
        self.assertEqual(sugestoes.selecionar_categoria_sugestao(historico, []), sugestoes.CATEGORIA_UPSELL)
        self.assertEqual(sugestoes.selecionar_categoria_sugestao(historico, carrinho), sugestoes.CATEGORIA_UPSELL)

    def test_prompt_de_boas_vindas_lista_populares(self):
        prompt = sugestoes.montar_prompt_sugestao([], [], CARDAPIO, 'Ana')
        self.assertIn('Ana', prompt)
        self.assertIn('Pastel de Carne (R$12.50)', prompt)
        self.assertIn('O carrinho está vazio.', prompt)

    def test_prompt_de_upsell_usa_historico_e_carrinho(self):
        prompt = sugestoes.montar_prompt_sugestao([_pedido('order_1')], [ItemCarrinho(COCA, 2)], CARDAPIO, 'Ana')
        self.assertIn('Histórico de pedidos: 1x Pastel de Carne', prompt)
        self.assertIn('2x Coca-Cola', prompt)
        self.assertIn('Não sugira itens que já estão no carrinho.', prompt)

    def test_carrinho_sem_bebida_sugere_bebidas(self):
        texto = sugestoes.montar_sugestao_carrinho([ItemCarrinho(PASTEL_CARNE, 1)], CARDAPIO, 'Ana')
        self.assertEqual(texto, 'Que tal acompanhar com uma bebida, Ana? Coca-Cola ou Caldo de Cana?')

    def test_carrinho_com_bebida_sugere_doce(self):
        carrinho = [ItemCarrinho(PASTEL_CARNE, 1), ItemCarrinho(COCA, 1)]
        texto = sugestoes.montar_sugestao_carrinho(carrinho, CARDAPIO, 'Ana')
        self.assertEqual(texto, 'Ana, que tal um doce para sobremesa? Pastel de Chocolate?')

    def test_carrinho_completo_sugere_populares_fora_do_carrinho(self):
        carrinho = [ItemCarrinho(PASTEL_CARNE, 1), ItemCarrinho(COCA, 1), ItemCarrinho(CHOCOLATE, 1)]
        texto = sugestoes.montar_sugestao_carrinho(carrinho, CARDAPIO, None)
        self.assertEqual(
            texto, 'você, que tal adicionar mais? Nossos clientes também adoram Pastel de Queijo e Caldo de Cana!'
        )

    def test_carrinho_vazio_sem_sugestao(self):
        self.assertEqual(sugestoes.montar_sugestao_carrinho([], CARDAPIO, 'Ana'), '')

    def test_sem_bebidas_disponiveis_sem_sugestao(self):
        carrinho = [ItemCarrinho(PASTEL_CARNE, 1)]
        self.assertEqual(sugestoes.montar_sugestao_carrinho(carrinho, [PASTEL_CARNE], 'Ana'), '')

    def test_prompt_do_chef_limita_populares(self):
        prompt = sugestoes.montar_prompt_chef([], 'Ana', CARDAPIO)
        self.assertIn("'Ana'", prompt)
        self.assertIn('Pastel de Carne, Pastel de Queijo, Caldo de Cana', prompt)


# ====================================================================
# CASOS DE USO DE IA
# ====================================================================

class TestSugestoesUseCase(unittest.TestCase):

    def setUp(self):
        self.gerador_mock = Mock()
        self.gerador_mock.disponivel = True
        self.produto_repo_mock = Mock()
        self.produto_repo_mock.listar_todos.return_value = CARDAPIO
        self.usuario_repo_mock = Mock()
        self.usuario_repo_mock.buscar_por_id.return_value = None
        self.pedido_repo_mock = Mock()
        self.pedido_repo_mock.listar_historico.return_value = []

        self.use_case = SugestoesUseCase(
            gerador=self.gerador_mock,
            produto_repo=self.produto_repo_mock,
            usuario_repo=self.usuario_repo_mock,
            pedido_repo=self.pedido_repo_mock,
        )

    def test_montar_carrinho_ignora_produtos_desconhecidos(self):
        carrinho = self.use_case.montar_carrinho([('1', 2), ('999', 1)], CARDAPIO)
        self.assertEqual(len(carrinho), 1)
        self.assertEqual(carrinho[0].produto, PASTEL_CARNE)
        self.assertEqual(carrinho[0].quantidade, 2)

    def test_sugestao_do_cardapio_com_ia(self):
        self.gerador_mock.gerar_texto.return_value = '  Experimente o Pastel de Carne, Ana!  '
        texto, categoria = self.use_case.sugestao_cardapio(nome_cliente='Ana', itens_carrinho=[('1', 1)])
        self.assertEqual(texto, 'Experimente o Pastel de Carne, Ana!')
        self.assertEqual(categoria, sugestoes.CATEGORIA_COMPLEMENTO)

    def test_sugestao_do_cardapio_usa_historico_do_cliente(self):
        self.pedido_repo_mock.listar_historico.return_value = [_pedido('order_1')]
        self.usuario_repo_mock.buscar_por_id.return_value = Usuario(id='user_1', nome='Ana', cpf='12345678900')
        self.gerador_mock.gerar_texto.return_value = 'Que tal repetir, Ana?'

        _, categoria = self.use_case.sugestao_cardapio(usuario_id='user_1')

        self.assertEqual(categoria, sugestoes.CATEGORIA_UPSELL)
        prompt = self.gerador_mock.gerar_texto.call_args[0][0]
        self.assertIn('Cliente: Ana.', prompt)

    def test_sugestao_do_cardapio_sem_ia_usa_texto_padrao(self):
        self.gerador_mock.disponivel = False
        texto, categoria = self.use_case.sugestao_cardapio()
        self.assertEqual(texto, SUGESTAO_PADRAO)
        self.assertEqual(categoria, sugestoes.CATEGORIA_BOAS_VINDAS)
        self.gerador_mock.gerar_texto.assert_not_called()

    def test_sugestao_do_cardapio_com_falha_usa_texto_padrao(self):
        self.gerador_mock.gerar_texto.side_effect = ServicoIndisponivelError()
        texto, _ = self.use_case.sugestao_cardapio()
        self.assertEqual(texto, SUGESTAO_PADRAO)

    def test_sugestao_do_carrinho_vazio(self):
        self.assertEqual(self.use_case.sugestao_carrinho(nome_cliente='Ana'), '')
        self.gerador_mock.gerar_texto.assert_not_called()

    def test_sugestao_do_carrinho_polida_pela_ia(self):
        self.gerador_mock.gerar_texto.return_value = 'Ana, um Caldo de Cana cai bem!'
        texto = self.use_case.sugestao_carrinho(nome_cliente='Ana', itens_carrinho=[('1', 1)])
        self.assertEqual(texto, 'Ana, um Caldo de Cana cai bem!')
        prompt = self.gerador_mock.gerar_texto.call_args[0][0]
        self.assertIn('Que tal acompanhar com uma bebida, Ana?', prompt)

    def test_sugestao_do_carrinho_sem_ia_usa_modelo(self):
        self.gerador_mock.disponivel = False
        texto = self.use_case.sugestao_carrinho(nome_cliente='Ana', itens_carrinho=[('1', 1)])
        self.assertEqual(texto, 'Que tal acompanhar com uma bebida, Ana? Coca-Cola ou Caldo de Cana?')

    def test_mensagem_do_chef_sem_ia(self):
        self.gerador_mock.gerar_texto.side_effect = ServicoIndisponivelError()
        texto = self.use_case.mensagem_do_chef(nome_cliente='Ana')
        self.assertEqual(
            texto,
            'Olá Ana! O Chef recomenda experimentar nossos campeões — '
            'Pastel de Carne, Pastel de Queijo, Caldo de Cana. Volte sempre!',
        )

    def test_texto_livre_repassa_para_ia(self):
        self.gerador_mock.gerar_texto.return_value = 'resposta'
        self.assertEqual(self.use_case.texto_livre('Olá'), 'resposta')
        self.gerador_mock.gerar_texto.assert_called_once_with('Olá')

    def test_texto_livre_sem_ia_falha(self):
        self.gerador_mock.disponivel = False
        with self.assertRaises(ServicoIndisponivelError):
            self.use_case.texto_livre('Olá')

    def test_texto_livre_sem_prompt_falha(self):
        with self.assertRaises(DadosInvalidosError):
            self.use_case.texto_livre('   ')


class TestChatUseCase(unittest.TestCase):

    def setUp(self):
        self.gerador_mock = Mock()
        self.gerador_mock.disponivel = True
        self.gerador_mock.gerar_texto.return_value = 'Abrimos às 9h.'
        self.sessoes_mock = Mock()
        self.use_case = ChatUseCase(self.gerador_mock, self.sessoes_mock)

    def test_nova_sessao_quando_nao_informada(self):
        # ACT
        texto, sessao_id = self.use_case.enviar_mensagem('Que horas abre?')

        # ASSERT
        self.assertEqual(texto, 'Abrimos às 9h.')
        self.assertTrue(sessao_id)
        self.sessoes_mock.obter.assert_not_called()
        sessao_salva = self.sessoes_mock.salvar.call_args[0][0]
        self.assertEqual(sessao_salva.id, sessao_id)
        self.assertEqual(sessao_salva.historico, [
            {'papel': 'user', 'texto': 'Que horas abre?'},
            {'papel': 'model', 'texto': 'Abrimos às 9h.'},
        ])
        kwargs = self.gerador_mock.gerar_texto.call_args[1]
        self.assertEqual(kwargs['instrucao_sistema'], sugestoes.INSTRUCAO_CHAT)
        self.assertEqual(kwargs['historico'], [])

    def test_sessao_existente_envia_historico(self):
        anterior = [{'papel': 'user', 'texto': 'Oi'}, {'papel': 'model', 'texto': 'Olá!'}]
        self.sessoes_mock.obter.return_value = SessaoChat(id='s1', historico=list(anterior))

        _, sessao_id = self.use_case.enviar_mensagem('Tem pastel de queijo?', 's1')

        self.assertEqual(sessao_id, 's1')
        self.assertEqual(self.gerador_mock.gerar_texto.call_args[1]['historico'], anterior)
        self.assertEqual(len(self.sessoes_mock.salvar.call_args[0][0].historico), 4)

    def test_sessao_expirada_vira_nova(self):
        self.sessoes_mock.obter.return_value = None
        _, sessao_id = self.use_case.enviar_mensagem('Oi', 'expirada')
        self.assertNotEqual(sessao_id, 'expirada')

    def test_falha_da_ia_nao_grava_sessao(self):
        self.gerador_mock.gerar_texto.side_effect = ServicoIndisponivelError()
        with self.assertRaises(ServicoIndisponivelError):
            self.use_case.enviar_mensagem('Oi')
        self.sessoes_mock.salvar.assert_not_called()

    def test_mensagem_vazia_falha(self):
        with self.assertRaises(DadosInvalidosError):
            self.use_case.enviar_mensagem('')


if __name__ == '__main__':
    unittest.main()

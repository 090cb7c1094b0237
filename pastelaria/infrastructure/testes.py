# pastelaria/infrastructure/testes.py

import json
import shutil
import tempfile
import threading
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from io import StringIO
from pathlib import Path
from unittest.mock import Mock, patch

import requests
from django.core.cache import cache
from django.core.management import call_command
from django.db import DatabaseError
from django.test import SimpleTestCase, TestCase, override_settings

from pastelaria.core.entities import ItemPedido, Pedido, Usuario, STATUS_ATIVO, STATUS_CONCLUIDO
from pastelaria.core.exceptions import (
    ConflitoError, PedidoNaoEncontradoError, PersistenciaError, ServicoIndisponivelError,
)
from pastelaria.core.use_cases import ListarPedidosUseCase, SessaoChat
from pastelaria.infrastructure.armazenamento_json import (
    ARQUIVO_JOURNAL, ArmazenamentoJSON, PedidoRepositoryJSON, ProdutoRepositoryJSON, UsuarioRepositoryJSON,
)
from pastelaria.infrastructure.cardapio import CARDAPIO_INICIAL
from pastelaria.infrastructure.gateways import GeminiGateway, SessoesChatCache
from pastelaria.infrastructure.instances import obter_gerador_texto, obter_repositorios
from pastelaria.infrastructure.mappers import PedidoMapper, data_para_iso
from pastelaria.infrastructure.models import Pedido as PedidoModel, Produto as ProdutoModel, Usuario as UsuarioModel
from pastelaria.infrastructure.repositories import (
    PedidoRepositoryDjango, ProdutoRepositoryDjango, UsuarioRepositoryDjango,
)

MOMENTO = datetime(2025, 3, 10, 15, 30, 0, tzinfo=timezone.utc)


def _pedido(pedido_id, usuario_id='user_1', minutos=0):
    return Pedido(
        id=pedido_id,
        usuario_id=usuario_id,
        usuario_nome='Ana',
        itens=[
            ItemPedido('1', 'Pastel de Carne', 2, Decimal('12.50')),
            ItemPedido('6', 'Coca-Cola', 1, Decimal('6.00')),
        ],
        total=Decimal('31.00'),
        criado_em=MOMENTO + timedelta(minutes=minutos),
    )


class TestMappers(SimpleTestCase):

    def test_data_iso_em_utc_com_milissegundos(self):
        self.assertEqual(data_para_iso(MOMENTO), '2025-03-10T15:30:00.000Z')

    def test_pedido_no_formato_do_quiosque(self):
        documento = PedidoMapper.to_dict(_pedido('order_1'))
        self.assertEqual(documento['userId'], 'user_1')
        self.assertEqual(documento['items'][0], {'productId': '1', 'name': 'Pastel de Carne', 'quantity': 2, 'price': 12.5})
        self.assertEqual(documento['total'], 31)
        self.assertEqual(documento['status'], STATUS_ATIVO)
        self.assertNotIn('completedAt', documento)

        pedido = PedidoMapper.from_dict(documento)
        self.assertEqual(pedido.criado_em, MOMENTO)
        self.assertEqual(pedido.itens[1].preco, Decimal('6'))


# ====================================================================
# REPOSITÓRIOS DJANGO (SQLite)
# ====================================================================

class TestRepositoriosDjango(TestCase):

    def setUp(self):
        self.produtos = ProdutoRepositoryDjango()
        self.usuarios = UsuarioRepositoryDjango()
        self.pedidos = PedidoRepositoryDjango()
        self.produtos.carregar_cardapio_inicial(CARDAPIO_INICIAL)
        self.ana = self.usuarios.criar(Usuario(id='user_1', nome='Ana', cpf='12345678900'))

    def test_cardapio_inicial_e_idempotente(self):
        self.assertEqual(ProdutoModel.objects.count(), len(CARDAPIO_INICIAL))
        self.assertEqual(self.produtos.carregar_cardapio_inicial(CARDAPIO_INICIAL), 0)

    def test_filtro_por_categoria(self):
        bebidas = self.produtos.listar_todos(categoria='Bebida')
        self.assertTrue(bebidas)
        self.assertTrue(all(p.categoria == 'Bebida' for p in bebidas))

    def test_cpf_duplicado_gera_conflito(self):
        with self.assertRaises(ConflitoError):
            self.usuarios.criar(Usuario(id='user_2', nome='Outra', cpf='12345678900'))

    def test_busca_por_cpf(self):
        self.assertEqual(self.usuarios.buscar_por_cpf('12345678900').id, 'user_1')
        self.assertIsNone(self.usuarios.buscar_por_cpf('99999999999'))

    def test_criar_pedido_atualiza_fila_historico_e_usuario(self):
        # ACT
        self.pedidos.criar_pedido(_pedido('order_1'))

        # ASSERT
        self.assertEqual([p.id for p in self.pedidos.listar_ativos()], ['order_1'])
        self.assertEqual([p.id for p in self.pedidos.listar_historico()], ['order_1'])
        usuario = self.usuarios.buscar_por_id('user_1')
        self.assertEqual([p.id for p in usuario.historico], ['order_1'])

    def test_pedido_de_cliente_nao_cadastrado(self):
        self.pedidos.criar_pedido(_pedido('order_2', usuario_id='guest'))
        self.assertEqual(self.pedidos.listar_historico(usuario_id='guest')[0].id, 'order_2')
        self.assertEqual(self.usuarios.buscar_por_id('user_1').historico, [])

    def test_concluir_pedido(self):
        self.pedidos.criar_pedido(_pedido('order_1'))
        concluido_em = MOMENTO + timedelta(minutes=10)

        pedido = self.pedidos.concluir_pedido('order_1', concluido_em)

        self.assertEqual(pedido.status, STATUS_CONCLUIDO)
        self.assertEqual(self.pedidos.listar_ativos(), [])
        historico = self.pedidos.listar_historico()
        self.assertEqual(len(historico), 1)
        self.assertEqual(historico[0].status, STATUS_CONCLUIDO)
        self.assertEqual(historico[0].concluido_em, concluido_em)
        snapshot = self.usuarios.buscar_por_id('user_1').historico[0]
        self.assertEqual(snapshot.status, STATUS_CONCLUIDO)
        self.assertEqual(snapshot.concluido_em, concluido_em)

    def test_concluir_pedido_inexistente_ou_ja_concluido(self):
        with self.assertRaises(PedidoNaoEncontradoError):
            self.pedidos.concluir_pedido('order_x', MOMENTO)
        self.pedidos.criar_pedido(_pedido('order_1'))
        self.pedidos.concluir_pedido('order_1', MOMENTO)
        with self.assertRaises(PedidoNaoEncontradoError):
            self.pedidos.concluir_pedido('order_1', MOMENTO)

    def test_concluir_pedido_inexistente_nao_altera_nada(self):
        self.pedidos.criar_pedido(_pedido('order_1'))
        pedidos_antes = list(PedidoModel.objects.order_by('id').values())
        usuarios_antes = list(UsuarioModel.objects.order_by('id').values())

        with self.assertRaises(PedidoNaoEncontradoError):
            self.pedidos.concluir_pedido('order_x', MOMENTO)

        self.assertEqual(list(PedidoModel.objects.order_by('id').values()), pedidos_antes)
        self.assertEqual(list(UsuarioModel.objects.order_by('id').values()), usuarios_antes)

    def test_historico_do_usuario_devolve_o_pedido_gravado(self):
        enviado = _pedido('order_1')
        self.pedidos.criar_pedido(_pedido('order_0', usuario_id='guest'))
        self.pedidos.criar_pedido(enviado)

        historico = self.pedidos.listar_historico(usuario_id='user_1')

        self.assertEqual(len(historico), 1)
        self.assertEqual(historico[0].itens, enviado.itens)
        self.assertEqual(historico[0].total, enviado.total)
        self.assertEqual(self.usuarios.buscar_por_id('user_1').historico[0].itens, enviado.itens)

    def test_id_repetido_recebe_sufixo(self):
        """
        Cenário: dois pedidos com o mesmo id base (mesmo milissegundo).
        """
        primeiro = self.pedidos.criar_pedido(_pedido('order_1'))
        segundo = self.pedidos.criar_pedido(_pedido('order_1'))
        terceiro = self.pedidos.criar_pedido(_pedido('order_1'))

        self.assertEqual([primeiro.id, segundo.id, terceiro.id], ['order_1', 'order_1_1', 'order_1_2'])
        self.assertEqual(PedidoModel.objects.count(), 3)
        self.assertEqual(
            [p.id for p in self.usuarios.buscar_por_id('user_1').historico], ['order_1', 'order_1_1', 'order_1_2']
        )

    def test_erro_de_banco_vira_persistencia_error(self):
        with patch.object(PedidoModel, 'save', side_effect=DatabaseError('disco cheio')):
            with self.assertRaises(PersistenciaError) as ctx:
                self.pedidos.criar_pedido(_pedido('order_1'))
        self.assertIn('disco cheio', ctx.exception.message)
        self.assertEqual(PedidoModel.objects.count(), 0)
        self.assertEqual(self.usuarios.buscar_por_id('user_1').historico, [])


# ====================================================================
# ARMAZENAMENTO JSON
# ====================================================================

class TestArmazenamentoJSON(SimpleTestCase):

    def setUp(self):
        self.diretorio = Path(tempfile.mkdtemp())
        self.addCleanup(shutil.rmtree, self.diretorio, ignore_errors=True)
        self.armazenamento = ArmazenamentoJSON(self.diretorio)
        self.produtos = ProdutoRepositoryJSON(self.armazenamento)
        self.usuarios = UsuarioRepositoryJSON(self.armazenamento)
        self.pedidos = PedidoRepositoryJSON(self.armazenamento)

    def _ler(self, nome):
        return json.loads((self.diretorio / nome).read_text(encoding='utf-8'))

    def test_arquivo_ausente_vira_lista_vazia(self):
        self.assertEqual(self.armazenamento.carregar_usuarios(), [])

    def test_arquivo_corrompido_vira_lista_vazia(self):
        (self.diretorio / 'orders.json').write_text('{ isso não é json', encoding='utf-8')
        (self.diretorio / 'users.json').write_text('{"id": 1}', encoding='utf-8')
        with self.assertLogs('pastelaria.infrastructure.armazenamento_json', level='WARNING'):
            self.assertEqual(self.armazenamento.carregar_pedidos(), [])
            self.assertEqual(self.armazenamento.carregar_usuarios(), [])

    def test_grava_formatado_e_sem_escapar_acentos(self):
        self.armazenamento.salvar_cardapio([{'id': '1', 'name': 'Pastel de Palmito'}])
        conteudo = (self.diretorio / 'menu.json').read_text(encoding='utf-8')
        self.assertIn('\n  {', conteudo)
        self.armazenamento.salvar_usuarios([{'id': 'u', 'name': 'João'}])
        self.assertIn('João', (self.diretorio / 'users.json').read_text(encoding='utf-8'))

    def test_transacao_grava_todas_as_colecoes_juntas(self):
        with self.armazenamento.transacao():
            self.armazenamento.salvar_pedidos([{'id': 'a'}])
            self.armazenamento.salvar_historico([{'id': 'a'}])
            # Leitura dentro da transação enxerga o que foi salvo
            self.assertEqual(self.armazenamento.carregar_pedidos(), [{'id': 'a'}])
            self.assertFalse((self.diretorio / 'orders.json').exists())
        self.assertEqual(self._ler('orders.json'), [{'id': 'a'}])
        self.assertEqual(self._ler('user_orders.json'), [{'id': 'a'}])
        self.assertFalse((self.diretorio / ARQUIVO_JOURNAL).exists())

    def test_excecao_descarta_a_transacao(self):
        with self.assertRaises(RuntimeError):
            with self.armazenamento.transacao():
                self.armazenamento.salvar_pedidos([{'id': 'a'}])
                raise RuntimeError('falhou')
        self.assertFalse((self.diretorio / 'orders.json').exists())

    def test_journal_pendente_e_reaplicado(self):
        diretorio = Path(tempfile.mkdtemp())
        self.addCleanup(shutil.rmtree, diretorio, ignore_errors=True)
        (diretorio / 'orders.json').write_text('[]', encoding='utf-8')
        (diretorio / ARQUIVO_JOURNAL).write_text(
            json.dumps({'orders.json': [{'id': 'x'}], 'user_orders.json': [{'id': 'x'}]}), encoding='utf-8'
        )

        armazenamento = ArmazenamentoJSON(diretorio)

        self.assertEqual(armazenamento.carregar_pedidos(), [{'id': 'x'}])
        self.assertEqual(armazenamento.carregar_historico(), [{'id': 'x'}])
        self.assertFalse((diretorio / ARQUIVO_JOURNAL).exists())

    def test_falha_de_escrita_vira_persistencia_error(self):
        with patch('pastelaria.infrastructure.armazenamento_json.os.replace', side_effect=OSError('disco cheio')):
            with self.assertRaises(PersistenciaError) as ctx:
                self.armazenamento.salvar_pedidos([{'id': 'a'}])
        self.assertIn('disco cheio', ctx.exception.message)

    def test_fluxo_completo_do_pedido(self):
        self.usuarios.criar(Usuario(id='user_1', nome='Ana', cpf='12345678900'))
        self.pedidos.criar_pedido(_pedido('order_1'))

        self.assertEqual(self._ler('orders.json')[0]['id'], 'order_1')
        self.assertEqual(self._ler('user_orders.json')[0]['total'], 31)
        self.assertEqual(self._ler('users.json')[0]['historico'][0]['id'], 'order_1')

        self.pedidos.concluir_pedido('order_1', MOMENTO)

        self.assertEqual(self._ler('orders.json'), [])
        registro = self._ler('user_orders.json')[0]
        self.assertEqual(registro['status'], STATUS_CONCLUIDO)
        self.assertEqual(registro['completedAt'], '2025-03-10T15:30:00.000Z')
        self.assertEqual(self._ler('users.json')[0]['historico'][0]['status'], STATUS_CONCLUIDO)

    def test_concluir_pedido_inexistente_nao_grava(self):
        with self.assertRaises(PedidoNaoEncontradoError):
            self.pedidos.concluir_pedido('order_x', MOMENTO)
        self.assertFalse((self.diretorio / 'orders.json').exists())

    def test_concluir_pedido_inexistente_nao_altera_arquivos(self):
        self.usuarios.criar(Usuario(id='user_1', nome='Ana', cpf='12345678900'))
        self.pedidos.criar_pedido(_pedido('order_1'))
        self.pedidos.criar_pedido(_pedido('order_2', minutos=1))
        self.pedidos.concluir_pedido('order_1', MOMENTO)
        arquivos = ('orders.json', 'user_orders.json', 'users.json')
        antes = {nome: (self.diretorio / nome).read_bytes() for nome in arquivos}

        with self.assertRaises(PedidoNaoEncontradoError):
            self.pedidos.concluir_pedido('order_x', MOMENTO)
        with self.assertRaises(PedidoNaoEncontradoError):
            # Já concluído: não está mais na fila
            self.pedidos.concluir_pedido('order_1', MOMENTO)

        self.assertEqual({nome: (self.diretorio / nome).read_bytes() for nome in arquivos}, antes)

    def test_historico_do_usuario_devolve_o_pedido_gravado(self):
        enviado = _pedido('order_1')
        self.pedidos.criar_pedido(_pedido('order_0', usuario_id='guest'))
        self.pedidos.criar_pedido(enviado)

        historico = self.pedidos.listar_historico(usuario_id='user_1')

        self.assertEqual(len(historico), 1)
        self.assertEqual(historico[0].itens, enviado.itens)
        self.assertEqual(historico[0].total, enviado.total)

    def test_pedidos_simultaneos_recebem_ids_distintos(self):
        """
        Cenário: 8 checkouts no mesmo milissegundo, em threads diferentes.
        """
        ids = []

        def enviar():
            ids.append(self.pedidos.criar_pedido(_pedido('order_1735689600000')).id)

        threads = [threading.Thread(target=enviar) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(len(set(ids)), 8)
        self.assertEqual(sorted(d['id'] for d in self._ler('orders.json')), sorted(ids))
        self.assertEqual(sorted(d['id'] for d in self._ler('user_orders.json')), sorted(ids))

    def test_pedido_sem_timestamp_valido_e_ignorado(self):
        documento = PedidoMapper.to_dict(_pedido('order_1'))
        sem_data = {chave: valor for chave, valor in documento.items() if chave != 'timestamp'}
        sem_data['id'] = 'order_2'
        data_invalida = dict(documento, id='order_3', timestamp='ontem')
        (self.diretorio / 'orders.json').write_text(
            json.dumps([documento, sem_data, data_invalida]), encoding='utf-8'
        )

        with self.assertLogs('pastelaria.infrastructure.armazenamento_json', level='WARNING'):
            ativos = ListarPedidosUseCase(self.pedidos).ativos()

        self.assertEqual([p.id for p in ativos], ['order_1'])

    def test_snapshot_malformado_no_usuario_e_ignorado(self):
        documento = PedidoMapper.to_dict(_pedido('order_1'))
        usuario = {'id': 'user_1', 'name': 'Ana', 'cpf': '12345678900', 'historico': [documento, {'id': 'order_2'}]}
        (self.diretorio / 'users.json').write_text(json.dumps([usuario]), encoding='utf-8')

        with self.assertLogs('pastelaria.infrastructure.mappers', level='WARNING'):
            ana = self.usuarios.buscar_por_id('user_1')

        self.assertEqual([p.id for p in ana.historico], ['order_1'])

    def test_journal_e_reaplicado_depois_de_uma_falha(self):
        diretorio = Path(tempfile.mkdtemp())
        self.addCleanup(shutil.rmtree, diretorio, ignore_errors=True)
        (diretorio / ARQUIVO_JOURNAL).write_text(json.dumps({'orders.json': [{'id': 'x'}]}), encoding='utf-8')
        armazenamento = ArmazenamentoJSON(diretorio)

        with patch.object(ArmazenamentoJSON, '_escrever_atomico', side_effect=OSError('disco cheio')):
            with self.assertRaises(PersistenciaError):
                armazenamento.carregar_pedidos()

        self.assertEqual(armazenamento.carregar_pedidos(), [{'id': 'x'}])
        self.assertFalse((diretorio / ARQUIVO_JOURNAL).exists())

    def test_cpf_duplicado(self):
        self.usuarios.criar(Usuario(id='user_1', nome='Ana', cpf='12345678900'))
        with self.assertRaises(ConflitoError):
            self.usuarios.criar(Usuario(id='user_2', nome='Bia', cpf='12345678900'))
        self.assertEqual(len(self._ler('users.json')), 1)

    def test_cardapio_inicial(self):
        self.assertEqual(self.produtos.carregar_cardapio_inicial(CARDAPIO_INICIAL), len(CARDAPIO_INICIAL))
        self.assertEqual(self.produtos.carregar_cardapio_inicial(CARDAPIO_INICIAL), 0)
        self.assertEqual(self.produtos.buscar_por_id('1').preco, Decimal('12.5'))


# ====================================================================
# SELEÇÃO DE BACKEND E COMANDO DE CARGA
# ====================================================================

class TestInstancias(SimpleTestCase):

    def test_backend_json(self):
        diretorio = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, diretorio, ignore_errors=True)
        with override_settings(PASTELARIA_ARMAZENAMENTO='json', PASTELARIA_DATA_DIR=diretorio):
            repos = obter_repositorios()
        self.assertIsInstance(repos.pedidos, PedidoRepositoryJSON)

    def test_backend_sqlite(self):
        with override_settings(PASTELARIA_ARMAZENAMENTO='sqlite'):
            self.assertIsInstance(obter_repositorios().pedidos, PedidoRepositoryDjango)

    @override_settings(GEMINI_API_KEY='')
    def test_gateway_reaproveitado_entre_requisicoes(self):
        gateway = obter_gerador_texto()
        with self.assertNoLogs('pastelaria.infrastructure.gateways', level='WARNING'):
            self.assertIs(obter_gerador_texto(), gateway)
        with override_settings(GEMINI_API_KEY='outra-chave'):
            self.assertEqual(obter_gerador_texto().api_key, 'outra-chave')


class TestLoadInitialData(TestCase):

    def test_carrega_uma_vez(self):
        saida = StringIO()
        call_command('load_initial_data', stdout=saida)
        call_command('load_initial_data', stdout=saida)
        self.assertEqual(ProdutoModel.objects.count(), len(CARDAPIO_INICIAL))
        self.assertIn('nada a fazer', saida.getvalue())


# ====================================================================
# GATEWAYS
# ====================================================================

class TestGeminiGateway(SimpleTestCase):

    def setUp(self):
        self.gateway = GeminiGateway(api_key='chave', modelo='gemini-teste', api_url='https://api.teste/v1beta', timeout=5)

    def _resposta(self, data, status_code=200):
        resposta = Mock(status_code=status_code)
        resposta.json.return_value = data
        if status_code >= 400:
            resposta.raise_for_status.side_effect = requests.exceptions.HTTPError(f'{status_code}')
        return resposta

    @patch('requests.post')
    def test_envia_prompt_historico_e_instrucao(self, mock_post):
        mock_post.return_value = self._resposta({'candidates': [{'content': {'parts': [{'text': 'Olá!'}]}}]})

        texto = self.gateway.gerar_texto(
            'Tem caldo de cana?',
            instrucao_sistema='Seja breve.',
            historico=[{'papel': 'user', 'texto': 'Oi'}, {'papel': 'model', 'texto': 'Olá'}],
        )

        self.assertEqual(texto, 'Olá!')
        args, kwargs = mock_post.call_args
        self.assertEqual(args[0], 'https://api.teste/v1beta/models/gemini-teste:generateContent')
        self.assertEqual(kwargs['headers']['x-goog-api-key'], 'chave')
        self.assertEqual(kwargs['timeout'], 5)
        payload = kwargs['json']
        self.assertEqual([c['role'] for c in payload['contents']], ['user', 'model', 'user'])
        self.assertEqual(payload['contents'][-1]['parts'][0]['text'], 'Tem caldo de cana?')
        self.assertEqual(payload['systemInstruction']['parts'][0]['text'], 'Seja breve.')

    @patch('requests.post')
    def test_erro_http_vira_servico_indisponivel(self, mock_post):
        mock_post.return_value = self._resposta({}, status_code=500)
        with self.assertRaises(ServicoIndisponivelError):
            self.gateway.gerar_texto('Oi')

    @patch('requests.post')
    def test_falha_de_rede_vira_servico_indisponivel(self, mock_post):
        mock_post.side_effect = requests.exceptions.ConnectionError('sem rede')
        with self.assertRaises(ServicoIndisponivelError):
            self.gateway.gerar_texto('Oi')

    @patch('requests.post')
    def test_resposta_sem_texto(self, mock_post):
        mock_post.return_value = self._resposta({'candidates': []})
        with self.assertRaises(ServicoIndisponivelError):
            self.gateway.gerar_texto('Oi')

    @patch('requests.post')
    def test_sem_chave_fica_desabilitado(self, mock_post):
        gateway = GeminiGateway(api_key='', modelo='m', api_url='https://api.teste', timeout=1)
        self.assertFalse(gateway.disponivel)
        with self.assertRaises(ServicoIndisponivelError):
            gateway.gerar_texto('Oi')
        mock_post.assert_not_called()


class TestSessoesChatCache(SimpleTestCase):

    def setUp(self):
        cache.clear()

    def test_salva_e_recupera_sessao(self):
        sessoes = SessoesChatCache(ttl=60)
        sessao = SessaoChat(id='s1')
        sessao.registrar('Oi', 'Olá!')
        sessoes.salvar(sessao)

        recuperada = sessoes.obter('s1')

        self.assertEqual(recuperada.historico, sessao.historico)
        self.assertIsNone(sessoes.obter('outra'))

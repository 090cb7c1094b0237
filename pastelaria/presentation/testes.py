# pastelaria/presentation/testes.py

import shutil
import tempfile
from unittest.mock import Mock, patch

from django.core.cache import cache
from django.test import override_settings
from rest_framework import status
from rest_framework.test import APITestCase

from pastelaria.core.exceptions import PersistenciaError
from pastelaria.core.use_cases import SUGESTAO_PADRAO
from pastelaria.infrastructure.cardapio import CARDAPIO_INICIAL
from pastelaria.infrastructure.instances import obter_repositorios

PEDIDO_EXEMPLO = {
    'userId': 'user_1',
    'userName': 'Ana',
    'items': [
        {'productId': '1', 'name': 'Pastel de Carne', 'quantity': 2, 'price': 12.5},
        {'productId': '6', 'name': 'Coca-Cola', 'quantity': 1, 'price': 6},
    ],
}


def _resposta_gemini(texto):
    resposta = Mock(status_code=200)
    resposta.json.return_value = {'candidates': [{'content': {'parts': [{'text': texto}]}}]}
    return resposta


class FluxoDoQuiosqueMixin:
    """Cenários da API executados contra o backend configurado."""

    def setUp(self):
        cache.clear()
        obter_repositorios().produtos.carregar_cardapio_inicial(CARDAPIO_INICIAL)

    def _cadastrar(self, cpf='123.456.789-00', nome='Ana', **extra):
        return self.client.post('/api/users', {'name': nome, 'cpf': cpf, 'email': 'ana@teste.com', **extra}, format='json')

    # ----------------------------------------------------------------
    # Cardápio e usuários
    # ----------------------------------------------------------------

    def test_health(self):
        response = self.client.get('/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn(b'rodando', response.content)

    def test_cardapio(self):
        response = self.client.get('/api/menu')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.json()), len(CARDAPIO_INICIAL))
        carne = next(p for p in response.json() if p['id'] == '1')
        self.assertEqual(carne['name'], 'Pastel de Carne')
        self.assertEqual(carne['price'], 12.5)
        self.assertEqual(set(carne), {'id', 'name', 'description', 'price', 'category', 'videoUrl', 'popular'})

    def test_cardapio_por_categoria(self):
        response = self.client.get('/api/menu', {'category': 'Doce'})
        self.assertTrue(response.json())
        self.assertTrue(all(p['category'] == 'Doce' for p in response.json()))

    def test_cadastro_de_usuario(self):
        # ACT
        response = self._cadastrar()

        # ASSERT
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        usuario = response.json()
        self.assertEqual(usuario['cpf'], '12345678900')
        self.assertEqual(usuario['historico'], [])
        self.assertEqual(usuario['pontos'], 0)
        self.assertTrue(usuario['id'].startswith('user_'))
        self.assertEqual(len(self.client.get('/api/users').json()), 1)

    def test_cadastro_com_cpf_duplicado(self):
        self._cadastrar()
        response = self._cadastrar(cpf='12345678900', nome='Outra')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertIn('error', response.json())

    def test_cadastro_sem_cpf(self):
        response = self.client.post('/api/users', {'name': 'Ana'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.json())

    def test_cadastro_com_cpf_invalido(self):
        response = self._cadastrar(cpf='123')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_busca_por_cpf(self):
        self._cadastrar()
        response = self.client.get('/api/users/cpf/123.456.789-00')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()['name'], 'Ana')

        response = self.client.get('/api/users/cpf/00000000000')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertIn('error', response.json())

    # ----------------------------------------------------------------
    # Pedidos
    # ----------------------------------------------------------------

    def test_fluxo_completo_do_pedido(self):
        """
        Cenário: checkout de 2x Pastel de Carne + 1x Coca-Cola e a cozinha marca como pronto.
        """
        self._cadastrar(id='user_1')

        # ACT 1: checkout
        response = self.client.post('/api/orders', PEDIDO_EXEMPLO, format='json')

        # ASSERT 1
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        pedido = response.json()
        self.assertEqual(pedido['total'], 31.0)
        self.assertEqual(pedido['status'], 'active')
        self.assertTrue(pedido['id'].startswith('order_'))
        self.assertTrue(pedido['timestamp'].endswith('Z'))
        self.assertNotIn('completedAt', pedido)

        fila = self.client.get('/api/orders').json()
        self.assertEqual([p['id'] for p in fila], [pedido['id']])
        historico_usuario = self.client.get('/api/users/user_1/historico').json()
        self.assertEqual([p['id'] for p in historico_usuario], [pedido['id']])

        # ACT 2: cozinha conclui
        response = self.client.delete(f"/api/orders/{pedido['id']}")

        # ASSERT 2
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json(), {'ok': True})
        self.assertEqual(self.client.get('/api/orders').json(), [])

        historico = self.client.get('/api/user-orders', {'userId': 'user_1'}).json()
        self.assertEqual(len(historico), 1)
        self.assertEqual(historico[0]['status'], 'completed')
        self.assertIn('completedAt', historico[0])
        snapshot = self.client.get('/api/users/user_1/historico').json()[0]
        self.assertEqual(snapshot['status'], 'completed')

    def test_fila_em_ordem_de_chegada_e_historico_invertido(self):
        ids = [self.client.post('/api/orders', PEDIDO_EXEMPLO, format='json').json()['id'] for _ in range(3)]
        self.assertEqual(len(set(ids)), 3)
        self.assertEqual([p['id'] for p in self.client.get('/api/orders').json()], ids)
        self.assertEqual([p['id'] for p in self.client.get('/api/user-orders').json()], ids[::-1])

    def test_total_numerico_do_cliente_e_aceito(self):
        response = self.client.post('/api/orders', dict(PEDIDO_EXEMPLO, total=29.9), format='json')
        self.assertEqual(response.json()['total'], 29.9)

    def test_total_nao_numerico_e_recalculado(self):
        response = self.client.post('/api/orders', dict(PEDIDO_EXEMPLO, total='trinta'), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.json()['total'], 31.0)

    @override_settings(PASTELARIA_CONFIAR_TOTAL_CLIENTE=False)
    def test_total_recalculado_quando_nao_confia(self):
        response = self.client.post('/api/orders', dict(PEDIDO_EXEMPLO, total=1), format='json')
        self.assertEqual(response.json()['total'], 31.0)

    def test_pedido_sem_itens(self):
        response = self.client.post('/api/orders', {'userId': 'user_1', 'items': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('details', response.json())
        self.assertEqual(self.client.get('/api/user-orders').json(), [])

    def test_pedido_sem_usuario(self):
        response = self.client.post('/api/orders', {'items': PEDIDO_EXEMPLO['items']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_pedido_com_quantidade_zero(self):
        itens = [dict(PEDIDO_EXEMPLO['items'][0], quantity=0)]
        response = self.client.post('/api/orders', {'userId': 'user_1', 'items': itens}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_concluir_pedido_inexistente(self):
        response = self.client.delete('/api/orders/order_inexistente')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertIn('error', response.json())

    def test_concluir_pedido_inexistente_nao_altera_nada(self):
        self._cadastrar(id='user_1')
        primeiro = self.client.post('/api/orders', PEDIDO_EXEMPLO, format='json').json()
        self.client.post('/api/orders', PEDIDO_EXEMPLO, format='json')
        self.client.delete(f"/api/orders/{primeiro['id']}")

        def estado():
            return [self.client.get(rota).json() for rota in ('/api/orders', '/api/user-orders', '/api/users')]

        antes = estado()
        self.assertEqual(self.client.delete('/api/orders/order_inexistente').status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(self.client.delete(f"/api/orders/{primeiro['id']}").status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(estado(), antes)

    def test_historico_devolve_os_itens_e_o_total_enviados(self):
        self._cadastrar(id='user_1')
        self.client.post('/api/orders', dict(PEDIDO_EXEMPLO, userId='guest'), format='json')
        enviado = self.client.post('/api/orders', PEDIDO_EXEMPLO, format='json').json()

        historico = self.client.get('/api/user-orders', {'userId': 'user_1'}).json()

        self.assertEqual(len(historico), 1)
        self.assertEqual(historico[0]['id'], enviado['id'])
        self.assertEqual(historico[0]['items'], PEDIDO_EXEMPLO['items'])
        self.assertEqual(historico[0]['total'], 31.0)

    def test_total_fora_do_limite_nao_trava_a_fila(self):
        """
        Cenário: totais que não cabem na coluna monetária são recusados e a fila segue legível.
        """
        response = self.client.post('/api/orders', dict(PEDIDO_EXEMPLO, total=12345678901), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('total', response.json()['details'])

        caro = {'productId': '1', 'name': 'Pastel de Ouro', 'quantity': 1000, 'price': 99999999.99}
        response = self.client.post('/api/orders', {'userId': 'user_1', 'items': [caro]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post(
            '/api/orders', {'userId': 'user_1', 'items': [dict(caro, price=123456789012)]}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        self.assertEqual(self.client.get('/api/orders').json(), [])
        response = self.client.get('/api/user-orders')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json(), [])

    # ----------------------------------------------------------------
    # IA
    # ----------------------------------------------------------------

    @override_settings(GEMINI_API_KEY='')
    def test_ia_desabilitada(self):
        response = self.client.post('/api/ai/suggestion', {'prompt': 'Oi'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        response = self.client.post('/api/ai/chat', {'message': 'Oi'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)

        response = self.client.post('/api/ai/menu-suggestion', {'userName': 'Ana'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json(), {'text': SUGESTAO_PADRAO, 'category': 'boas_vindas'})

        response = self.client.post(
            '/api/ai/cart-suggestion', {'userName': 'Ana', 'cart': [{'productId': '1', 'quantity': 1}]}, format='json'
        )
        self.assertTrue(response.json()['text'].startswith('Que tal acompanhar com uma bebida, Ana?'))

        response = self.client.post('/api/ai/chef-message', {'userName': 'Ana'}, format='json')
        self.assertTrue(response.json()['text'].startswith('Olá Ana!'))

    @override_settings(GEMINI_API_KEY='chave-teste')
    @patch('requests.post')
    def test_chat_mantem_a_sessao(self, mock_post):
        mock_post.side_effect = [_resposta_gemini('Abrimos às 9h.'), _resposta_gemini('Sim, temos!')]

        primeira = self.client.post('/api/ai/chat', {'message': 'Que horas abre?'}, format='json').json()
        segunda = self.client.post(
            '/api/ai/chat', {'message': 'Tem pastel de queijo?', 'sessionId': primeira['sessionId']}, format='json'
        ).json()

        self.assertEqual(primeira['text'], 'Abrimos às 9h.')
        self.assertEqual(segunda, {'text': 'Sim, temos!', 'sessionId': primeira['sessionId']})
        contents = mock_post.call_args[1]['json']['contents']
        self.assertEqual([c['role'] for c in contents], ['user', 'model', 'user'])

    @override_settings(GEMINI_API_KEY='chave-teste')
    @patch('requests.post')
    def test_sugestao_direta(self, mock_post):
        mock_post.return_value = _resposta_gemini('Experimente o pastel de queijo!')
        response = self.client.post('/api/ai/suggestion', {'prompt': 'Sugira algo'}, format='json')
        self.assertEqual(response.json(), {'text': 'Experimente o pastel de queijo!'})

    def test_chat_sem_mensagem(self):
        response = self.client.post('/api/ai/chat', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class TestApiSQLite(FluxoDoQuiosqueMixin, APITestCase):

    @patch('pastelaria.infrastructure.repositories.PedidoRepositoryDjango.criar_pedido')
    def test_falha_ao_gravar_pedido(self, mock_criar):
        mock_criar.side_effect = PersistenciaError('Falha ao salvar o pedido: disco cheio')
        response = self.client.post('/api/orders', PEDIDO_EXEMPLO, format='json')
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.json(), {'error': 'Falha ao salvar o pedido: disco cheio'})

    def test_schema_openapi(self):
        response = self.client.get('/api/schema/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_preflight_do_quiosque_em_outra_origem(self):
        response = self.client.options(
            '/api/orders',
            HTTP_ORIGIN='http://localhost:5173',
            HTTP_ACCESS_CONTROL_REQUEST_METHOD='POST',
            HTTP_ACCESS_CONTROL_REQUEST_HEADERS='content-type',
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Access-Control-Allow-Origin'], '*')
        self.assertIn('POST', response['Access-Control-Allow-Methods'])

        response = self.client.get('/api/menu', HTTP_ORIGIN='http://localhost:5173')
        self.assertEqual(response['Access-Control-Allow-Origin'], '*')


class TestApiJSON(FluxoDoQuiosqueMixin, APITestCase):
    """Os mesmos cenários com o armazenamento em arquivos JSON."""

    def setUp(self):
        diretorio = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, diretorio, ignore_errors=True)
        configuracao = override_settings(PASTELARIA_ARMAZENAMENTO='json', PASTELARIA_DATA_DIR=diretorio)
        configuracao.enable()
        self.addCleanup(configuracao.disable)
        super().setUp()

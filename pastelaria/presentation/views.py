"""
Views da API REST do quiosque.

As views apenas validam o corpo da requisição, chamam o caso de uso e serializam
o resultado. Exceções do Core são traduzidas em tratar_excecao (exception_handler.py).
"""
from django.http import HttpResponse
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from pastelaria.core.dependency_injection import (
    get_chat_use_case,
    get_criar_pedido_use_case,
    get_finalizar_pedido_use_case,
    get_gerenciar_usuarios_use_case,
    get_listar_cardapio_use_case,
    get_listar_pedidos_use_case,
    get_sugestoes_use_case,
)
from .serializers import (
    CadastroUsuarioSerializer,
    ChatRespostaSerializer,
    ChatSerializer,
    CriarPedidoSerializer,
    MensagemChefSerializer,
    PedidoSerializer,
    ProdutoSerializer,
    SugestaoCardapioRespostaSerializer,
    SugestaoCardapioSerializer,
    TextoLivreSerializer,
    TextoSerializer,
    UsuarioSerializer,
)


def health(request):
    """Verificação simples de que o backend está no ar."""
    return HttpResponse("Pastelaria backend rodando!", content_type="text/plain; charset=utf-8")


# ====================================================================
# 1. CARDÁPIO E USUÁRIOS
# ====================================================================

class CardapioAPIView(APIView):

    @extend_schema(
        parameters=[OpenApiParameter('category', str, description="Pastel, Bebida ou Doce")],
        responses=ProdutoSerializer(many=True),
    )
    def get(self, request):
        produtos = get_listar_cardapio_use_case().executar(request.query_params.get('category'))
        return Response(ProdutoSerializer(produtos, many=True).data)


class UsuariosAPIView(APIView):
    """Lista e cadastra clientes."""

    @extend_schema(responses=UsuarioSerializer(many=True))
    def get(self, request):
        usuarios = get_gerenciar_usuarios_use_case().listar_todos()
        return Response(UsuarioSerializer(usuarios, many=True).data)

    @extend_schema(
        request=CadastroUsuarioSerializer,
        responses={
            201: UsuarioSerializer,
            400: OpenApiResponse(description="CPF ausente ou inválido"),
            409: OpenApiResponse(description="CPF já cadastrado"),
        },
    )
    def post(self, request):
        serializer = CadastroUsuarioSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dados = serializer.validated_data

        usuario = get_gerenciar_usuarios_use_case().cadastrar(
            nome=dados.get('name'),
            cpf=dados.get('cpf'),
            email=dados.get('email'),
            usuario_id=dados.get('id') or None,
        )
        return Response(UsuarioSerializer(usuario).data, status=status.HTTP_201_CREATED)


class UsuarioPorCpfAPIView(APIView):

    @extend_schema(responses={200: UsuarioSerializer, 404: OpenApiResponse(description="CPF não cadastrado")})
    def get(self, request, cpf):
        usuario = get_gerenciar_usuarios_use_case().buscar_por_cpf(cpf)
        return Response(UsuarioSerializer(usuario).data)


class HistoricoUsuarioAPIView(APIView):

    @extend_schema(responses={200: PedidoSerializer(many=True), 404: OpenApiResponse(description="Usuário não encontrado")})
    def get(self, request, usuario_id):
        historico = get_gerenciar_usuarios_use_case().historico_do_usuario(usuario_id)
        return Response(PedidoSerializer(historico, many=True).data)


# ====================================================================
# 2. PEDIDOS (Checkout e Cozinha)
# ====================================================================

class PedidosAPIView(APIView):
    """Fila ativa da cozinha (GET) e checkout (POST)."""

    @extend_schema(responses=PedidoSerializer(many=True))
    def get(self, request):
        pedidos = get_listar_pedidos_use_case().ativos()
        return Response(PedidoSerializer(pedidos, many=True).data)

    @extend_schema(
        request=CriarPedidoSerializer,
        responses={
            201: PedidoSerializer,
            400: OpenApiResponse(description="userId ou itens inválidos"),
            500: OpenApiResponse(description="Falha ao gravar o pedido"),
        },
    )
    def post(self, request):
        serializer = CriarPedidoSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        pedido = get_criar_pedido_use_case().executar(
            usuario_id=serializer.validated_data['userId'],
            itens=serializer.itens_pedido(),
            usuario_nome=serializer.validated_data.get('userName'),
            total=serializer.validated_data.get('total'),
        )
        return Response(PedidoSerializer(pedido).data, status=status.HTTP_201_CREATED)


class PedidoDetalheAPIView(APIView):

    @extend_schema(
        summary="Marca o pedido como pronto (sai da fila ativa)",
        responses={200: OpenApiResponse(description='{"ok": true}'), 404: OpenApiResponse(description="Pedido não está na fila")},
    )
    def delete(self, request, pedido_id):
        get_finalizar_pedido_use_case().executar(pedido_id)
        return Response({'ok': True})


class HistoricoPedidosAPIView(APIView):

    @extend_schema(
        parameters=[OpenApiParameter('userId', str, description="Filtra pelo cliente")],
        responses=PedidoSerializer(many=True),
    )
    def get(self, request):
        pedidos = get_listar_pedidos_use_case().historico(request.query_params.get('userId'))
        return Response(PedidoSerializer(pedidos, many=True).data)


# ====================================================================
# 3. SUGESTÕES E CHAT (IA)
# ====================================================================

class TextoLivreAPIView(APIView):

    @extend_schema(request=TextoLivreSerializer, responses={200: TextoSerializer, 503: OpenApiResponse(description="IA indisponível")})
    def post(self, request):
        serializer = TextoLivreSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        texto = get_sugestoes_use_case().texto_livre(serializer.validated_data['prompt'])
        return Response({'text': texto})


class ChatAPIView(APIView):

    @extend_schema(request=ChatSerializer, responses={200: ChatRespostaSerializer, 503: OpenApiResponse(description="IA indisponível")})
    def post(self, request):
        serializer = ChatSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        texto, sessao_id = get_chat_use_case().enviar_mensagem(
            serializer.validated_data['message'],
            serializer.validated_data.get('sessionId') or None,
        )
        return Response({'text': texto, 'sessionId': sessao_id})


class SugestaoCardapioAPIView(APIView):

    @extend_schema(request=SugestaoCardapioSerializer, responses=SugestaoCardapioRespostaSerializer)
    def post(self, request):
        serializer = SugestaoCardapioSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        texto, categoria = get_sugestoes_use_case().sugestao_cardapio(
            usuario_id=serializer.validated_data.get('userId') or None,
            nome_cliente=serializer.validated_data.get('userName') or None,
            itens_carrinho=serializer.itens_carrinho(),
        )
        return Response({'text': texto, 'category': categoria})


class SugestaoCarrinhoAPIView(APIView):

    @extend_schema(request=SugestaoCardapioSerializer, responses=TextoSerializer)
    def post(self, request):
        serializer = SugestaoCardapioSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        texto = get_sugestoes_use_case().sugestao_carrinho(
            nome_cliente=serializer.validated_data.get('userName') or None,
            itens_carrinho=serializer.itens_carrinho(),
            usuario_id=serializer.validated_data.get('userId') or None,
        )
        return Response({'text': texto})


class MensagemChefAPIView(APIView):

    @extend_schema(request=MensagemChefSerializer, responses=TextoSerializer)
    def post(self, request):
        serializer = MensagemChefSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        texto = get_sugestoes_use_case().mensagem_do_chef(
            usuario_id=serializer.validated_data.get('userId') or None,
            nome_cliente=serializer.validated_data.get('userName') or None,
        )
        return Response({'text': texto})

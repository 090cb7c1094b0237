"""
Tradução das exceções do Core (e das do próprio DRF) para respostas HTTP.

Toda resposta de erro tem o formato {"error": "<mensagem>"}; erros de validação
do DRF incluem também "details" com os erros por campo.
"""
import logging

from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

from pastelaria.core.exceptions import (
    BaseErroCore,
    ConflitoError,
    DadosInvalidosError,
    ItemNaoEncontradoError,
    PersistenciaError,
    ServicoIndisponivelError,
)

logger = logging.getLogger(__name__)

STATUS_POR_ERRO = (
    (DadosInvalidosError, status.HTTP_400_BAD_REQUEST),
    (ConflitoError, status.HTTP_409_CONFLICT),
    (ItemNaoEncontradoError, status.HTTP_404_NOT_FOUND),
    (ServicoIndisponivelError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (PersistenciaError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def tratar_excecao(exc, context):
    if isinstance(exc, BaseErroCore):
        codigo = next(
            (codigo for tipo, codigo in STATUS_POR_ERRO if isinstance(exc, tipo)),
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
        if codigo >= 500:
            logger.error("%s em %s: %s", type(exc).__name__, context['request'].path, exc.message)
        return Response({'error': exc.message}, status=codigo)

    response = exception_handler(exc, context)
    if response is None:
        # Erro inesperado: o Django gera o 500 padrão
        return None

    if isinstance(exc, ValidationError):
        response.data = {'error': 'Dados inválidos.', 'details': exc.detail}
    elif isinstance(response.data, dict) and 'detail' in response.data:
        response.data = {'error': str(response.data['detail'])}
    return response

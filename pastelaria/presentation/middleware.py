import logging
import time

logger = logging.getLogger(__name__)


class RequestLogMiddleware:
    """Registra cada requisição como 'MÉTODO caminho -> status (ms)'."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        inicio = time.monotonic()
        response = self.get_response(request)
        duracao = (time.monotonic() - inicio) * 1000
        logger.info(
            "%s %s -> %s (%.1f ms)", request.method, request.get_full_path(), response.status_code, duracao
        )
        return response

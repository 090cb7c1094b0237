import logging
from typing import List, Optional

import requests
from django.conf import settings
from django.core.cache import cache

# Importa os Protocols e Entidades da camada Core
from pastelaria.core.ports import IGeradorTexto, ISessoesChat
from pastelaria.core.use_cases import SessaoChat
from pastelaria.core.exceptions import ServicoIndisponivelError

logger = logging.getLogger(__name__)


# ====================================================================
# GATEWAYS: Implementações concretas que se comunicam com APIs externas.
# ====================================================================

class GeminiGateway(IGeradorTexto):
    """
    Gateway para a API REST do Google Gemini (models/<modelo>:generateContent).
    Sem GEMINI_API_KEY o gateway fica desabilitado e toda chamada levanta
    ServicoIndisponivelError.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        modelo: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.GEMINI_API_KEY
        self.modelo = modelo or settings.GEMINI_MODEL
        self.api_url = (api_url or settings.GEMINI_API_URL).rstrip('/')
        self.timeout = timeout or settings.GEMINI_TIMEOUT

        if not self.api_key:
            logger.warning("GEMINI_API_KEY não configurada. As funções de IA ficarão desabilitadas.")

    @property
    def disponivel(self) -> bool:
        return bool(self.api_key)

    def _montar_payload(self, prompt: str, instrucao_sistema: Optional[str], historico: Optional[List[dict]]) -> dict:
        contents = [
            {'role': turno['papel'], 'parts': [{'text': turno['texto']}]}
            for turno in historico or []
        ]
        contents.append({'role': 'user', 'parts': [{'text': prompt}]})
        payload = {'contents': contents}
        if instrucao_sistema:
            payload['systemInstruction'] = {'parts': [{'text': instrucao_sistema}]}
        return payload

    @staticmethod
    def _extrair_texto(data: dict) -> str:
        candidatos = data.get('candidates') or []
        if not candidatos:
            return ''
        partes = (candidatos[0].get('content') or {}).get('parts') or []
        return ''.join(parte.get('text', '') for parte in partes)

    def gerar_texto(
        self,
        prompt: str,
        instrucao_sistema: Optional[str] = None,
        historico: Optional[List[dict]] = None,
    ) -> str:
        if not self.disponivel:
            raise ServicoIndisponivelError("Serviço de IA desabilitado: GEMINI_API_KEY não configurada.")

        headers = {
            'Content-Type': 'application/json',
            'x-goog-api-key': self.api_key,
        }
        url = f"{self.api_url}/models/{self.modelo}:generateContent"

        try:
            response = requests.post(
                url,
                json=self._montar_payload(prompt, instrucao_sistema, historico),
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            logger.error("Erro de comunicação com o Gemini: %s", e)
            raise ServicoIndisponivelError(f"Erro de comunicação com o serviço de IA: {e}") from e
        except ValueError as e:
            logger.error("Resposta inválida do Gemini: %s", e)
            raise ServicoIndisponivelError("Resposta inválida do serviço de IA.") from e

        texto = self._extrair_texto(data).strip()
        if not texto:
            logger.warning("Gemini retornou resposta sem texto: %s", data.get('promptFeedback'))
            raise ServicoIndisponivelError("O serviço de IA não retornou texto.")
        return texto


class SessoesChatCache(ISessoesChat):
    """Sessões de chat guardadas no cache do Django, expirando após CHAT_SESSAO_TTL segundos."""

    PREFIXO = 'pastelaria:chat:'

    def __init__(self, ttl: Optional[int] = None):
        self.ttl = ttl if ttl is not None else settings.CHAT_SESSAO_TTL

    def obter(self, sessao_id: str) -> Optional[SessaoChat]:
        historico = cache.get(self.PREFIXO + sessao_id)
        if historico is None:
            return None
        return SessaoChat(id=sessao_id, historico=list(historico))

    def salvar(self, sessao: SessaoChat) -> None:
        cache.set(self.PREFIXO + sessao.id, sessao.historico, timeout=self.ttl)

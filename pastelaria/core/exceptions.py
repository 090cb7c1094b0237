class BaseErroCore(Exception):
    """Classe base para todas as exceções da Camada Core."""
    def __init__(self, message="Erro interno da aplicação."):
        self.message = message
        super().__init__(self.message)


class DadosInvalidosError(BaseErroCore):
    """Erro levantado quando dados inválidos são fornecidos."""
    def __init__(self, message="Os dados fornecidos são inválidos."):
        super().__init__(message)


class ConflitoError(BaseErroCore):
    """Erro levantado quando uma chave única (ex: CPF) já está cadastrada."""
    def __init__(self, message="O registro já existe."):
        super().__init__(message)

# ===============================================
# ERROS DE PERSISTÊNCIA E ENTIDADE
# ===============================================

class ItemNaoEncontradoError(BaseErroCore):
    """Erro levantado quando um item (genérico) não é encontrado."""
    def __init__(self, message="O item solicitado não foi encontrado."):
        super().__init__(message)


class PedidoNaoEncontradoError(ItemNaoEncontradoError):
    """Erro específico para Pedidos não encontrados."""
    def __init__(self, message="Pedido não encontrado."):
        super().__init__(message)


class UsuarioNaoEncontradoError(ItemNaoEncontradoError):
    """Erro específico para Usuários não encontrados."""
    def __init__(self, message="Usuário não encontrado."):
        super().__init__(message)


class PersistenciaError(BaseErroCore):
    """Falha ao gravar no armazenamento. A mensagem original é preservada para depuração."""
    def __init__(self, message="Falha ao salvar os dados."):
        super().__init__(message)

# ===============================================
# ERROS DE SERVIÇOS EXTERNOS
# ===============================================

class ServicoIndisponivelError(BaseErroCore):
    """Serviço de IA desabilitado (sem chave) ou com falha na resposta."""
    def __init__(self, message="Serviço de IA indisponível."):
        super().__init__(message)

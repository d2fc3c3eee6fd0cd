"""
Erros de domínio do StashKeeperPro.

Hierarquia:
- StashKeeperError
    - ValidationError          entrada inválida (quantidade, tipo, campos obrigatórios)
    - InsufficientStockError   saída maior que o estoque disponível
    - NegativeStockError       reconciliação deixaria o estoque negativo
    - NotFoundError            registro inexistente
    - BackendError             falha do armazenamento (SQLite)

As mensagens são as exibidas ao usuário (em português).
"""

from __future__ import annotations

from typing import Optional


MSG_QUANTIDADE_POSITIVA = "A quantidade deve ser maior que zero"
MSG_ESTOQUE_INSUFICIENTE = "Quantidade não pode ser maior que o estoque disponível"
MSG_REVERSAO_NEGATIVA = (
    "Não é possível reverter a movimentação original, pois deixaria o estoque negativo."
)
MSG_NOVA_SAIDA_INSUFICIENTE = "Quantidade insuficiente em estoque para a nova saída"


class StashKeeperError(Exception):
    """Base de todos os erros do sistema."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(StashKeeperError):
    """Valor informado pelo usuário é inválido."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class InsufficientStockError(StashKeeperError):
    """Saída solicitada excede o estoque disponível."""

    def __init__(self, message: str = MSG_ESTOQUE_INSUFICIENTE):
        super().__init__(message)


class NegativeStockError(StashKeeperError):
    """A reconciliação de uma movimentação deixaria o estoque negativo.

    ``fase`` distingue a falha ao reverter a movimentação original
    (``"reversao"``) da falha ao aplicar a nova (``"aplicacao"``).
    """

    REVERSAO = "reversao"
    APLICACAO = "aplicacao"

    def __init__(self, fase: str, quantidade_resultante: float):
        self.fase = fase
        self.quantidade_resultante = quantidade_resultante
        message = MSG_REVERSAO_NEGATIVA if fase == self.REVERSAO else MSG_NOVA_SAIDA_INSUFICIENTE
        super().__init__(message)


class NotFoundError(StashKeeperError):
    """Registro não encontrado no banco."""

    def __init__(self, entidade: str, chave):
        self.entidade = entidade
        self.chave = chave
        super().__init__(f"{entidade} não encontrado(a): {chave}")


class BackendError(StashKeeperError):
    """Falha de acesso ao armazenamento. Não há nova tentativa automática."""

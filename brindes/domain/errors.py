"""Exceções do domínio de brindes."""

from __future__ import annotations

from typing import Optional


class BrindesError(Exception):
    """Erro base do sistema; tudo que chega à interface deriva daqui."""


class ValidationError(BrindesError):
    """Dados de entrada inválidos (quantidade fora da faixa, campo ausente...)."""


class InvalidTransitionError(ValidationError):
    """Transição de status inexistente na máquina de estados do pedido."""

    def __init__(self, atual: str, novo: str) -> None:
        super().__init__(f"Transição inválida: {atual} -> {novo}")
        self.atual = atual
        self.novo = novo


class AuthorizationError(BrindesError):
    """Papel ou identidade sem permissão para a operação."""


class PreconditionFailed(BrindesError):
    """Estoque insuficiente no momento da operação."""

    def __init__(self, mensagem: str, disponivel: Optional[int] = None) -> None:
        super().__init__(mensagem)
        self.disponivel = disponivel


class RemoteOperationError(BrindesError):
    """Falha no armazenamento ou no provedor de identidade."""

# brindes/domain/models.py
"""
Modelos (dataclasses) do domínio.

Observação importante:
- Os repositórios aceitam e devolvem dicionários; as dataclasses servem
  para tipagem/clareza nos pontos de entrada (cadastro, sessão, contexto).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


# Papéis
ADMIN = "admin"
OPERARIO = "operario"
USUARIO = "usuario"
PAPEIS = (ADMIN, OPERARIO, USUARIO)

# Status do pedido
PENDENTE = "pendente"
APROVADO = "aprovado"
REJEITADA = "rejeitada"
FINALIZADO = "finalizado"
CONCLUIDO = "concluido"
STATUS_PEDIDO = (PENDENTE, APROVADO, REJEITADA, FINALIZADO, CONCLUIDO)

# Direção da movimentação
ENTRADA = "entrada"
SAIDA = "saida"
TIPOS_MOVIMENTACAO = (ENTRADA, SAIDA)


@dataclass
class Produto:
    """Cadastro de brinde."""
    codigo: str
    nome: str
    categoria_id: Optional[str] = None
    quantidade: int = 0
    estoque_minimo: int = 0
    localizacao: Optional[str] = None
    fornecedor: Optional[str] = None
    descricao: Optional[str] = None


@dataclass(frozen=True)
class Identidade:
    """Usuário autenticado, como devolvido pelo provedor de identidade."""
    id: str
    email: str
    nome: Optional[str] = None


@dataclass(frozen=True)
class Sessao:
    token: str
    user_id: str
    email: str


@dataclass(frozen=True)
class Contexto:
    """Quem está executando a operação: identidade + papel efetivo.

    Montado a cada operação de topo (comando da CLI, ação da TUI) e passado
    explicitamente para os casos de uso.
    """
    identidade: str
    papel: str = USUARIO

    @property
    def pode_gerenciar(self) -> bool:
        return self.papel in (ADMIN, OPERARIO)

    @property
    def is_admin(self) -> bool:
        return self.papel == ADMIN

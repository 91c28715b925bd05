"""
Políticas de negócio do sistema de brindes.

Este módulo concentra as regras puras (sem I/O) usadas pelos casos de uso:
classificação do status de estoque, validação de quantidades, a máquina de
estados do pedido com suas regras de autorização e o filtro de visibilidade
de pedidos por papel. Nenhuma função aqui acessa o banco.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from brindes.config import DEFAULTS
from brindes.domain.errors import AuthorizationError, InvalidTransitionError, ValidationError
from brindes.domain.models import (
    ADMIN,
    APROVADO,
    CONCLUIDO,
    Contexto,
    FINALIZADO,
    OPERARIO,
    PENDENTE,
    REJEITADA,
    TIPOS_MOVIMENTACAO,
)


FILTRO_TODOS = "all"

# Quem pode executar cada aresta da máquina de estados
GESTOR = "gestor"
SOLICITANTE = "solicitante"

TRANSICOES: Dict[Tuple[str, str], str] = {
    (PENDENTE, APROVADO): GESTOR,
    (PENDENTE, REJEITADA): GESTOR,
    (APROVADO, FINALIZADO): GESTOR,
    (FINALIZADO, CONCLUIDO): SOLICITANTE,
}

FILTROS_GESTAO = (FILTRO_TODOS, PENDENTE, APROVADO, REJEITADA)
FILTROS_USUARIO = (FILTRO_TODOS, PENDENTE, APROVADO, FINALIZADO, CONCLUIDO, REJEITADA)

# Status que saem da visão de gestão (já entregues)
_OCULTOS_GESTAO = frozenset({FINALIZADO, CONCLUIDO})


def pode_gerenciar(papel: Optional[str]) -> bool:
    """``True`` se o papel é de gestão (admin ou operário)."""
    return papel in (ADMIN, OPERARIO)


def exigir_gestao(contexto: Contexto, operacao: str) -> None:
    if not contexto.pode_gerenciar:
        raise AuthorizationError(f"Papel '{contexto.papel}' não pode {operacao}")


def exigir_admin(contexto: Contexto, operacao: str) -> None:
    if not contexto.is_admin:
        raise AuthorizationError(f"Apenas administradores podem {operacao}")


def status_estoque(quantidade: Optional[int], estoque_minimo: Optional[int]) -> str:
    """Classifica o estoque de um brinde.

    Regras:
        - ``quantidade == 0`` → ``'sem_estoque'``
        - ``quantidade <= estoque_minimo`` → ``'baixo'``
        - caso contrário → ``'normal'``
    """
    qtd = int(quantidade or 0)
    minimo = int(estoque_minimo or 0)
    if qtd <= 0:
        return "sem_estoque"
    if qtd <= minimo:
        return "baixo"
    return "normal"


def validar_inteiro_positivo(valor: Any, campo: str = "quantidade", maximo: Optional[int] = None) -> int:
    """Garante um inteiro em ``[1, maximo]`` e devolve-o normalizado.

    Aceita ``int`` ou string numérica inteira; ``bool`` e frações são
    rejeitados.
    """
    if valor is None or isinstance(valor, bool):
        raise ValidationError(f"{campo} é obrigatória")
    if isinstance(valor, float):
        if not valor.is_integer():
            raise ValidationError(f"{campo} deve ser um número inteiro")
        valor = int(valor)
    if isinstance(valor, str):
        s = valor.strip()
        if not re.fullmatch(r"-?\d+", s, re.ASCII):
            raise ValidationError(f"{campo} deve ser um número inteiro")
        valor = int(s)
    if not isinstance(valor, int):
        raise ValidationError(f"{campo} deve ser um número inteiro")
    if valor < 1:
        raise ValidationError(f"{campo} deve ser maior que zero")
    if maximo is not None and valor > maximo:
        raise ValidationError(f"{campo} deve ser no máximo {maximo}")
    return valor


def validar_inteiro_nao_negativo(valor: Any, campo: str, maximo: Optional[int] = None) -> int:
    if valor is None or valor == "":
        return 0
    if valor == 0 or valor == "0":
        return 0
    return validar_inteiro_positivo(valor, campo, maximo)


def validar_quantidade_pedido(valor: Any) -> int:
    return validar_inteiro_positivo(valor, "quantidade", DEFAULTS.quantidade_maxima_pedido)


def validar_quantidade_movimentacao(valor: Any) -> int:
    return validar_inteiro_positivo(valor, "quantidade", DEFAULTS.quantidade_maxima_movimentacao)


def validar_tipo_movimentacao(tipo: Any) -> str:
    t = str(tipo or "").strip().lower()
    if t not in TIPOS_MOVIMENTACAO:
        raise ValidationError(f"Tipo de movimentação inválido: {tipo!r} (use entrada ou saida)")
    return t


# -------------------------
# Máquina de estados
# -------------------------

def validar_transicao(atual: str, novo: str) -> str:
    """Devolve o ator exigido pela aresta ``atual -> novo`` ou levanta erro."""
    ator = TRANSICOES.get((atual, novo))
    if ator is None:
        raise InvalidTransitionError(atual, novo)
    return ator


def autorizar_transicao(contexto: Contexto, pedido: Mapping[str, Any], novo: str) -> None:
    """Verifica aresta e permissão do chamador para levar ``pedido`` a ``novo``."""
    ator = validar_transicao(pedido["status"], novo)
    if ator == GESTOR and not contexto.pode_gerenciar:
        raise AuthorizationError(f"Papel '{contexto.papel}' não pode mover pedidos para '{novo}'")
    if ator == SOLICITANTE and pedido["solicitante_id"] != contexto.identidade:
        raise AuthorizationError("Apenas o solicitante pode confirmar o recebimento")


def acoes_disponiveis(contexto: Contexto, pedido: Mapping[str, Any]) -> List[str]:
    """Status de destino que o chamador pode aplicar ao pedido agora."""
    out: List[str] = []
    for (origem, destino), ator in TRANSICOES.items():
        if origem != pedido.get("status"):
            continue
        if ator == GESTOR and contexto.pode_gerenciar:
            out.append(destino)
        elif ator == SOLICITANTE and pedido.get("solicitante_id") == contexto.identidade:
            out.append(destino)
    return out


# -------------------------
# Filtro de visibilidade
# -------------------------

@dataclass(frozen=True)
class VisaoPedidos:
    visiveis: List[Dict[str, Any]]
    filtros: Tuple[str, ...]


def filtrar_pedidos(contexto: Contexto, pedidos: Sequence[Mapping[str, Any]]) -> VisaoPedidos:
    """Subconjunto visível de pedidos e filtros de status oferecidos ao papel.

    Gestão (admin/operário) enxerga todos os pedidos exceto os já
    finalizados/concluídos; usuário comum enxerga apenas os próprios.
    """
    if contexto.pode_gerenciar:
        visiveis = [dict(p) for p in pedidos if p.get("status") not in _OCULTOS_GESTAO]
        return VisaoPedidos(visiveis, FILTROS_GESTAO)
    visiveis = [dict(p) for p in pedidos if p.get("solicitante_id") == contexto.identidade]
    return VisaoPedidos(visiveis, FILTROS_USUARIO)


def aplicar_filtro_status(visao: VisaoPedidos, status: str = FILTRO_TODOS) -> List[Dict[str, Any]]:
    if status not in visao.filtros:
        raise ValidationError(f"Filtro de status indisponível: {status!r}")
    if status == FILTRO_TODOS:
        return list(visao.visiveis)
    return [p for p in visao.visiveis if p.get("status") == status]

# brindes/usecases/pedidos.py
"""
UC: ciclo de vida dos pedidos de brindes.

Fluxo:
  pendente -> aprovado -> finalizado -> concluido
  pendente -> rejeitada

- criar_pedido():          qualquer papel; quantidade inteira em [1, 100000].
- aprovar_pedido():        gestão; revalida quantidade e saldo, baixa o
                           estoque e lança a saída no razão.
- rejeitar_pedido():       gestão; registra decisão, sem mexer no estoque.
- finalizar_pedido():      gestão; aprovado -> finalizado.
- confirmar_recebimento(): só o solicitante; finalizado -> concluido.
- listar_pedidos():        visão filtrada por papel + filtro de status.

Obs.:
- A aprovação grava status, estoque e movimentação numa única transação
  (BEGIN IMMEDIATE); qualquer falha desfaz as três escritas.
- A baixa de estoque é condicional no próprio UPDATE, então duas aprovações
  concorrentes não conseguem deixar o saldo negativo.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from brindes.config import DB_PATH
from brindes.domain.errors import InvalidTransitionError, PreconditionFailed, ValidationError
from brindes.domain.models import (
    APROVADO, CONCLUIDO, Contexto, FINALIZADO, PENDENTE, REJEITADA, SAIDA,
)
from brindes.domain.policies import (
    FILTRO_TODOS,
    acoes_disponiveis,
    aplicar_filtro_status,
    autorizar_transicao,
    filtrar_pedidos,
    validar_quantidade_pedido,
)
from brindes.infra.db import connect
from brindes.infra.logger import log_database_operation, log_pedido, log_transaction
from brindes.infra.repositories import PedidoRepo, ProdutoRepo
from brindes.usecases.movimentacoes import lancar_movimento


def _carregar(repo: PedidoRepo, pedido_id: str) -> Dict[str, Any]:
    pedido = repo.get(pedido_id)
    if pedido is None:
        raise ValidationError(f"Pedido não encontrado: {pedido_id}")
    return pedido


def observacao_aprovacao(pedido_id: str) -> str:
    return f"Pedido #{pedido_id[:8]} aprovado"


def criar_pedido(
    contexto: Contexto,
    produto_id: str,
    quantidade: Any,
    motivo: Optional[str] = None,
    db_path: str = DB_PATH,
) -> Dict[str, Any]:
    if not produto_id:
        raise ValidationError("Selecione o brinde")
    quantidade = validar_quantidade_pedido(quantidade)
    motivo = (motivo or "").strip() or None

    with connect(db_path) as c:
        if ProdutoRepo(db_path, conn=c).get(produto_id) is None:
            raise ValidationError(f"Brinde não encontrado: {produto_id}")
        pedido_id = PedidoRepo(db_path, conn=c).insert({
            "produto_id": produto_id,
            "quantidade": quantidade,
            "solicitante_id": contexto.identidade,
            "motivo": motivo,
        })
    log_database_operation("pedidos", "INSERT", 1, pedido_id=pedido_id)
    log_pedido("criar", pedido_id, PENDENTE, produto_id=produto_id, quantidade=quantidade)
    return {
        "pedido_id": pedido_id,
        "produto_id": produto_id,
        "quantidade": quantidade,
        "status": PENDENTE,
    }


def aprovar_pedido(contexto: Contexto, pedido_id: str, db_path: str = DB_PATH) -> Dict[str, Any]:
    """Aprova o pedido baixando o estoque; saldo insuficiente -> PreconditionFailed."""
    try:
        with connect(db_path, immediate=True) as c:
            pedidos = PedidoRepo(db_path, conn=c)
            pedido = _carregar(pedidos, pedido_id)
            autorizar_transicao(contexto, pedido, APROVADO)
            quantidade = validar_quantidade_pedido(pedido["quantidade"])

            disponivel = int(pedido["produto_quantidade"])
            if disponivel - quantidade < 0:
                raise PreconditionFailed(
                    f"Estoque insuficiente: solicitado {quantidade}, disponível {disponivel}",
                    disponivel=disponivel,
                )

            # 1) status + aprovador
            if pedidos.atualizar_status(
                pedido_id, PENDENTE, APROVADO, aprovador_id=contexto.identidade, registrar_decisao=True
            ) != 1:
                raise InvalidTransitionError(pedido["status"], APROVADO)
            # 2) e 3) baixa de estoque + saída no razão
            lancar_movimento(
                c,
                pedido["produto_id"],
                SAIDA,
                quantidade,
                contexto.identidade,
                observacao_aprovacao(pedido_id),
                db_path=db_path,
            )
    except Exception as e:
        log_transaction("aprovar_pedido", {"pedido_id": pedido_id}, error=str(e))
        raise

    result = {
        "pedido_id": pedido_id,
        "status": APROVADO,
        "produto_id": pedido["produto_id"],
        "quantidade": quantidade,
        "estoque_restante": disponivel - quantidade,
    }
    log_pedido("aprovar", pedido_id, APROVADO, aprovador_id=contexto.identidade)
    log_transaction("aprovar_pedido", {"pedido_id": pedido_id}, result=result)
    return result


def _transicao_simples(
    contexto: Contexto,
    pedido_id: str,
    novo: str,
    acao: str,
    registrar_decisao: bool = False,
    db_path: str = DB_PATH,
) -> Dict[str, Any]:
    with connect(db_path, immediate=True) as c:
        pedidos = PedidoRepo(db_path, conn=c)
        pedido = _carregar(pedidos, pedido_id)
        autorizar_transicao(contexto, pedido, novo)
        if pedidos.atualizar_status(
            pedido_id, pedido["status"], novo,
            aprovador_id=contexto.identidade, registrar_decisao=registrar_decisao,
        ) != 1:
            raise InvalidTransitionError(pedido["status"], novo)
    log_pedido(acao, pedido_id, novo, por=contexto.identidade)
    return {"pedido_id": pedido_id, "status": novo}


def rejeitar_pedido(contexto: Contexto, pedido_id: str, db_path: str = DB_PATH) -> Dict[str, Any]:
    return _transicao_simples(contexto, pedido_id, REJEITADA, "rejeitar", registrar_decisao=True, db_path=db_path)


def finalizar_pedido(contexto: Contexto, pedido_id: str, db_path: str = DB_PATH) -> Dict[str, Any]:
    return _transicao_simples(contexto, pedido_id, FINALIZADO, "finalizar", db_path=db_path)


def confirmar_recebimento(contexto: Contexto, pedido_id: str, db_path: str = DB_PATH) -> Dict[str, Any]:
    return _transicao_simples(contexto, pedido_id, CONCLUIDO, "confirmar", db_path=db_path)


def listar_pedidos(
    contexto: Contexto,
    status: str = FILTRO_TODOS,
    db_path: str = DB_PATH,
) -> Dict[str, Any]:
    """Pedidos visíveis ao chamador, filtros oferecidos e brindes para novo pedido.

    As duas leituras usam a mesma conexão; falha em qualquer uma aborta tudo.
    """
    with connect(db_path) as c:
        todos = PedidoRepo(db_path, conn=c).get_all()
        produtos = ProdutoRepo(db_path, conn=c).get_all()

    visao = filtrar_pedidos(contexto, todos)
    pedidos: List[Dict[str, Any]] = aplicar_filtro_status(visao, status)
    for p in pedidos:
        p["acoes"] = acoes_disponiveis(contexto, p)
    return {"pedidos": pedidos, "filtros": list(visao.filtros), "produtos": produtos}

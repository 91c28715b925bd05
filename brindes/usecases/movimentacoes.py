# brindes/usecases/movimentacoes.py
"""
UC: razão de movimentações (entrada/saída) de brindes.

- lancar_movimento(): primitiva do razão; grava a movimentação e aplica o
  delta no estoque dentro da transação do chamador.
- registrar_movimentacao(): lançamento manual (gestão), com revalidação do
  saldo antes de qualquer escrita.
- listar_movimentacoes() / exportar_movimentacoes(): consulta e planilha.

Obs.:
- A movimentação é imutável; não existe ajuste por valor absoluto.
- Quantidade e tipo determinam o sinal do delta (entrada soma, saída subtrai).
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from brindes.config import DB_PATH, DEFAULTS
from brindes.domain.errors import PreconditionFailed, ValidationError
from brindes.domain.models import ENTRADA, SAIDA, Contexto
from brindes.domain.policies import exigir_gestao, validar_quantidade_movimentacao, validar_tipo_movimentacao
from brindes.infra.db import connect
from brindes.infra.logger import (
    log_database_operation, log_file_operation, log_movimentacao, log_transaction
)
from brindes.infra.repositories import MovimentacaoRepo, ProdutoRepo


def lancar_movimento(
    conn: sqlite3.Connection,
    produto_id: str,
    tipo: str,
    quantidade: int,
    usuario_id: str,
    observacao: Optional[str] = None,
    db_path: str = DB_PATH,
) -> str:
    """Grava uma movimentação e aplica ``±quantidade`` ao brinde.

    Levanta PreconditionFailed (e o chamador desfaz a transação) se uma saída
    deixaria o estoque negativo, ou ValidationError se uma entrada passaria
    de ``DEFAULTS.estoque_maximo``.
    """
    produtos = ProdutoRepo(db_path, conn=conn)
    mov_id = MovimentacaoRepo(db_path, conn=conn).insert({
        "produto_id": produto_id,
        "tipo": tipo,
        "quantidade": quantidade,
        "observacao": observacao,
        "usuario_id": usuario_id,
    })
    delta = quantidade if tipo == ENTRADA else -quantidade
    if produtos.aplicar_delta(produto_id, delta, teto=DEFAULTS.estoque_maximo) != 1:
        if tipo == ENTRADA:
            raise ValidationError(f"Estoque máximo excedido: limite de {DEFAULTS.estoque_maximo}")
        atual = produtos.get(produto_id)
        disponivel = int(atual["quantidade"]) if atual else 0
        raise PreconditionFailed(
            f"Estoque insuficiente. Estoque disponível: {disponivel}", disponivel=disponivel
        )
    log_database_operation("movimentacoes", "INSERT", 1, produto_id=produto_id, tipo=tipo)
    log_movimentacao(tipo, produto_id, quantidade, usuario_id, observacao=observacao)
    return mov_id


def registrar_movimentacao(
    contexto: Contexto,
    produto_id: str,
    tipo: str,
    quantidade: Any,
    observacao: Optional[str] = None,
    db_path: str = DB_PATH,
) -> Dict[str, Any]:
    """Lançamento manual de entrada/saída por admin ou operário."""
    exigir_gestao(contexto, "registrar movimentações")
    if not produto_id:
        raise ValidationError("Selecione o brinde")
    tipo = validar_tipo_movimentacao(tipo)
    quantidade = validar_quantidade_movimentacao(quantidade)
    observacao = (observacao or "").strip() or None

    data = {"produto_id": produto_id, "tipo": tipo, "quantidade": quantidade}
    try:
        with connect(db_path, immediate=True) as c:
            produto = ProdutoRepo(db_path, conn=c).get(produto_id)
            if produto is None:
                raise ValidationError(f"Brinde não encontrado: {produto_id}")
            anterior = int(produto["quantidade"])
            if tipo == SAIDA and quantidade > anterior:
                raise PreconditionFailed(
                    f"Quantidade insuficiente. Estoque disponível: {anterior}", disponivel=anterior
                )
            mov_id = lancar_movimento(
                c, produto_id, tipo, quantidade, contexto.identidade, observacao, db_path=db_path
            )
    except Exception as e:
        log_transaction("movimentacao", data, error=str(e))
        raise

    atual = anterior + quantidade if tipo == ENTRADA else anterior - quantidade
    result = {
        "movimentacao_id": mov_id,
        "produto_id": produto_id,
        "codigo": produto["codigo"],
        "tipo": tipo,
        "quantidade": quantidade,
        "quantidade_anterior": anterior,
        "quantidade_atual": atual,
    }
    log_transaction("movimentacao", data, result=result)
    return result


def listar_movimentacoes(
    limite: Optional[int] = DEFAULTS.limite_movimentacoes,
    produto_id: Optional[str] = None,
    db_path: str = DB_PATH,
) -> List[Dict[str, Any]]:
    """Movimentações mais recentes primeiro, com brinde e responsável."""
    return MovimentacaoRepo(db_path).listar(limite=limite, produto_id=produto_id)


_COLUNAS_EXPORT = [
    "created_at", "tipo", "quantidade", "produto_codigo", "produto_nome",
    "usuario_nome", "observacao",
]


def exportar_movimentacoes(caminho: str, limite: Optional[int] = None, db_path: str = DB_PATH) -> Dict[str, Any]:
    """Grava o razão em XLSX (ou CSV, pela extensão)."""
    rows = MovimentacaoRepo(db_path).listar(limite=limite)
    df = pd.DataFrame(rows, columns=_COLUNAS_EXPORT)
    destino = Path(caminho)
    if destino.suffix.lower() == ".csv":
        df.to_csv(destino, index=False)
    else:
        df.to_excel(destino, index=False)
    log_file_operation("export", str(destino), rows_processed=len(df))
    return {"arquivo": str(destino), "linhas": len(df)}

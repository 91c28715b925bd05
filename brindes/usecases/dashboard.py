# brindes/usecases/dashboard.py
"""
UC: painel de gestão (somente admin/operário).

Resumo:
- total de brindes e contagem por status de estoque (normal/baixo/sem estoque);
- soma das quantidades por categoria;
- pedidos pendentes;
- lista de brindes com estoque baixo ou zerado.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Dict

from brindes.config import DB_PATH
from brindes.domain.models import PENDENTE, Contexto
from brindes.domain.policies import exigir_gestao, status_estoque
from brindes.infra.db import connect
from brindes.infra.repositories import PedidoRepo, ProdutoRepo


def resumo_dashboard(contexto: Contexto, db_path: str = DB_PATH) -> Dict[str, Any]:
    exigir_gestao(contexto, "acessar o painel")
    with connect(db_path) as c:
        produtos = ProdutoRepo(db_path, conn=c).get_all()
        por_status_pedido = PedidoRepo(db_path, conn=c).contar_por_status()

    contagem = {"normal": 0, "baixo": 0, "sem_estoque": 0}
    por_categoria: Dict[str, int] = defaultdict(int)
    alertas = []
    for p in produtos:
        st = status_estoque(p["quantidade"], p["estoque_minimo"])
        contagem[st] += 1
        por_categoria[p["categoria"]] += int(p["quantidade"])
        if st != "normal":
            alertas.append({
                "codigo": p["codigo"],
                "nome": p["nome"],
                "quantidade": p["quantidade"],
                "estoque_minimo": p["estoque_minimo"],
                "status": st,
            })

    return {
        "total_brindes": len(produtos),
        "estoque_normal": contagem["normal"],
        "estoque_baixo": contagem["baixo"],
        "sem_estoque": contagem["sem_estoque"],
        "por_categoria": [
            {"categoria": nome, "quantidade": qtd} for nome, qtd in sorted(por_categoria.items())
        ],
        "pedidos_pendentes": por_status_pedido.get(PENDENTE, 0),
        "alertas": alertas,
    }

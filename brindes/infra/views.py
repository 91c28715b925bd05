# brindes/infra/views.py
"""
Criação de views auxiliares para consultas frequentes.

Views criadas:
- vw_produtos_status:       brindes com categoria e status de estoque.
- vw_movimentacoes_detalhe: razão de movimentações com brinde e responsável.
- vw_pedidos_detalhe:       pedidos com brinde, solicitante e aprovador.

Obs.:
- As views assumem que as migrações V1→V2 já foram aplicadas.
- A regra de status em vw_produtos_status espelha
  ``brindes.domain.policies.status_estoque``.
"""

from __future__ import annotations

from .db import connect


def create_views(db_path: str) -> None:
    with connect(db_path) as c:
        c.executescript(
            """
            ---------------------------
            -- Brindes com status de estoque
            ---------------------------
            DROP VIEW IF EXISTS vw_produtos_status;
            CREATE VIEW vw_produtos_status AS
            SELECT
                p.id,
                p.codigo,
                p.nome,
                p.categoria_id,
                COALESCE(c.nome, 'Sem categoria') AS categoria,
                p.quantidade,
                p.estoque_minimo,
                p.localizacao,
                p.fornecedor,
                CASE
                    WHEN p.quantidade <= 0               THEN 'sem_estoque'
                    WHEN p.quantidade <= p.estoque_minimo THEN 'baixo'
                    ELSE 'normal'
                END AS status
            FROM produtos p
            LEFT JOIN categorias c ON c.id = p.categoria_id;

            ---------------------------
            -- Movimentações detalhadas
            ---------------------------
            DROP VIEW IF EXISTS vw_movimentacoes_detalhe;
            CREATE VIEW vw_movimentacoes_detalhe AS
            SELECT
                m.id,
                m.created_at,
                m.tipo,
                m.quantidade,
                m.observacao,
                m.produto_id,
                p.codigo AS produto_codigo,
                p.nome   AS produto_nome,
                m.usuario_id,
                u.nome   AS usuario_nome
            FROM movimentacoes m
            JOIN produtos p      ON p.id = m.produto_id
            LEFT JOIN profiles u ON u.id = m.usuario_id;

            ---------------------------
            -- Pedidos detalhados
            ---------------------------
            DROP VIEW IF EXISTS vw_pedidos_detalhe;
            CREATE VIEW vw_pedidos_detalhe AS
            SELECT
                pe.id,
                pe.created_at,
                pe.status,
                pe.quantidade,
                pe.motivo,
                pe.produto_id,
                p.codigo      AS produto_codigo,
                p.nome        AS produto_nome,
                p.quantidade  AS produto_quantidade,
                pe.solicitante_id,
                s.nome        AS solicitante_nome,
                pe.aprovador_id,
                a.nome        AS aprovador_nome,
                pe.data_aprovacao
            FROM pedidos pe
            JOIN produtos p      ON p.id = pe.produto_id
            LEFT JOIN profiles s ON s.id = pe.solicitante_id
            LEFT JOIN profiles a ON a.id = pe.aprovador_id;
            """
        )

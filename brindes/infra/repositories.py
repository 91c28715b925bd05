# brindes/infra/repositories.py
"""
Repositórios (DAO) para acesso e manipulação de dados no SQLite.

Classes:
- PerfilRepo
- PapelRepo
- CategoriaRepo
- ProdutoRepo
- MovimentacaoRepo
- PedidoRepo

Cada repositório abre a própria conexão por chamada; quando recebe ``conn``
participa da transação do chamador (sem commit próprio).
"""

from __future__ import annotations

import sqlite3
import uuid
from contextlib import contextmanager
from dataclasses import asdict, is_dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional

from .db import connect


# -------------------------
# Helpers
# -------------------------

def _as_dict(row: Any) -> Dict[str, Any]:
    if isinstance(row, dict):
        return dict(row)
    if is_dataclass(row):
        return asdict(row)
    raise TypeError("row must be dict or dataclass")


def _rows(cur) -> List[Dict[str, Any]]:
    cols = [d[0] for d in cur.description]
    return [dict(zip(cols, row)) for row in cur.fetchall()]


def _one(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    if row is None:
        return None
    cols = [d[0] for d in cur.description]
    return dict(zip(cols, row))


def novo_id() -> str:
    return str(uuid.uuid4())


def agora() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


class _Repo:
    def __init__(self, db_path: str, conn: Optional[sqlite3.Connection] = None):
        self.db_path = db_path
        self.conn = conn

    @contextmanager
    def _session(self) -> Iterator[sqlite3.Connection]:
        if self.conn is not None:
            yield self.conn
        else:
            with connect(self.db_path) as c:
                yield c


# -------------------------
# Perfis e papéis
# -------------------------

class PerfilRepo(_Repo):
    def insert(self, user_id: str, nome: str, cargo: Optional[str] = None) -> None:
        ts = agora()
        with self._session() as c:
            c.execute(
                """
                INSERT INTO profiles (id, nome, cargo, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (user_id, nome, cargo, ts, ts),
            )

    def get(self, user_id: str) -> Optional[Dict[str, Any]]:
        with self._session() as c:
            return _one(c.execute("SELECT * FROM profiles WHERE id = ?", (user_id,)))

    def get_all(self) -> List[Dict[str, Any]]:
        with self._session() as c:
            return _rows(c.execute("SELECT * FROM profiles ORDER BY nome"))


class PapelRepo(_Repo):
    def get_role(self, user_id: str) -> Optional[str]:
        with self._session() as c:
            row = c.execute("SELECT role FROM user_roles WHERE user_id = ?", (user_id,)).fetchone()
            return row[0] if row else None

    def set_role(self, user_id: str, role: str) -> None:
        with self._session() as c:
            c.execute(
                """
                INSERT INTO user_roles (user_id, role)
                VALUES (?, ?)
                ON CONFLICT(user_id) DO UPDATE SET role=excluded.role
                """,
                (user_id, role),
            )

    def map_by_user(self) -> Dict[str, str]:
        with self._session() as c:
            return {r[0]: r[1] for r in c.execute("SELECT user_id, role FROM user_roles").fetchall()}


# -------------------------
# Catálogo
# -------------------------

class CategoriaRepo(_Repo):
    def insert(self, nome: str) -> str:
        cid = novo_id()
        with self._session() as c:
            c.execute(
                "INSERT INTO categorias (id, nome, created_at) VALUES (?, ?, ?)",
                (cid, nome, agora()),
            )
        return cid

    def get(self, categoria_id: str) -> Optional[Dict[str, Any]]:
        with self._session() as c:
            return _one(c.execute("SELECT * FROM categorias WHERE id = ?", (categoria_id,)))

    def get_by_nome(self, nome: str) -> Optional[Dict[str, Any]]:
        with self._session() as c:
            return _one(c.execute("SELECT * FROM categorias WHERE lower(nome) = lower(?)", (nome,)))

    def get_all(self) -> List[Dict[str, Any]]:
        with self._session() as c:
            return _rows(c.execute("SELECT * FROM categorias ORDER BY nome"))


_PRODUTO_COLS = (
    "codigo", "nome", "categoria_id", "estoque_minimo",
    "localizacao", "fornecedor", "descricao",
)


class ProdutoRepo(_Repo):
    def insert(self, row: Any) -> str:
        """Insere um brinde com quantidade zero; o estoque inicial entra pelo razão."""
        r = _as_dict(row)
        pid = novo_id()
        ts = agora()
        payload = {k: r.get(k) for k in _PRODUTO_COLS}
        payload["estoque_minimo"] = payload["estoque_minimo"] or 0
        payload.update({"id": pid, "created_at": ts, "updated_at": ts})
        with self._session() as c:
            c.execute(
                """
                INSERT INTO produtos
                    (id, codigo, nome, categoria_id, quantidade, estoque_minimo,
                     localizacao, fornecedor, descricao, created_at, updated_at)
                VALUES
                    (:id, :codigo, :nome, :categoria_id, 0, :estoque_minimo,
                     :localizacao, :fornecedor, :descricao, :created_at, :updated_at)
                """,
                payload,
            )
        return pid

    def update(self, produto_id: str, campos: Dict[str, Any]) -> int:
        """Atualiza campos descritivos. ``quantidade`` nunca passa por aqui."""
        sets = {k: v for k, v in campos.items() if k in _PRODUTO_COLS}
        if not sets:
            return 0
        sets["updated_at"] = agora()
        assignments = ", ".join(f"{k} = :{k}" for k in sets)
        with self._session() as c:
            cur = c.execute(
                f"UPDATE produtos SET {assignments} WHERE id = :id",
                {**sets, "id": produto_id},
            )
            return cur.rowcount

    def delete(self, produto_id: str) -> int:
        with self._session() as c:
            return c.execute("DELETE FROM produtos WHERE id = ?", (produto_id,)).rowcount

    def get(self, produto_id: str) -> Optional[Dict[str, Any]]:
        with self._session() as c:
            return _one(c.execute("SELECT * FROM produtos WHERE id = ?", (produto_id,)))

    def get_by_codigo(self, codigo: str) -> Optional[Dict[str, Any]]:
        with self._session() as c:
            return _one(c.execute("SELECT * FROM produtos WHERE codigo = ?", (codigo,)))

    def get_all(self, busca: Optional[str] = None, categoria_id: Optional[str] = None) -> List[Dict[str, Any]]:
        sql = "SELECT * FROM vw_produtos_status WHERE 1 = 1"
        params: Dict[str, Any] = {}
        if busca:
            sql += " AND (lower(nome) LIKE :busca OR lower(codigo) LIKE :busca)"
            params["busca"] = f"%{busca.strip().lower()}%"
        if categoria_id:
            sql += " AND categoria_id = :categoria_id"
            params["categoria_id"] = categoria_id
        sql += " ORDER BY nome"
        with self._session() as c:
            return _rows(c.execute(sql, params))

    def aplicar_delta(self, produto_id: str, delta: int, teto: Optional[int] = None) -> int:
        """Soma ``delta`` à quantidade se o resultado ficar em ``[0, teto]``.

        Devolve o número de linhas alteradas (0 quando o saldo não comporta).
        """
        with self._session() as c:
            cur = c.execute(
                """
                UPDATE produtos
                   SET quantidade = quantidade + :delta,
                       updated_at = :ts
                 WHERE id = :id
                   AND quantidade + :delta >= 0
                   AND (:teto IS NULL OR quantidade + :delta <= :teto)
                """,
                {"delta": int(delta), "teto": teto, "ts": agora(), "id": produto_id},
            )
            return cur.rowcount

    def contar_referencias(self, produto_id: str) -> int:
        with self._session() as c:
            row = c.execute(
                """
                SELECT (SELECT COUNT(*) FROM movimentacoes WHERE produto_id = :id)
                     + (SELECT COUNT(*) FROM pedidos WHERE produto_id = :id)
                """,
                {"id": produto_id},
            ).fetchone()
            return int(row[0] or 0)


# -------------------------
# Movimentações
# -------------------------

class MovimentacaoRepo(_Repo):
    def insert(self, row: Dict[str, Any]) -> str:
        r = _as_dict(row)
        payload = {
            "id": novo_id(),
            "produto_id": r["produto_id"],
            "tipo": r["tipo"],
            "quantidade": int(r["quantidade"]),
            "observacao": r.get("observacao"),
            "usuario_id": r["usuario_id"],
            "created_at": agora(),
        }
        with self._session() as c:
            c.execute(
                """
                INSERT INTO movimentacoes
                    (id, produto_id, tipo, quantidade, observacao, usuario_id, created_at)
                VALUES
                    (:id, :produto_id, :tipo, :quantidade, :observacao, :usuario_id, :created_at)
                """,
                payload,
            )
        return payload["id"]

    def listar(self, limite: Optional[int] = None, produto_id: Optional[str] = None) -> List[Dict[str, Any]]:
        sql = "SELECT * FROM vw_movimentacoes_detalhe"
        params: List[Any] = []
        if produto_id:
            sql += " WHERE produto_id = ?"
            params.append(produto_id)
        sql += " ORDER BY created_at DESC"
        if limite:
            sql += " LIMIT ?"
            params.append(int(limite))
        with self._session() as c:
            return _rows(c.execute(sql, params))

    def saldo_por_produto(self) -> Dict[str, int]:
        """Σentradas − Σsaídas por brinde, segundo o razão."""
        with self._session() as c:
            cur = c.execute(
                """
                SELECT produto_id,
                       SUM(CASE WHEN tipo = 'entrada' THEN quantidade ELSE -quantidade END)
                FROM movimentacoes
                GROUP BY produto_id
                """
            )
            return {r[0]: int(r[1] or 0) for r in cur.fetchall()}


# -------------------------
# Pedidos
# -------------------------

class PedidoRepo(_Repo):
    def insert(self, row: Dict[str, Any]) -> str:
        r = _as_dict(row)
        payload = {
            "id": novo_id(),
            "produto_id": r["produto_id"],
            "quantidade": int(r["quantidade"]),
            "solicitante_id": r["solicitante_id"],
            "motivo": r.get("motivo"),
            "created_at": agora(),
        }
        with self._session() as c:
            c.execute(
                """
                INSERT INTO pedidos
                    (id, produto_id, quantidade, solicitante_id, motivo, status, created_at)
                VALUES
                    (:id, :produto_id, :quantidade, :solicitante_id, :motivo, 'pendente', :created_at)
                """,
                payload,
            )
        return payload["id"]

    def get(self, pedido_id: str) -> Optional[Dict[str, Any]]:
        with self._session() as c:
            return _one(c.execute("SELECT * FROM vw_pedidos_detalhe WHERE id = ?", (pedido_id,)))

    def get_all(self) -> List[Dict[str, Any]]:
        with self._session() as c:
            return _rows(c.execute("SELECT * FROM vw_pedidos_detalhe ORDER BY created_at DESC"))

    def atualizar_status(
        self,
        pedido_id: str,
        de: str,
        para: str,
        aprovador_id: Optional[str] = None,
        registrar_decisao: bool = False,
    ) -> int:
        """Move o pedido de ``de`` para ``para``; 0 linhas se o status mudou antes."""
        sql = "UPDATE pedidos SET status = :para"
        params: Dict[str, Any] = {"para": para, "id": pedido_id, "de": de}
        if registrar_decisao:
            sql += ", data_aprovacao = :ts, aprovador_id = :aprovador_id"
            params.update({"ts": agora(), "aprovador_id": aprovador_id})
        sql += " WHERE id = :id AND status = :de"
        with self._session() as c:
            return c.execute(sql, params).rowcount

    def contar_por_status(self) -> Dict[str, int]:
        with self._session() as c:
            cur = c.execute("SELECT status, COUNT(*) FROM pedidos GROUP BY status")
            return {r[0]: int(r[1]) for r in cur.fetchall()}

# brindes/infra/migrations.py
"""
Migrações de schema usando PRAGMA user_version.

V1: tabelas base (perfis, papéis, credenciais, catálogo, movimentações, pedidos)
V2: colunas de auditoria do pedido (aprovador e data) e índices de busca
"""

from __future__ import annotations

from typing import List
from .db import connect


SCHEMA_V1: List[str] = [
    # Perfis (um por identidade)
    """
    CREATE TABLE IF NOT EXISTS profiles (
        id TEXT PRIMARY KEY,
        nome TEXT NOT NULL,
        cargo TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );
    """,
    # Credenciais do provedor de identidade
    """
    CREATE TABLE IF NOT EXISTS auth_users (
        id TEXT PRIMARY KEY,
        email TEXT NOT NULL UNIQUE,
        senha_hash TEXT NOT NULL,
        created_at TEXT NOT NULL,
        FOREIGN KEY (id) REFERENCES profiles(id) ON DELETE CASCADE
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS auth_sessions (
        token TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        created_at TEXT NOT NULL,
        FOREIGN KEY (user_id) REFERENCES auth_users(id) ON DELETE CASCADE
    );
    """,
    # Papel efetivo (no máximo um por identidade)
    """
    CREATE TABLE IF NOT EXISTS user_roles (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id TEXT NOT NULL UNIQUE,
        role TEXT NOT NULL CHECK (role IN ('admin', 'operario', 'usuario')),
        FOREIGN KEY (user_id) REFERENCES profiles(id) ON DELETE CASCADE
    );
    """,
    # Catálogo
    """
    CREATE TABLE IF NOT EXISTS categorias (
        id TEXT PRIMARY KEY,
        nome TEXT NOT NULL UNIQUE,
        created_at TEXT NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS produtos (
        id TEXT PRIMARY KEY,
        codigo TEXT NOT NULL UNIQUE,
        nome TEXT NOT NULL,
        categoria_id TEXT,
        quantidade INTEGER NOT NULL DEFAULT 0 CHECK (quantidade >= 0),
        estoque_minimo INTEGER NOT NULL DEFAULT 0 CHECK (estoque_minimo >= 0),
        localizacao TEXT,
        fornecedor TEXT,
        descricao TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        FOREIGN KEY (categoria_id) REFERENCES categorias(id) ON DELETE SET NULL
    );
    """,
    # Razão de movimentações (somente inserção)
    """
    CREATE TABLE IF NOT EXISTS movimentacoes (
        id TEXT PRIMARY KEY,
        produto_id TEXT NOT NULL,
        tipo TEXT NOT NULL CHECK (tipo IN ('entrada', 'saida')),
        quantidade INTEGER NOT NULL CHECK (quantidade > 0),
        observacao TEXT,
        usuario_id TEXT NOT NULL,
        created_at TEXT NOT NULL,
        FOREIGN KEY (produto_id) REFERENCES produtos(id),
        FOREIGN KEY (usuario_id) REFERENCES profiles(id)
    );
    """,
    # Pedidos
    """
    CREATE TABLE IF NOT EXISTS pedidos (
        id TEXT PRIMARY KEY,
        produto_id TEXT NOT NULL,
        quantidade INTEGER NOT NULL CHECK (quantidade BETWEEN 1 AND 100000),
        solicitante_id TEXT NOT NULL,
        motivo TEXT,
        status TEXT NOT NULL DEFAULT 'pendente'
            CHECK (status IN ('pendente', 'aprovado', 'rejeitada', 'finalizado', 'concluido')),
        created_at TEXT NOT NULL,
        FOREIGN KEY (produto_id) REFERENCES produtos(id),
        FOREIGN KEY (solicitante_id) REFERENCES profiles(id)
    );
    """,
]


def _ensure_column(conn, table: str, column: str, ddl: str) -> None:
    """Adiciona coluna se não existir."""
    cur = conn.execute(f"PRAGMA table_info({table});")
    cols = [r[1] for r in cur.fetchall()]  # r[1] é o nome da coluna
    if column not in cols:
        conn.execute(f"ALTER TABLE {table} ADD COLUMN {ddl};")


def _apply_v1(conn) -> None:
    for sql in SCHEMA_V1:
        conn.executescript(sql)


def _apply_v2(conn) -> None:
    # pedidos: quem decidiu e quando
    _ensure_column(conn, "pedidos", "data_aprovacao", "data_aprovacao TEXT")
    _ensure_column(conn, "pedidos", "aprovador_id", "aprovador_id TEXT REFERENCES profiles(id)")
    conn.executescript(
        """
        CREATE INDEX IF NOT EXISTS idx_pedidos_status      ON pedidos(status);
        CREATE INDEX IF NOT EXISTS idx_pedidos_solicitante ON pedidos(solicitante_id);
        CREATE INDEX IF NOT EXISTS idx_mov_produto         ON movimentacoes(produto_id);
        CREATE INDEX IF NOT EXISTS idx_mov_created         ON movimentacoes(created_at);
        CREATE INDEX IF NOT EXISTS idx_produtos_nome       ON produtos(nome);
        """
    )


def apply_migrations(db_path: str) -> None:
    """Aplica migrações incrementais de acordo com PRAGMA user_version."""
    with connect(db_path) as conn:
        ver = conn.execute("PRAGMA user_version;").fetchone()[0] or 0

        if ver < 1:
            _apply_v1(conn)
            conn.execute("PRAGMA user_version = 1;")
            ver = 1

        if ver < 2:
            _apply_v2(conn)
            conn.execute("PRAGMA user_version = 2;")
            ver = 2

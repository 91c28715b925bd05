# brindes/infra/db.py
"""
Utilidades de conexão SQLite.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from typing import Iterator

from brindes.domain.errors import RemoteOperationError


@contextmanager
def connect(db_path: str, immediate: bool = False) -> Iterator[sqlite3.Connection]:
    """
    Context manager para abrir conexão SQLite com:
    - foreign_keys ON
    - row_factory = sqlite3.Row
    - commit ao sair (rollback em caso de exceção)
    - ``immediate=True`` abre a transação com BEGIN IMMEDIATE (trava de escrita
      desde a primeira leitura, usada nos fluxos ler-verificar-gravar)

    Erros do sqlite3 saem como RemoteOperationError.
    """
    try:
        conn = sqlite3.connect(db_path)
    except sqlite3.Error as exc:
        raise RemoteOperationError(f"Falha ao abrir o banco: {exc}") from exc
    try:
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON;")
        if immediate:
            conn.execute("BEGIN IMMEDIATE;")
        yield conn
        conn.commit()
    except sqlite3.Error as exc:
        conn.rollback()
        raise RemoteOperationError(str(exc)) from exc
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()

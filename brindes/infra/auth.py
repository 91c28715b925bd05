# brindes/infra/auth.py
"""
Provedor de identidade local.

Guarda credenciais (hash werkzeug) e sessões no mesmo SQLite do sistema.
O token da sessão ativa fica num arquivo JSON do lado do cliente, de modo que
cada comando da CLI reabre a sessão sem estado global em memória.

Operações:
- sign_up(email, senha, nome)  -> id da identidade (papel inicial 'usuario')
- sign_in(email, senha)        -> Sessao
- current_user()               -> Identidade | None
- update_password(nova)
- sign_out()
"""

from __future__ import annotations

import json
import secrets
from pathlib import Path
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from brindes.config import DB_PATH, DEFAULTS, session_path
from brindes.domain.errors import AuthorizationError, ValidationError
from brindes.domain.models import Identidade, Sessao, USUARIO
from brindes.infra.db import connect
from brindes.infra.logger import log_database_operation, log_system_event
from brindes.infra.repositories import PapelRepo, PerfilRepo, agora, novo_id


def _normaliza_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


class AuthProvider:
    def __init__(self, db_path: str = DB_PATH, sessao_path: Optional[str] = None):
        self.db_path = db_path
        self.sessao_path = Path(sessao_path or session_path())

    # --------- arquivo de sessão ---------
    def _ler_token(self) -> Optional[str]:
        if not self.sessao_path.exists():
            return None
        try:
            data = json.loads(self.sessao_path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return None
        return data.get("token")

    def _gravar_token(self, token: Optional[str]) -> None:
        if token is None:
            self.sessao_path.unlink(missing_ok=True)
            return
        self.sessao_path.parent.mkdir(parents=True, exist_ok=True)
        self.sessao_path.write_text(json.dumps({"token": token}), encoding="utf-8")

    # --------- operações ---------
    def sign_up(self, email: str, senha: str, nome: str, cargo: Optional[str] = None) -> str:
        """Cria identidade, perfil e papel padrão numa única transação."""
        email = _normaliza_email(email)
        nome = (nome or "").strip()
        if not email or not senha or not nome:
            raise ValidationError("Preencha nome, e-mail e senha")
        if len(senha) < DEFAULTS.tamanho_minimo_senha:
            raise ValidationError(f"A senha deve ter pelo menos {DEFAULTS.tamanho_minimo_senha} caracteres")

        user_id = novo_id()
        with connect(self.db_path, immediate=True) as c:
            if c.execute("SELECT 1 FROM auth_users WHERE email = ?", (email,)).fetchone():
                raise ValidationError(f"E-mail já cadastrado: {email}")
            PerfilRepo(self.db_path, conn=c).insert(user_id, nome, cargo)
            c.execute(
                "INSERT INTO auth_users (id, email, senha_hash, created_at) VALUES (?, ?, ?, ?)",
                (user_id, email, generate_password_hash(senha), agora()),
            )
            PapelRepo(self.db_path, conn=c).set_role(user_id, USUARIO)
        log_database_operation("auth_users", "INSERT", 1, email=email)
        log_system_event("sign_up", {"user_id": user_id, "email": email})
        return user_id

    def sign_in(self, email: str, senha: str) -> Sessao:
        email = _normaliza_email(email)
        with connect(self.db_path) as c:
            row = c.execute(
                "SELECT id, senha_hash FROM auth_users WHERE email = ?", (email,)
            ).fetchone()
            if row is None or not check_password_hash(row["senha_hash"], senha or ""):
                log_system_event("sign_in_failed", {"email": email}, level="warning")
                raise AuthorizationError("E-mail ou senha inválidos")
            token = secrets.token_urlsafe(32)
            c.execute(
                "INSERT INTO auth_sessions (token, user_id, created_at) VALUES (?, ?, ?)",
                (token, row["id"], agora()),
            )
        self._gravar_token(token)
        log_system_event("sign_in", {"user_id": row["id"]})
        return Sessao(token=token, user_id=row["id"], email=email)

    def sign_out(self) -> None:
        token = self._ler_token()
        if token:
            with connect(self.db_path) as c:
                c.execute("DELETE FROM auth_sessions WHERE token = ?", (token,))
        self._gravar_token(None)

    def current_user(self) -> Optional[Identidade]:
        token = self._ler_token()
        if not token:
            return None
        with connect(self.db_path) as c:
            row = c.execute(
                """
                SELECT u.id, u.email, p.nome
                FROM auth_sessions s
                JOIN auth_users u    ON u.id = s.user_id
                LEFT JOIN profiles p ON p.id = u.id
                WHERE s.token = ?
                """,
                (token,),
            ).fetchone()
        if row is None:
            return None
        return Identidade(id=row["id"], email=row["email"], nome=row["nome"])

    def update_password(self, nova: str) -> None:
        user = self.current_user()
        if user is None:
            raise AuthorizationError("Nenhum usuário autenticado")
        if not nova or len(nova) < DEFAULTS.tamanho_minimo_senha:
            raise ValidationError(f"A senha deve ter pelo menos {DEFAULTS.tamanho_minimo_senha} caracteres")
        with connect(self.db_path) as c:
            c.execute(
                "UPDATE auth_users SET senha_hash = ? WHERE id = ?",
                (generate_password_hash(nova), user.id),
            )
        log_system_event("password_updated", {"user_id": user.id})

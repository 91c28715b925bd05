# brindes/usecases/usuarios.py
"""
UC: usuários, papéis e configurações de conta.

- listar_usuarios():   gestão; perfis com papel efetivo (padrão 'usuario').
- alterar_papel():     gestão; cria ou atualiza o papel do usuário.
- alterar_senha():     qualquer usuário logado.
- cadastrar_usuario(): somente admin; cria a conta e aplica o papel escolhido.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from brindes.config import DB_PATH, DEFAULTS
from brindes.domain.errors import ValidationError
from brindes.domain.models import PAPEIS, USUARIO, Contexto
from brindes.domain.policies import exigir_admin, exigir_gestao
from brindes.infra.auth import AuthProvider
from brindes.infra.db import connect
from brindes.infra.logger import log_database_operation, log_system_event
from brindes.infra.repositories import PapelRepo, PerfilRepo


ROTULOS_PAPEL = {
    "admin": "Administrador",
    "operario": "Operário",
    "usuario": "Usuário",
}


def _validar_papel(papel: str) -> str:
    p = (papel or "").strip().lower()
    if p not in PAPEIS:
        raise ValidationError(f"Papel inválido: {papel!r} (use {', '.join(PAPEIS)})")
    return p


def listar_usuarios(contexto: Contexto, db_path: str = DB_PATH) -> List[Dict[str, Any]]:
    exigir_gestao(contexto, "listar usuários")
    with connect(db_path) as c:
        perfis = PerfilRepo(db_path, conn=c).get_all()
        papeis = PapelRepo(db_path, conn=c).map_by_user()
    return [
        {
            "id": p["id"],
            "nome": p["nome"],
            "cargo": p["cargo"],
            "papel": papeis.get(p["id"], DEFAULTS.papel_padrao),
            "created_at": p["created_at"],
        }
        for p in perfis
    ]


def alterar_papel(contexto: Contexto, user_id: str, papel: str, db_path: str = DB_PATH) -> Dict[str, Any]:
    exigir_gestao(contexto, "alterar papéis")
    papel = _validar_papel(papel)
    with connect(db_path) as c:
        if PerfilRepo(db_path, conn=c).get(user_id) is None:
            raise ValidationError(f"Usuário não encontrado: {user_id}")
        PapelRepo(db_path, conn=c).set_role(user_id, papel)
    log_database_operation("user_roles", "UPSERT", 1, user_id=user_id, role=papel)
    log_system_event("role_changed", {"user_id": user_id, "role": papel, "por": contexto.identidade})
    return {"user_id": user_id, "papel": papel}


def alterar_senha(auth: AuthProvider, nova: Optional[str], confirmacao: Optional[str]) -> None:
    if not nova or not confirmacao:
        raise ValidationError("Preencha todos os campos")
    if nova != confirmacao:
        raise ValidationError("As senhas não coincidem")
    if len(nova) < DEFAULTS.tamanho_minimo_senha:
        raise ValidationError(f"A senha deve ter pelo menos {DEFAULTS.tamanho_minimo_senha} caracteres")
    auth.update_password(nova)


def cadastrar_usuario(
    contexto: Contexto,
    auth: AuthProvider,
    nome: str,
    email: str,
    senha: str,
    papel: str = USUARIO,
) -> Dict[str, Any]:
    exigir_admin(contexto, "cadastrar usuários")
    papel = _validar_papel(papel)
    if not nome or not email or not senha:
        raise ValidationError("Preencha todos os campos")
    user_id = auth.sign_up(email, senha, nome)
    if papel != USUARIO:
        PapelRepo(auth.db_path).set_role(user_id, papel)
    log_system_event("user_created", {"user_id": user_id, "role": papel, "por": contexto.identidade})
    return {"user_id": user_id, "nome": nome, "email": email.strip().lower(), "papel": papel}

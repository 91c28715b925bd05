# brindes/usecases/papeis.py
"""
UC: resolver o papel do usuário e montar o contexto da operação.

- resolver_papel(user_id): papel efetivo; na ausência de registro ou em
  qualquer falha de leitura devolve 'usuario' (menor privilégio).
- carregar_contexto(auth): Contexto(identidade, papel) do usuário logado,
  montado a cada operação de topo.
"""

from __future__ import annotations

from typing import Optional

from brindes.config import DB_PATH, DEFAULTS
from brindes.domain.errors import AuthorizationError
from brindes.domain.models import PAPEIS, Contexto
from brindes.infra.auth import AuthProvider
from brindes.infra.logger import log_system_event
from brindes.infra.repositories import PapelRepo


def resolver_papel(user_id: Optional[str], db_path: str = DB_PATH) -> str:
    if not user_id:
        return DEFAULTS.papel_padrao
    try:
        papel = PapelRepo(db_path).get_role(user_id)
    except Exception as e:
        log_system_event("role_lookup_failed", {"user_id": user_id, "error": str(e)}, level="warning")
        return DEFAULTS.papel_padrao
    if papel not in PAPEIS:
        return DEFAULTS.papel_padrao
    return papel


def carregar_contexto(auth: AuthProvider) -> Contexto:
    """Contexto do usuário autenticado; exige sessão ativa."""
    user = auth.current_user()
    if user is None:
        raise AuthorizationError("Faça login para continuar")
    return Contexto(identidade=user.id, papel=resolver_papel(user.id, auth.db_path))

from pathlib import Path

import pytest

from brindes.domain.models import ADMIN, OPERARIO, USUARIO, Contexto
from brindes.infra.auth import AuthProvider
from brindes.infra.migrations import apply_migrations
from brindes.infra.repositories import PapelRepo
from brindes.infra.views import create_views
from brindes.usecases.catalogo import cadastrar_brinde


SENHA = "segredo123"


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    path = str(tmp_path / "brindes_test.sqlite")
    apply_migrations(path)
    create_views(path)
    return path


@pytest.fixture
def auth(db_path, tmp_path, monkeypatch) -> AuthProvider:
    monkeypatch.setenv("BRINDES_SESSAO", str(tmp_path / "sessao.json"))
    return AuthProvider(db_path)


@pytest.fixture
def usuarios(auth, db_path):
    """Uma conta por papel, mais um segundo usuário comum."""
    ids = {
        "admin": auth.sign_up("admin@empresa.com", SENHA, "Ana Admin"),
        "operario": auth.sign_up("operario@empresa.com", SENHA, "Otto Operário"),
        "usuario": auth.sign_up("usuario@empresa.com", SENHA, "Uma Usuária"),
        "outro": auth.sign_up("outro@empresa.com", SENHA, "Oto Outro"),
    }
    papeis = PapelRepo(db_path)
    papeis.set_role(ids["admin"], ADMIN)
    papeis.set_role(ids["operario"], OPERARIO)
    return ids


@pytest.fixture
def ctx_admin(usuarios) -> Contexto:
    return Contexto(identidade=usuarios["admin"], papel=ADMIN)


@pytest.fixture
def ctx_operario(usuarios) -> Contexto:
    return Contexto(identidade=usuarios["operario"], papel=OPERARIO)


@pytest.fixture
def ctx_usuario(usuarios) -> Contexto:
    return Contexto(identidade=usuarios["usuario"], papel=USUARIO)


@pytest.fixture
def ctx_outro(usuarios) -> Contexto:
    return Contexto(identidade=usuarios["outro"], papel=USUARIO)


@pytest.fixture
def produto(db_path, ctx_admin):
    """Caneta com 50 unidades (lançadas como entrada) e mínimo 10."""
    return cadastrar_brinde(ctx_admin, {
        "codigo": "BR-001",
        "nome": "Caneta Personalizada",
        "quantidade": 50,
        "estoque_minimo": 10,
    }, db_path=db_path)

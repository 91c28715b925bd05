import pytest

from brindes.domain.errors import AuthorizationError
from brindes.infra.db import connect
from brindes.infra.repositories import PapelRepo
from brindes.usecases.papeis import carregar_contexto, resolver_papel



def test_papel_registrado(db_path, usuarios):
    assert resolver_papel(usuarios["admin"], db_path) == "admin"
    assert resolver_papel(usuarios["operario"], db_path) == "operario"
    assert resolver_papel(usuarios["usuario"], db_path) == "usuario"


def test_sem_registro_vira_usuario(db_path):
    assert resolver_papel("desconhecido", db_path) == "usuario"
    assert resolver_papel(None, db_path) == "usuario"


def test_papel_desconhecido_vira_usuario(db_path, usuarios):
    with connect(db_path) as c:
        c.execute("PRAGMA ignore_check_constraints = ON")
        c.execute("UPDATE user_roles SET role = 'superuser' WHERE user_id = ?", (usuarios["admin"],))
    assert resolver_papel(usuarios["admin"], db_path) == "usuario"


def test_falha_de_leitura_vira_usuario(tmp_path):
    banco_vazio = str(tmp_path / "sem_tabelas.sqlite")
    assert resolver_papel("qualquer", banco_vazio) == "usuario"


def test_carregar_contexto_exige_login(auth):
    with pytest.raises(AuthorizationError):
        carregar_contexto(auth)


def test_carregar_contexto_relido_a_cada_chamada(auth, db_path, usuarios):
    auth.sign_in("usuario@empresa.com", "segredo123")
    ctx = carregar_contexto(auth)
    assert ctx.identidade == usuarios["usuario"]
    assert ctx.papel == "usuario"
    assert not ctx.pode_gerenciar

    PapelRepo(db_path).set_role(usuarios["usuario"], "operario")
    assert carregar_contexto(auth).papel == "operario"

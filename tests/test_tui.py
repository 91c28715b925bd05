from brindes.adapters.tui import MenuTreeWidget, itens_menu
from brindes.domain.models import ADMIN, OPERARIO, USUARIO, Contexto


def _acoes(contexto):
    return {acao for _, _, folhas in itens_menu(contexto) for _, acao in folhas}


def test_menu_sem_login():
    assert _acoes(None) == {"login"}


def test_menu_usuario_comum():
    acoes = _acoes(Contexto("u1", USUARIO))
    assert {"ver-brindes", "ver-pedidos", "novo-pedido", "alterar-senha", "logout"} <= acoes
    assert not acoes & {"registrar-mov", "importar-brindes", "dashboard", "ver-usuarios"}


def test_menu_gestao():
    for papel in (ADMIN, OPERARIO):
        acoes = _acoes(Contexto("u1", papel))
        assert {"registrar-mov", "ver-movs", "exportar-movs", "importar-brindes", "dashboard"} <= acoes


def test_menu_tree_reflete_papel():
    tree = MenuTreeWidget(Contexto("u1", USUARIO))
    labels = [str(child.label) for child in tree.root.children]
    assert labels == ["Catálogo", "Pedidos", "Conta"]

    tree.setup_menu_tree(Contexto("u1", ADMIN))
    labels = [str(child.label) for child in tree.root.children]
    assert "Movimentação" in labels
    assert "Gestão" in labels

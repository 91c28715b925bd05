import pytest

from brindes.domain.errors import (
    AuthorizationError, InvalidTransitionError, PreconditionFailed, ValidationError
)
from brindes.infra.repositories import MovimentacaoRepo, PedidoRepo, ProdutoRepo
from brindes.usecases.pedidos import (
    aprovar_pedido,
    confirmar_recebimento,
    criar_pedido,
    finalizar_pedido,
    listar_pedidos,
    rejeitar_pedido,
)


def _estoque(db_path, produto):
    return ProdutoRepo(db_path).get(produto["id"])["quantidade"]


def _saidas(db_path, produto):
    return [m for m in MovimentacaoRepo(db_path).listar(produto_id=produto["id"]) if m["tipo"] == "saida"]


def test_criar_pedido_fica_pendente(db_path, ctx_usuario, produto):
    res = criar_pedido(ctx_usuario, produto["id"], 10, "Evento de clientes", db_path=db_path)
    assert res["status"] == "pendente"
    pedido = PedidoRepo(db_path).get(res["pedido_id"])
    assert pedido["solicitante_id"] == ctx_usuario.identidade
    assert pedido["motivo"] == "Evento de clientes"
    assert _estoque(db_path, produto) == 50


@pytest.mark.parametrize("quantidade", [0, -1, 100001, "dez", 2.5, "--5", "²", "1²", 10**20])
def test_criar_pedido_quantidade_invalida(db_path, ctx_usuario, produto, quantidade):
    with pytest.raises(ValidationError):
        criar_pedido(ctx_usuario, produto["id"], quantidade, db_path=db_path)
    assert PedidoRepo(db_path).get_all() == []


def test_criar_pedido_brinde_inexistente(db_path, ctx_usuario):
    with pytest.raises(ValidationError):
        criar_pedido(ctx_usuario, "nao-existe", 1, db_path=db_path)


def test_aprovar_baixa_estoque_e_lanca_saida(db_path, ctx_usuario, ctx_operario, produto):
    pid = criar_pedido(ctx_usuario, produto["id"], 10, db_path=db_path)["pedido_id"]

    res = aprovar_pedido(ctx_operario, pid, db_path=db_path)

    assert res["status"] == "aprovado"
    assert res["estoque_restante"] == 40
    assert _estoque(db_path, produto) == 40
    pedido = PedidoRepo(db_path).get(pid)
    assert pedido["status"] == "aprovado"
    assert pedido["aprovador_id"] == ctx_operario.identidade
    assert pedido["data_aprovacao"]
    saidas = _saidas(db_path, produto)
    assert len(saidas) == 1
    assert saidas[0]["quantidade"] == 10
    assert saidas[0]["observacao"] == f"Pedido #{pid[:8]} aprovado"


def test_aprovar_sem_estoque_nao_altera_nada(db_path, ctx_usuario, ctx_admin, produto):
    pid = criar_pedido(ctx_usuario, produto["id"], 60, db_path=db_path)["pedido_id"]

    with pytest.raises(PreconditionFailed) as exc:
        aprovar_pedido(ctx_admin, pid, db_path=db_path)

    assert exc.value.disponivel == 50
    assert "disponível 50" in str(exc.value)
    assert PedidoRepo(db_path).get(pid)["status"] == "pendente"
    assert _estoque(db_path, produto) == 50
    assert _saidas(db_path, produto) == []


def test_segunda_aprovacao_ve_o_saldo_atualizado(db_path, ctx_usuario, ctx_outro, ctx_operario, produto):
    p1 = criar_pedido(ctx_usuario, produto["id"], 30, db_path=db_path)["pedido_id"]
    p2 = criar_pedido(ctx_outro, produto["id"], 30, db_path=db_path)["pedido_id"]

    aprovar_pedido(ctx_operario, p1, db_path=db_path)
    with pytest.raises(PreconditionFailed) as exc:
        aprovar_pedido(ctx_operario, p2, db_path=db_path)

    assert exc.value.disponivel == 20
    assert _estoque(db_path, produto) == 20
    assert PedidoRepo(db_path).get(p2)["status"] == "pendente"


def test_usuario_comum_nao_aprova(db_path, ctx_usuario, produto):
    pid = criar_pedido(ctx_usuario, produto["id"], 5, db_path=db_path)["pedido_id"]
    with pytest.raises(AuthorizationError):
        aprovar_pedido(ctx_usuario, pid, db_path=db_path)
    assert _estoque(db_path, produto) == 50


def test_aprovar_duas_vezes(db_path, ctx_usuario, ctx_operario, produto):
    pid = criar_pedido(ctx_usuario, produto["id"], 5, db_path=db_path)["pedido_id"]
    aprovar_pedido(ctx_operario, pid, db_path=db_path)
    with pytest.raises(InvalidTransitionError):
        aprovar_pedido(ctx_operario, pid, db_path=db_path)
    assert _estoque(db_path, produto) == 45


def test_rejeitar_registra_decisao_sem_mexer_no_estoque(db_path, ctx_usuario, ctx_admin, produto):
    pid = criar_pedido(ctx_usuario, produto["id"], 5, db_path=db_path)["pedido_id"]

    rejeitar_pedido(ctx_admin, pid, db_path=db_path)

    pedido = PedidoRepo(db_path).get(pid)
    assert pedido["status"] == "rejeitada"
    assert pedido["aprovador_id"] == ctx_admin.identidade
    assert pedido["data_aprovacao"]
    assert _estoque(db_path, produto) == 50
    with pytest.raises(InvalidTransitionError):
        aprovar_pedido(ctx_admin, pid, db_path=db_path)


def test_fluxo_completo_ate_concluido(db_path, ctx_usuario, ctx_operario, produto):
    pid = criar_pedido(ctx_usuario, produto["id"], 5, db_path=db_path)["pedido_id"]
    aprovar_pedido(ctx_operario, pid, db_path=db_path)
    assert finalizar_pedido(ctx_operario, pid, db_path=db_path)["status"] == "finalizado"
    assert confirmar_recebimento(ctx_usuario, pid, db_path=db_path)["status"] == "concluido"
    assert PedidoRepo(db_path).get(pid)["status"] == "concluido"
    assert _estoque(db_path, produto) == 45


def test_finalizar_pedido_pendente_falha(db_path, ctx_usuario, ctx_operario, produto):
    pid = criar_pedido(ctx_usuario, produto["id"], 5, db_path=db_path)["pedido_id"]
    with pytest.raises(InvalidTransitionError):
        finalizar_pedido(ctx_operario, pid, db_path=db_path)


def test_so_o_solicitante_confirma(db_path, ctx_usuario, ctx_outro, ctx_admin, produto):
    pid = criar_pedido(ctx_usuario, produto["id"], 5, db_path=db_path)["pedido_id"]
    aprovar_pedido(ctx_admin, pid, db_path=db_path)
    finalizar_pedido(ctx_admin, pid, db_path=db_path)

    for ctx in (ctx_outro, ctx_admin):
        with pytest.raises(AuthorizationError):
            confirmar_recebimento(ctx, pid, db_path=db_path)
    assert PedidoRepo(db_path).get(pid)["status"] == "finalizado"


def test_pedido_inexistente(db_path, ctx_admin):
    with pytest.raises(ValidationError):
        aprovar_pedido(ctx_admin, "nao-existe", db_path=db_path)


def test_listar_pedidos_por_papel(db_path, ctx_usuario, ctx_outro, ctx_operario, produto):
    meu = criar_pedido(ctx_usuario, produto["id"], 1, db_path=db_path)["pedido_id"]
    entregue = criar_pedido(ctx_usuario, produto["id"], 2, db_path=db_path)["pedido_id"]
    alheio = criar_pedido(ctx_outro, produto["id"], 3, db_path=db_path)["pedido_id"]
    aprovar_pedido(ctx_operario, entregue, db_path=db_path)
    finalizar_pedido(ctx_operario, entregue, db_path=db_path)

    gestao = listar_pedidos(ctx_operario, db_path=db_path)
    assert {p["id"] for p in gestao["pedidos"]} == {meu, alheio}
    assert gestao["filtros"] == ["all", "pendente", "aprovado", "rejeitada"]
    assert all(p["acoes"] == ["aprovado", "rejeitada"] for p in gestao["pedidos"])
    assert [b["codigo"] for b in gestao["produtos"]] == ["BR-001"]

    proprios = listar_pedidos(ctx_usuario, db_path=db_path)
    assert {p["id"] for p in proprios["pedidos"]} == {meu, entregue}
    acoes = {p["id"]: p["acoes"] for p in proprios["pedidos"]}
    assert acoes[entregue] == ["concluido"]
    assert acoes[meu] == []

    finalizados = listar_pedidos(ctx_usuario, status="finalizado", db_path=db_path)
    assert [p["id"] for p in finalizados["pedidos"]] == [entregue]


def test_listar_pedidos_filtro_invalido(db_path, ctx_operario, produto):
    with pytest.raises(ValidationError):
        listar_pedidos(ctx_operario, status="concluido", db_path=db_path)

import pytest

from brindes.domain.errors import AuthorizationError, InvalidTransitionError, ValidationError
from brindes.domain.models import ADMIN, OPERARIO, USUARIO, Contexto
from brindes.domain.policies import (
    FILTROS_GESTAO,
    FILTROS_USUARIO,
    acoes_disponiveis,
    aplicar_filtro_status,
    autorizar_transicao,
    filtrar_pedidos,
    pode_gerenciar,
    status_estoque,
    validar_inteiro_positivo,
    validar_quantidade_pedido,
    validar_tipo_movimentacao,
    validar_transicao,
)


ADM = Contexto("u-adm", ADMIN)
OPE = Contexto("u-ope", OPERARIO)
ANA = Contexto("u-ana", USUARIO)
BIA = Contexto("u-bia", USUARIO)


def _pedidos():
    return [
        {"id": "1", "status": "pendente", "solicitante_id": "u-ana"},
        {"id": "2", "status": "aprovado", "solicitante_id": "u-bia"},
        {"id": "3", "status": "finalizado", "solicitante_id": "u-ana"},
        {"id": "4", "status": "concluido", "solicitante_id": "u-bia"},
        {"id": "5", "status": "rejeitada", "solicitante_id": "u-ana"},
    ]


@pytest.mark.parametrize("qtd,minimo,esperado", [
    (0, 10, "sem_estoque"),
    (5, 10, "baixo"),
    (10, 10, "baixo"),
    (11, 10, "normal"),
    (3, 0, "normal"),
    (None, None, "sem_estoque"),
])
def test_status_estoque(qtd, minimo, esperado):
    assert status_estoque(qtd, minimo) == esperado


def test_pode_gerenciar():
    assert pode_gerenciar(ADMIN)
    assert pode_gerenciar(OPERARIO)
    assert not pode_gerenciar(USUARIO)
    assert not pode_gerenciar(None)


def test_validar_quantidade_pedido_limites():
    assert validar_quantidade_pedido(1) == 1
    assert validar_quantidade_pedido(100000) == 100000
    assert validar_quantidade_pedido("25") == 25
    for invalido in (0, -3, 100001, 1.5, "abc", "", None, True, "--5", "²", "1²", " 1 2 "):
        with pytest.raises(ValidationError):
            validar_quantidade_pedido(invalido)


def test_validar_inteiro_positivo_aceita_float_inteiro():
    assert validar_inteiro_positivo(7.0) == 7


def test_validar_tipo_movimentacao():
    assert validar_tipo_movimentacao(" Entrada ") == "entrada"
    assert validar_tipo_movimentacao("saida") == "saida"
    with pytest.raises(ValidationError):
        validar_tipo_movimentacao("ajuste")


def test_arestas_da_maquina_de_estados():
    assert validar_transicao("pendente", "aprovado") == "gestor"
    assert validar_transicao("pendente", "rejeitada") == "gestor"
    assert validar_transicao("aprovado", "finalizado") == "gestor"
    assert validar_transicao("finalizado", "concluido") == "solicitante"


@pytest.mark.parametrize("atual,novo", [
    ("pendente", "finalizado"),
    ("pendente", "concluido"),
    ("aprovado", "rejeitada"),
    ("aprovado", "aprovado"),
    ("rejeitada", "aprovado"),
    ("concluido", "pendente"),
])
def test_transicoes_invalidas(atual, novo):
    with pytest.raises(InvalidTransitionError) as exc:
        validar_transicao(atual, novo)
    assert exc.value.atual == atual
    assert exc.value.novo == novo


def test_autorizar_transicao_por_papel():
    pendente = {"status": "pendente", "solicitante_id": "u-ana"}
    autorizar_transicao(OPE, pendente, "aprovado")
    with pytest.raises(AuthorizationError):
        autorizar_transicao(ANA, pendente, "aprovado")

    finalizado = {"status": "finalizado", "solicitante_id": "u-ana"}
    autorizar_transicao(ANA, finalizado, "concluido")
    for ctx in (BIA, ADM):
        with pytest.raises(AuthorizationError):
            autorizar_transicao(ctx, finalizado, "concluido")


def test_acoes_disponiveis():
    assert acoes_disponiveis(OPE, {"status": "pendente", "solicitante_id": "u-ana"}) == ["aprovado", "rejeitada"]
    assert acoes_disponiveis(ANA, {"status": "pendente", "solicitante_id": "u-ana"}) == []
    assert acoes_disponiveis(ADM, {"status": "aprovado", "solicitante_id": "u-ana"}) == ["finalizado"]
    assert acoes_disponiveis(ANA, {"status": "finalizado", "solicitante_id": "u-ana"}) == ["concluido"]
    assert acoes_disponiveis(ADM, {"status": "finalizado", "solicitante_id": "u-ana"}) == []


def test_filtro_gestao_oculta_entregues():
    visao = filtrar_pedidos(OPE, _pedidos())
    assert [p["id"] for p in visao.visiveis] == ["1", "2", "5"]
    assert visao.filtros == FILTROS_GESTAO


def test_filtro_usuario_ve_apenas_os_proprios():
    visao = filtrar_pedidos(ANA, _pedidos())
    assert [p["id"] for p in visao.visiveis] == ["1", "3", "5"]
    assert visao.filtros == FILTROS_USUARIO


def test_aplicar_filtro_status():
    visao = filtrar_pedidos(ANA, _pedidos())
    assert [p["id"] for p in aplicar_filtro_status(visao)] == ["1", "3", "5"]
    assert [p["id"] for p in aplicar_filtro_status(visao, "finalizado")] == ["3"]
    assert aplicar_filtro_status(visao, "aprovado") == []


def test_filtro_indisponivel_para_gestao():
    visao = filtrar_pedidos(ADM, _pedidos())
    with pytest.raises(ValidationError):
        aplicar_filtro_status(visao, "finalizado")

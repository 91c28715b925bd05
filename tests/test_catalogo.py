from pathlib import Path

import pandas as pd
import pytest

from brindes.domain.errors import AuthorizationError, ValidationError
from brindes.domain.models import Produto
from brindes.infra.repositories import MovimentacaoRepo, ProdutoRepo
from brindes.usecases.catalogo import (
    OBSERVACAO_CADASTRO,
    atualizar_brinde,
    cadastrar_brinde,
    criar_categoria,
    excluir_brinde,
    importar_brindes,
    listar_brindes,
    listar_categorias,
)
from brindes.usecases.pedidos import criar_pedido


def test_cadastro_lanca_estoque_inicial_no_razao(db_path, produto):
    assert produto["quantidade"] == 50
    movs = MovimentacaoRepo(db_path).listar(produto_id=produto["id"])
    assert len(movs) == 1
    assert movs[0]["tipo"] == "entrada"
    assert movs[0]["quantidade"] == 50
    assert movs[0]["observacao"] == OBSERVACAO_CADASTRO
    assert MovimentacaoRepo(db_path).saldo_por_produto()[produto["id"]] == 50


def test_cadastro_sem_estoque_inicial_nao_gera_movimentacao(db_path, ctx_operario):
    res = cadastrar_brinde(ctx_operario, Produto(codigo="BR-002", nome="Chaveiro"), db_path=db_path)
    assert ProdutoRepo(db_path).get(res["id"])["quantidade"] == 0
    assert MovimentacaoRepo(db_path).listar(produto_id=res["id"]) == []


def test_cadastro_validacoes(db_path, ctx_admin, produto):
    with pytest.raises(ValidationError):
        cadastrar_brinde(ctx_admin, {"codigo": "BR-001", "nome": "Repetido"}, db_path=db_path)
    with pytest.raises(ValidationError):
        cadastrar_brinde(ctx_admin, {"codigo": "", "nome": "Sem código"}, db_path=db_path)
    with pytest.raises(ValidationError):
        cadastrar_brinde(ctx_admin, {"codigo": "BR-009", "nome": "Negativo", "quantidade": -1}, db_path=db_path)
    with pytest.raises(ValidationError):
        cadastrar_brinde(ctx_admin, {"codigo": "BR-009", "nome": "X", "categoria_id": "nao-existe"}, db_path=db_path)
    with pytest.raises(ValidationError):
        cadastrar_brinde(ctx_admin, {"codigo": "BR-009", "nome": "Enorme", "quantidade": 10**20}, db_path=db_path)
    with pytest.raises(ValidationError):
        cadastrar_brinde(ctx_admin, {"codigo": "BR-009", "nome": "Mínimo", "estoque_minimo": "1²"}, db_path=db_path)
    assert ProdutoRepo(db_path).get_by_codigo("BR-009") is None


def test_usuario_comum_nao_cadastra(db_path, ctx_usuario):
    with pytest.raises(AuthorizationError):
        cadastrar_brinde(ctx_usuario, {"codigo": "BR-003", "nome": "Boné"}, db_path=db_path)


def test_listar_brindes_com_busca_e_categoria(db_path, ctx_admin, produto):
    cat = criar_categoria(ctx_admin, "Vestuário", db_path=db_path)
    cadastrar_brinde(ctx_admin, {"codigo": "BR-010", "nome": "Camiseta", "categoria_id": cat["id"],
                                 "quantidade": 3, "estoque_minimo": 5}, db_path=db_path)

    todos = listar_brindes(db_path=db_path)
    assert [b["nome"] for b in todos] == ["Camiseta", "Caneta Personalizada"]
    assert todos[0]["status"] == "baixo"
    assert todos[1]["categoria"] == "Sem categoria"

    assert [b["codigo"] for b in listar_brindes(busca="cane", db_path=db_path)] == ["BR-001"]
    assert [b["codigo"] for b in listar_brindes(categoria_id=cat["id"], db_path=db_path)] == ["BR-010"]


def test_atualizar_nao_mexe_na_quantidade(db_path, ctx_operario, produto):
    with pytest.raises(ValidationError):
        atualizar_brinde(ctx_operario, produto["id"], {"quantidade": 999}, db_path=db_path)
    with pytest.raises(ValidationError):
        atualizar_brinde(ctx_operario, produto["id"], {"created_at": "x"}, db_path=db_path)

    rec = atualizar_brinde(ctx_operario, produto["id"], {"nome": "Caneta Azul", "estoque_minimo": 20},
                           db_path=db_path)
    assert rec["nome"] == "Caneta Azul"
    assert rec["estoque_minimo"] == 20
    assert rec["quantidade"] == 50


def test_atualizar_codigo_duplicado(db_path, ctx_admin, produto):
    outro = cadastrar_brinde(ctx_admin, {"codigo": "BR-002", "nome": "Chaveiro"}, db_path=db_path)
    with pytest.raises(ValidationError):
        atualizar_brinde(ctx_admin, outro["id"], {"codigo": "BR-001"}, db_path=db_path)


def test_excluir_brinde(db_path, ctx_admin, ctx_usuario, produto):
    livre = cadastrar_brinde(ctx_admin, {"codigo": "BR-002", "nome": "Chaveiro"}, db_path=db_path)
    excluir_brinde(ctx_admin, livre["id"], db_path=db_path)
    assert ProdutoRepo(db_path).get(livre["id"]) is None

    # produto com entrada inicial no razão
    with pytest.raises(ValidationError):
        excluir_brinde(ctx_admin, produto["id"], db_path=db_path)

    pedido_only = cadastrar_brinde(ctx_admin, {"codigo": "BR-003", "nome": "Boné"}, db_path=db_path)
    criar_pedido(ctx_usuario, pedido_only["id"], 1, db_path=db_path)
    with pytest.raises(ValidationError):
        excluir_brinde(ctx_admin, pedido_only["id"], db_path=db_path)


def test_categorias(db_path, ctx_operario, ctx_usuario):
    criar_categoria(ctx_operario, "Escritório", db_path=db_path)
    with pytest.raises(ValidationError):
        criar_categoria(ctx_operario, "escritório", db_path=db_path)
    with pytest.raises(ValidationError):
        criar_categoria(ctx_operario, "  ", db_path=db_path)
    with pytest.raises(AuthorizationError):
        criar_categoria(ctx_usuario, "Outra", db_path=db_path)
    assert [c["nome"] for c in listar_categorias(db_path=db_path)] == ["Escritório"]


def test_importar_brindes(db_path, ctx_admin, produto, tmp_path: Path):
    planilha = tmp_path / "brindes.xlsx"
    pd.DataFrame([
        {"Código": "BR-001", "Nome": "Caneta Premium", "Categoria": "Escritório", "Qtd": 999, "Estoque Mínimo": 15},
        {"Código": "BR-020", "Nome": "Caderno", "Categoria": "Escritório", "Qtd": 12, "Estoque Mínimo": 2},
        {"Código": "BR-021", "Nome": "Squeeze", "Categoria": "", "Qtd": "abc", "Estoque Mínimo": 1},
        {"Código": "", "Nome": "Sem código", "Categoria": "", "Qtd": 1, "Estoque Mínimo": 0},
    ]).to_excel(planilha, index=False)

    res = importar_brindes(ctx_admin, str(planilha), db_path=db_path)

    assert res["total"] == 4
    assert res["criados"] == 1
    assert res["atualizados"] == 1
    assert res["sucessos"] == 2
    assert [e["linha"] for e in res["erros"]] == [4, 5]

    existente = ProdutoRepo(db_path).get(produto["id"])
    assert existente["nome"] == "Caneta Premium"
    assert existente["estoque_minimo"] == 15
    assert existente["quantidade"] == 50

    caderno = ProdutoRepo(db_path).get_by_codigo("BR-020")
    assert caderno["quantidade"] == 12
    assert MovimentacaoRepo(db_path).saldo_por_produto()[caderno["id"]] == 12
    assert [c["nome"] for c in listar_categorias(db_path=db_path)] == ["Escritório"]


def test_importar_mantem_campos_ausentes_na_planilha(db_path, ctx_admin, tmp_path: Path):
    original = cadastrar_brinde(ctx_admin, {
        "codigo": "BR-030",
        "nome": "Mochila",
        "localizacao": "Prateleira B2",
        "fornecedor": "Brindes SA",
        "descricao": "Mochila com logo bordado",
    }, db_path=db_path)
    planilha = tmp_path / "brindes.xlsx"
    pd.DataFrame([
        {"Código": "BR-030", "Nome": "Mochila Executiva", "Qtd": 0, "Estoque Mínimo": 3},
    ]).to_excel(planilha, index=False)

    res = importar_brindes(ctx_admin, str(planilha), db_path=db_path)

    assert res["atualizados"] == 1
    atual = ProdutoRepo(db_path).get(original["id"])
    assert atual["nome"] == "Mochila Executiva"
    assert atual["estoque_minimo"] == 3
    assert atual["localizacao"] == "Prateleira B2"
    assert atual["fornecedor"] == "Brindes SA"
    assert atual["descricao"] == "Mochila com logo bordado"


def test_importar_exige_gestao(db_path, ctx_usuario, tmp_path: Path):
    planilha = tmp_path / "brindes.csv"
    planilha.write_text("codigo,nome\nBR-1,Caneta\n", encoding="utf-8")
    with pytest.raises(AuthorizationError):
        importar_brindes(ctx_usuario, str(planilha), db_path=db_path)

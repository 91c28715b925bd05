# brindes/usecases/catalogo.py
"""
UC: catálogo de brindes e categorias.

- listar_brindes(busca, categoria_id): qualquer papel; inclui status de estoque.
- cadastrar_brinde / atualizar_brinde / excluir_brinde: gestão.
- listar_categorias / criar_categoria.
- importar_brindes(path): carga em lote a partir de XLSX/CSV.

Obs.:
- O estoque inicial de um cadastro entra como 'entrada' no razão, para que
  Σentradas − Σsaídas sempre explique a quantidade em estoque.
- A edição não altera quantidade; isso só acontece por movimentação.
"""

from __future__ import annotations

from dataclasses import asdict, is_dataclass
from typing import Any, Dict, List, Optional

from brindes.config import DB_PATH, DEFAULTS
from brindes.adapters.planilha_loader import load_brindes
from brindes.domain.errors import BrindesError, ValidationError
from brindes.domain.models import ENTRADA, Contexto, Produto
from brindes.domain.policies import exigir_gestao, validar_inteiro_nao_negativo
from brindes.infra.db import connect
from brindes.infra.logger import log_database_operation, log_file_operation, log_system_event
from brindes.infra.repositories import CategoriaRepo, ProdutoRepo
from brindes.usecases.movimentacoes import lancar_movimento


OBSERVACAO_CADASTRO = "Cadastro inicial"

_CAMPOS_EDITAVEIS = (
    "codigo", "nome", "categoria_id", "estoque_minimo",
    "localizacao", "fornecedor", "descricao",
)


def _texto(val: Any) -> Optional[str]:
    if val is None:
        return None
    s = str(val).strip()
    return s or None


def listar_brindes(
    busca: Optional[str] = None,
    categoria_id: Optional[str] = None,
    db_path: str = DB_PATH,
) -> List[Dict[str, Any]]:
    return ProdutoRepo(db_path).get_all(busca=busca, categoria_id=categoria_id)


def listar_categorias(db_path: str = DB_PATH) -> List[Dict[str, Any]]:
    return CategoriaRepo(db_path).get_all()


def criar_categoria(contexto: Contexto, nome: str, db_path: str = DB_PATH) -> Dict[str, Any]:
    exigir_gestao(contexto, "criar categorias")
    nome = _texto(nome)
    if not nome:
        raise ValidationError("Informe o nome da categoria")
    repo = CategoriaRepo(db_path)
    if repo.get_by_nome(nome):
        raise ValidationError(f"Categoria já existe: {nome}")
    cid = repo.insert(nome)
    log_database_operation("categorias", "INSERT", 1, nome=nome)
    return {"id": cid, "nome": nome}


def cadastrar_brinde(contexto: Contexto, dados: Any, db_path: str = DB_PATH) -> Dict[str, Any]:
    """Cadastra um brinde; ``dados`` pode ser dict ou ``Produto``."""
    exigir_gestao(contexto, "cadastrar brindes")
    r = asdict(dados) if is_dataclass(dados) else dict(dados)
    row = {k: _texto(r.get(k)) for k in ("codigo", "nome", "categoria_id", "localizacao", "fornecedor", "descricao")}
    if not row["codigo"] or not row["nome"]:
        raise ValidationError("Código e nome são obrigatórios")
    row["estoque_minimo"] = validar_inteiro_nao_negativo(
        r.get("estoque_minimo"), "estoque_minimo", DEFAULTS.estoque_maximo
    )
    quantidade = validar_inteiro_nao_negativo(r.get("quantidade"), "quantidade", DEFAULTS.estoque_maximo)

    with connect(db_path, immediate=True) as c:
        produtos = ProdutoRepo(db_path, conn=c)
        if produtos.get_by_codigo(row["codigo"]):
            raise ValidationError(f"Código já cadastrado: {row['codigo']}")
        if row["categoria_id"] and CategoriaRepo(db_path, conn=c).get(row["categoria_id"]) is None:
            raise ValidationError(f"Categoria não encontrada: {row['categoria_id']}")
        produto_id = produtos.insert(row)
        if quantidade > 0:
            lancar_movimento(
                c, produto_id, ENTRADA, quantidade, contexto.identidade, OBSERVACAO_CADASTRO, db_path=db_path
            )
    log_database_operation("produtos", "INSERT", 1, codigo=row["codigo"])
    return {"id": produto_id, "codigo": row["codigo"], "nome": row["nome"], "quantidade": quantidade}


def atualizar_brinde(
    contexto: Contexto,
    produto_id: str,
    campos: Dict[str, Any],
    db_path: str = DB_PATH,
) -> Dict[str, Any]:
    exigir_gestao(contexto, "editar brindes")
    if "quantidade" in campos:
        raise ValidationError("A quantidade só muda por movimentação de entrada/saída")
    sets: Dict[str, Any] = {}
    for k, v in campos.items():
        if k not in _CAMPOS_EDITAVEIS:
            raise ValidationError(f"Campo não editável: {k}")
        sets[k] = _texto(v)
    if "estoque_minimo" in sets:
        sets["estoque_minimo"] = validar_inteiro_nao_negativo(
            campos["estoque_minimo"], "estoque_minimo", DEFAULTS.estoque_maximo
        )
    for obrigatorio in ("codigo", "nome"):
        if obrigatorio in sets and not sets[obrigatorio]:
            raise ValidationError(f"{obrigatorio} não pode ficar vazio")

    with connect(db_path) as c:
        produtos = ProdutoRepo(db_path, conn=c)
        if produtos.get(produto_id) is None:
            raise ValidationError(f"Brinde não encontrado: {produto_id}")
        if sets.get("codigo"):
            outro = produtos.get_by_codigo(sets["codigo"])
            if outro and outro["id"] != produto_id:
                raise ValidationError(f"Código já cadastrado: {sets['codigo']}")
        if sets.get("categoria_id") and CategoriaRepo(db_path, conn=c).get(sets["categoria_id"]) is None:
            raise ValidationError(f"Categoria não encontrada: {sets['categoria_id']}")
        produtos.update(produto_id, sets)
        atualizado = produtos.get(produto_id)
    log_database_operation("produtos", "UPDATE", 1, produto_id=produto_id, campos=list(sets))
    return atualizado


def excluir_brinde(contexto: Contexto, produto_id: str, db_path: str = DB_PATH) -> None:
    exigir_gestao(contexto, "excluir brindes")
    with connect(db_path) as c:
        produtos = ProdutoRepo(db_path, conn=c)
        if produtos.get(produto_id) is None:
            raise ValidationError(f"Brinde não encontrado: {produto_id}")
        if produtos.contar_referencias(produto_id):
            raise ValidationError("Brinde possui movimentações ou pedidos e não pode ser excluído")
        produtos.delete(produto_id)
    log_database_operation("produtos", "DELETE", 1, produto_id=produto_id)


def _categoria_por_nome(contexto: Contexto, nome: Optional[str], db_path: str) -> Optional[str]:
    if not nome:
        return None
    existente = CategoriaRepo(db_path).get_by_nome(nome)
    if existente:
        return existente["id"]
    return criar_categoria(contexto, nome, db_path=db_path)["id"]


def importar_brindes(contexto: Contexto, path: str, db_path: str = DB_PATH) -> Dict[str, Any]:
    """Importa brindes de XLSX/CSV; cada linha é gravada (ou recusada) isoladamente."""
    exigir_gestao(contexto, "importar brindes")
    log_system_event("importar_brindes_start", {"file_path": path})
    rows = load_brindes(path)
    log_file_operation("import", path, rows_processed=len(rows))

    criados = atualizados = 0
    erros: List[Dict[str, Any]] = []
    for row in rows:
        try:
            if row["quantidade"] is None or row["estoque_minimo"] is None:
                raise ValidationError("quantidade/estoque mínimo devem ser inteiros")
            categoria_id = _categoria_por_nome(contexto, row.get("categoria"), db_path)
            existente = ProdutoRepo(db_path).get_by_codigo(row["codigo"]) if row["codigo"] else None
            if existente:
                atualizar_brinde(contexto, existente["id"], {
                    "nome": row["nome"] or existente["nome"],
                    "categoria_id": categoria_id or existente["categoria_id"],
                    "estoque_minimo": row["estoque_minimo"],
                    "localizacao": row["localizacao"] or existente["localizacao"],
                    "fornecedor": row["fornecedor"] or existente["fornecedor"],
                    "descricao": row["descricao"] or existente["descricao"],
                }, db_path=db_path)
                atualizados += 1
            else:
                cadastrar_brinde(contexto, Produto(
                    codigo=row["codigo"],
                    nome=row["nome"],
                    categoria_id=categoria_id,
                    quantidade=row["quantidade"],
                    estoque_minimo=row["estoque_minimo"],
                    localizacao=row["localizacao"],
                    fornecedor=row["fornecedor"],
                    descricao=row["descricao"],
                ), db_path=db_path)
                criados += 1
        except BrindesError as e:
            erros.append({"linha": row["linha"], "mensagem": str(e)})

    result = {
        "tipo": "Brindes",
        "total": len(rows),
        "registros": len(rows),
        "sucessos": criados + atualizados,
        "criados": criados,
        "atualizados": atualizados,
        "erros": erros,
    }
    log_system_event("importar_brindes_success", {"file_path": path, **{k: result[k] for k in ("criados", "atualizados")}})
    return result

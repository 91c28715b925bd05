# brindes/adapters/planilha_loader.py
"""
Loader de planilhas (XLSX/CSV) com o cadastro de brindes.

Essas funções:
- leem a planilha usando pandas;
- normalizam cabeçalhos (acentos, variações, sinônimos);
- retornam listas de dicionários com as chaves esperadas pelo catálogo.

Observações:
- Quantidades vazias viram 0; valores não inteiros ficam como None para o
  caso de uso rejeitar a linha.
- A categoria vem pelo nome; o caso de uso resolve/cria o id.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd


# ---------------------------
# utilitários de normalização
# ---------------------------

def _slug(s: str) -> str:
    """Normaliza cabeçalhos: minúsculas, sem acentos, sem não-alfanumérico."""
    if s is None:
        return ""
    s = str(s).strip().lower()
    acentos = dict(zip("áàâãäéèêëíìîïóòôõöúùûüç", "aaaaaeeeeiiiiooooouuuuc"))
    s = "".join(acentos.get(ch, ch) for ch in s)
    s = re.sub(r"[^a-z0-9]+", " ", s)
    s = re.sub(r"\s+", " ", s).strip()
    return s


def _safe_get(row, key) -> Optional[str]:
    """Valor da linha como string aparada, ou None para NA/vazio."""
    val = row.get(key)
    if val is None or pd.isna(val):
        return None
    s = str(val).strip()
    return s or None


def _to_int(val: Any) -> Optional[int]:
    """Converte '10', '10.0', '10,0' em 10; vazio vira 0; resto vira None."""
    if val is None:
        return 0
    s = str(val).strip().replace(",", ".")
    if not s:
        return 0
    try:
        f = float(s)
    except ValueError:
        return None
    if not f.is_integer():
        return None
    return int(f)


_ALIASES = {
    "codigo": "codigo",
    "cod": "codigo",
    "sku": "codigo",

    "nome": "nome",
    "brinde": "nome",
    "produto": "nome",
    "nome do brinde": "nome",

    "categoria": "categoria",
    "tipo": "categoria",

    "quantidade": "quantidade",
    "qtd": "quantidade",
    "qtde": "quantidade",
    "estoque": "quantidade",
    "estoque atual": "quantidade",

    "estoque minimo": "estoque_minimo",
    "minimo": "estoque_minimo",
    "qtd minima": "estoque_minimo",
    "quantidade minima": "estoque_minimo",

    "localizacao": "localizacao",
    "local": "localizacao",

    "fornecedor": "fornecedor",

    "descricao": "descricao",
    "observacao": "descricao",
}


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Renomeia colunas com base em sinônimos/variações."""
    new_cols = {}
    for col in df.columns:
        key = _slug(col)
        new_cols[col] = _ALIASES.get(key, key)
    return df.rename(columns=new_cols)


def _read(path: str) -> pd.DataFrame:
    if Path(path).suffix.lower() == ".csv":
        return pd.read_csv(path, dtype="string")
    return pd.read_excel(path, dtype="string")


def load_brindes(path: str) -> List[Dict[str, Any]]:
    """Lê a planilha de brindes e retorna um dict por linha.

    Campos de saída:
      - codigo, nome, categoria: str | None
      - quantidade, estoque_minimo: int (0 se vazio) | None se inválido
      - localizacao, fornecedor, descricao: str | None
      - linha: número da linha na planilha (cabeçalho = 1)
    """
    df = _normalize_columns(_read(path))
    out: List[Dict[str, Any]] = []
    for idx, row in df.iterrows():
        out.append({
            "linha": int(idx) + 2,
            "codigo": _safe_get(row, "codigo"),
            "nome": _safe_get(row, "nome"),
            "categoria": _safe_get(row, "categoria"),
            "quantidade": _to_int(_safe_get(row, "quantidade")),
            "estoque_minimo": _to_int(_safe_get(row, "estoque_minimo")),
            "localizacao": _safe_get(row, "localizacao"),
            "fornecedor": _safe_get(row, "fornecedor"),
            "descricao": _safe_get(row, "descricao"),
        })
    return out

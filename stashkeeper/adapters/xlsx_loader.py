# stashkeeper/adapters/xlsx_loader.py
"""
Loaders para planilhas (XLSX) de PRODUTOS, COLABORADORES e MOVIMENTAÇÕES.

Essas funções:
- leem planilhas XLSX usando pandas;
- normalizam cabeçalhos (acentos, variações, sinônimos);
- retornam listas de dicionários com as chaves esperadas pelos casos de uso.

Observações:
- Linhas sem código ou nome são descartadas.
- Planilhas de produtos sem cabeçalho reconhecível são lidas pelo layout
  fixo do relatório de estoque: A=código, B=nome, E=unidade, I=quantidade.
- Quantidades inválidas na planilha de produtos descartam a linha
  (nunca viram zero silenciosamente).
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional
import pandas as pd
import re

from stashkeeper.adapters.parsers import parse_quantidade, parse_quantidade_raw
from stashkeeper.domain.exceptions import ValidationError
from stashkeeper.infra.logger import log_system_event


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


def _safe_get(row, key):
    """Lê um valor da linha do pandas tratando NA."""
    val = row.get(key)
    if val is None or pd.isna(val):
        return None
    s = str(val).strip()
    return s or None


_ALIASES = {
    "codigo": "codigo",
    "cod": "codigo",
    "codigo do produto": "codigo",
    "produto": "codigo",
    "matricula": "codigo",

    "nome": "nome",
    "nome do produto": "nome",
    "descricao do produto": "nome",
    "colaborador nome": "nome",
    "nome do colaborador": "nome",

    "descricao": "descricao",

    "unidade": "unidade",
    "unidade de medida": "unidade",
    "un": "unidade",
    "und": "unidade",

    "quantidade": "quantidade",
    "qtde": "quantidade",
    "qtd": "quantidade",
    "estoque": "quantidade",
    "quantidade em estoque": "quantidade",

    "minimo": "minimo",
    "quantidade minima": "minimo",
    "estoque minimo": "minimo",

    "categoria": "categoria",

    "cargo": "cargo",
    "funcao": "cargo",

    "tipo": "tipo",
    "movimento": "tipo",
    "movimentacao": "tipo",

    "colaborador": "colaborador",
    "funcionario": "colaborador",
    "responsavel": "colaborador",

    "observacao": "observacoes",
    "observacoes": "observacoes",
    "obs": "observacoes",
    "notas": "observacoes",
}


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Renomeia colunas com base em sinônimos/variações."""
    new_cols = {}
    for col in df.columns:
        key = _slug(col)
        new_cols[col] = _ALIASES.get(key, key)  # se não houver alias, mantém slug
    return df.rename(columns=new_cols)


def _read(path: str, **kwargs) -> pd.DataFrame:
    df = pd.read_excel(path, dtype="string", **kwargs)
    for c in df.columns:
        df[c] = df[c].astype("string")
    return df


def _to_float(val: Optional[str]) -> Optional[float]:
    if val is None:
        return None
    try:
        return parse_quantidade(val)
    except ValidationError:
        num, _, _ = parse_quantidade_raw(val)
        if num is None:
            raise
        return num


# ---------------------------
# loaders públicos (XLSX)
# ---------------------------

def _produtos_layout_fixo(path: str) -> pd.DataFrame:
    df = _read(path, header=None)
    cols = {0: "codigo", 1: "nome", 4: "unidade", 8: "quantidade"}
    df = df.rename(columns={i: nome for i, nome in cols.items() if i in df.columns})
    # descarta linhas de cabeçalho ("Código", "CODIGO")
    mask = df["codigo"].fillna("").map(lambda v: "codigo" not in _slug(v))
    return df[mask]


def load_produtos_from_xlsx(path: str) -> List[Dict[str, Any]]:
    """Lê XLSX de PRODUTOS.

    Campos de saída (chaves do dict por linha):
      - code: str
      - name: str
      - unit: str (minúsculas; 'un' se ausente)
      - quantity: float (0 se ausente)
      - min_quantity: float | None (None => usar a regra padrão)
      - description: str | None
      - categoria: str | None (nome da categoria, se houver coluna)
    """
    df = _normalize_columns(_read(path))
    if "codigo" not in df.columns or "nome" not in df.columns:
        df = _produtos_layout_fixo(path)

    out: List[Dict[str, Any]] = []
    for idx, row in df.iterrows():
        code = _safe_get(row, "codigo")
        name = _safe_get(row, "nome")
        if not code or not name:
            continue
        try:
            quantity = _to_float(_safe_get(row, "quantidade"))
            minimo = _to_float(_safe_get(row, "minimo"))
        except ValidationError as e:
            log_system_event("produto_linha_invalida", {"linha": idx, "code": code, "erro": e.message}, level="warning")
            continue
        out.append({
            "code": code,
            "name": name,
            "unit": (_safe_get(row, "unidade") or "un").lower(),
            "quantity": quantity if quantity is not None else 0.0,
            "min_quantity": minimo,
            "description": _safe_get(row, "descricao"),
            "categoria": _safe_get(row, "categoria"),
        })
    return out


def load_funcionarios_from_xlsx(path: str) -> List[Dict[str, Any]]:
    """Lê XLSX de COLABORADORES (código e nome; cargo opcional).

    Sem cabeçalho reconhecível, usa A=código, B=nome.
    """
    df = _normalize_columns(_read(path))
    if "codigo" not in df.columns or "nome" not in df.columns:
        df = _read(path, header=None).rename(columns={0: "codigo", 1: "nome"})
        df = df[df["codigo"].fillna("").map(lambda v: "codigo" not in _slug(v))]

    out: List[Dict[str, Any]] = []
    for _, row in df.iterrows():
        code = _safe_get(row, "codigo")
        name = _safe_get(row, "nome")
        if not code or not name:
            continue
        out.append({"code": code, "name": name, "role": _safe_get(row, "cargo")})
    return out


def load_movimentacoes_from_xlsx(path: str) -> List[Dict[str, Any]]:
    """Lê XLSX de MOVIMENTAÇÕES.

    Campos de saída (chaves do dict por linha):
      - codigo: str | None
      - tipo: str | None ('entrada' | 'saida')
      - quantidade: str | None (parse é feito no caso de uso)
      - unidade: str | None (se ausente, extraída de "500 g" na quantidade)
      - colaborador: str | None (código)
      - observacoes: str | None
    """
    df = _normalize_columns(_read(path))
    out: List[Dict[str, Any]] = []
    for _, row in df.iterrows():
        quantidade = _safe_get(row, "quantidade")
        unidade = _safe_get(row, "unidade")
        if quantidade and not unidade:
            num, un, _ = parse_quantidade_raw(quantidade)
            if num is not None and un:
                quantidade, unidade = str(num), un
        out.append({
            "codigo": _safe_get(row, "codigo"),
            "tipo": _safe_get(row, "tipo"),
            "quantidade": quantidade,
            "unidade": unidade.lower() if unidade else None,
            "colaborador": _safe_get(row, "colaborador"),
            "observacoes": _safe_get(row, "observacoes"),
        })
    return out

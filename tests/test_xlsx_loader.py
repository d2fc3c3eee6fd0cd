"""
Tests for the xlsx_loader module: header normalization, fixed-layout product
sheets and movement sheets with quantity and unit in the same cell.
"""

import pandas as pd

from stashkeeper.adapters.xlsx_loader import (
    _normalize_columns,
    _slug,
    load_funcionarios_from_xlsx,
    load_movimentacoes_from_xlsx,
    load_produtos_from_xlsx,
)


def _write_xlsx(tmp_path, name, data, header=True):
    path = tmp_path / name
    pd.DataFrame(data).to_excel(path, index=False, header=header)
    return str(path)


def test_slug_removes_accents_and_symbols():
    assert _slug("  Código do Produto ") == "codigo do produto"
    assert _slug("Qtde.") == "qtde"
    assert _slug(None) == ""


def test_normalize_columns_aliases():
    df = pd.DataFrame({"Código": ["1"], "Descrição do Produto": ["x"], "Qtd": ["2"], "Unidade de Medida": ["KG"]})
    cols = list(_normalize_columns(df).columns)
    assert cols == ["codigo", "nome", "quantidade", "unidade"]


def test_load_produtos_with_headers(tmp_path):
    path = _write_xlsx(tmp_path, "produtos.xlsx", {
        "Código": ["P001", "P002", None],
        "Nome": ["Detergente", "Etiqueta térmica", "sem código"],
        "Unidade": ["L", "RL", "UN"],
        "Quantidade": ["12,5", "3", "1"],
        "Estoque mínimo": [None, "1", None],
    })
    rows = load_produtos_from_xlsx(path)
    assert len(rows) == 2
    p1, p2 = rows
    assert p1["code"] == "P001"
    assert p1["unit"] == "l"
    assert p1["quantity"] == 12.5
    assert p1["min_quantity"] is None
    assert p2["unit"] == "rl"
    assert p2["min_quantity"] == 1.0


def test_load_produtos_fixed_layout_without_headers(tmp_path):
    # colunas A..I; A=código, B=nome, E=unidade, I=quantidade
    linhas = [
        ["Código", "Descrição", "-", "-", "Un", "-", "-", "-", "Estoque"],
        ["100", "Arroz", "", "", "KG", "", "", "", "25"],
        ["200", "Álcool", "", "", "", "", "", "", "4,5"],
    ]
    path = tmp_path / "relatorio.xlsx"
    pd.DataFrame(linhas).to_excel(path, index=False, header=False)

    rows = load_produtos_from_xlsx(str(path))
    assert [r["code"] for r in rows] == ["100", "200"]
    assert rows[0]["unit"] == "kg"
    assert rows[0]["quantity"] == 25.0
    assert rows[1]["unit"] == "un"
    assert rows[1]["quantity"] == 4.5


def test_load_produtos_skips_invalid_quantity(tmp_path):
    path = _write_xlsx(tmp_path, "produtos.xlsx", {
        "Código": ["P001", "P002"],
        "Nome": ["A", "B"],
        "Quantidade": ["abc", "2"],
    })
    rows = load_produtos_from_xlsx(path)
    assert [r["code"] for r in rows] == ["P002"]


def test_load_funcionarios(tmp_path):
    path = _write_xlsx(tmp_path, "colaboradores.xlsx", {
        "Matrícula": ["F001", "F002"],
        "Nome": ["Ana", "Bruno"],
        "Cargo": ["Estoquista", None],
    })
    rows = load_funcionarios_from_xlsx(path)
    assert rows == [
        {"code": "F001", "name": "Ana", "role": "Estoquista"},
        {"code": "F002", "name": "Bruno", "role": None},
    ]


def test_load_movimentacoes_splits_unit_from_quantity(tmp_path):
    path = _write_xlsx(tmp_path, "movimentacoes.xlsx", {
        "Código": ["P001", "P002"],
        "Tipo": ["Saída", "entrada"],
        "Quantidade": ["500 g - gramas", "2"],
        "Funcionário": ["F001", None],
        "Obs": [None, "compra"],
    })
    rows = load_movimentacoes_from_xlsx(path)
    assert rows[0]["codigo"] == "P001"
    assert rows[0]["tipo"] == "Saída"
    assert rows[0]["quantidade"] == "500.0"
    assert rows[0]["unidade"] == "g"
    assert rows[0]["colaborador"] == "F001"
    assert rows[1]["unidade"] is None
    assert rows[1]["observacoes"] == "compra"

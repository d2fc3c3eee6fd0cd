import pandas as pd
import pytest

from stashkeeper.domain.exceptions import NotFoundError, ValidationError
from stashkeeper.usecases.cadastros import (
    add_categoria,
    add_funcionario,
    add_produto,
    delete_produto,
    list_categorias,
    list_funcionarios,
    list_produtos,
    run_importar_funcionarios,
    run_importar_produtos,
    set_funcionario_ativo,
    update_produto,
)
from stashkeeper.usecases.registrar_movimentacao import run_registrar_movimentacao


def test_add_produto_normalizes_unit_and_sets_initial_quantity(db_path):
    prod = add_produto("X1", "Álcool", unit="Litros", quantity="2,5", db_path=db_path)
    assert prod["unit"] == "l"
    assert prod["quantity"] == 2.5
    assert prod["initial_quantity"] == 2.5


def test_add_produto_duplicate_code(db_path):
    add_produto("X1", "A", db_path=db_path)
    with pytest.raises(ValidationError) as exc:
        add_produto("X1", "B", db_path=db_path)
    assert exc.value.field == "code"


@pytest.mark.parametrize("code,name", [("", "Nome"), ("X1", "  ")])
def test_add_produto_required_fields(db_path, code, name):
    with pytest.raises(ValidationError):
        add_produto(code, name, db_path=db_path)


def test_add_produto_negative_quantity(db_path):
    with pytest.raises(ValidationError):
        add_produto("X1", "A", quantity="-1", db_path=db_path)


def test_produto_with_category(db_path):
    add_categoria("Limpeza", db_path=db_path)
    add_produto("X1", "Detergente", categoria="limpeza", db_path=db_path)
    add_produto("X2", "Arroz", db_path=db_path)
    assert [p["code"] for p in list_produtos(categoria="Limpeza", db_path=db_path)] == ["X1"]
    assert len(list_produtos(db_path=db_path)) == 2
    with pytest.raises(NotFoundError):
        add_produto("X3", "Sabão", categoria="Inexistente", db_path=db_path)


def test_duplicate_category(db_path):
    add_categoria("Limpeza", db_path=db_path)
    with pytest.raises(ValidationError):
        add_categoria("LIMPEZA", db_path=db_path)
    assert [c["name"] for c in list_categorias(db_path=db_path)] == ["Limpeza"]


def test_update_produto_does_not_touch_quantity(db_path):
    prod = add_produto("X1", "A", unit="kg", quantity=3, db_path=db_path)
    atualizado = update_produto(prod["id"], name="B", min_quantity="1,5", db_path=db_path)
    assert atualizado["name"] == "B"
    assert atualizado["min_quantity"] == 1.5
    with pytest.raises(ValidationError):
        update_produto(prod["id"], quantity=10, db_path=db_path)
    with pytest.raises(NotFoundError):
        update_produto(999, name="C", db_path=db_path)


def test_delete_produto_removes_history(db_path):
    prod = add_produto("X1", "A", quantity=3, db_path=db_path)
    run_registrar_movimentacao("X1", "saida", "1", db_path=db_path)
    delete_produto(prod["id"], db_path=db_path)
    assert list_produtos(db_path=db_path) == []
    with pytest.raises(NotFoundError):
        delete_produto(prod["id"], db_path=db_path)


def test_funcionarios(db_path):
    f = add_funcionario("F1", "Ana", db_path=db_path)
    add_funcionario("F2", "Bruno", "Auxiliar", db_path=db_path)
    with pytest.raises(ValidationError):
        add_funcionario("F1", "Outra Ana", db_path=db_path)
    set_funcionario_ativo(f["id"], False, db_path=db_path)
    assert [x["code"] for x in list_funcionarios(somente_ativos=True, db_path=db_path)] == ["F2"]
    assert len(list_funcionarios(db_path=db_path)) == 2


def test_importar_produtos_default_minimum_and_categories(db_path, tmp_path):
    path = tmp_path / "produtos.xlsx"
    pd.DataFrame({
        "Código": ["A1", "A2", "A3"],
        "Nome": ["Detergente", "Farinha", "Luvas"],
        "Unidade": ["L", "KG", "UN"],
        "Quantidade": ["12", "2", "0"],
        "Mínimo": [None, "5", None],
        "Categoria": ["Limpeza", "Alimentos", "limpeza"],
    }).to_excel(path, index=False)

    res = run_importar_produtos(str(path), db_path=db_path)
    assert res["tipo"] == "Produtos"
    assert (res["total"], res["inseridos"], res["atualizados"]) == (3, 3, 0)

    produtos = {p["code"]: p for p in list_produtos(db_path=db_path)}
    assert produtos["A1"]["min_quantity"] == 2.0   # round(12 * 0.2)
    assert produtos["A2"]["min_quantity"] == 5.0
    assert produtos["A3"]["min_quantity"] == 0.0
    assert sorted(c["name"] for c in list_categorias(db_path=db_path)) == ["Alimentos", "Limpeza"]


def test_importar_produtos_update_keeps_history_consistent(db_path, tmp_path):
    add_produto("A1", "Detergente", unit="l", quantity=10, db_path=db_path)
    run_registrar_movimentacao("A1", "saida", "4", db_path=db_path)
    path = tmp_path / "produtos.xlsx"
    pd.DataFrame({"Código": ["A1"], "Nome": ["Detergente neutro"], "Quantidade": ["8"], "Unidade": ["l"]}).to_excel(
        path, index=False
    )

    res = run_importar_produtos(str(path), db_path=db_path)
    assert res["atualizados"] == 1
    prod = list_produtos(db_path=db_path)[0]
    assert prod["name"] == "Detergente neutro"
    assert prod["quantity"] == 8.0
    # 12 inicial - 4 de saída = 8
    assert prod["initial_quantity"] == pytest.approx(12.0)


def test_importar_funcionarios_upsert(db_path, tmp_path):
    add_funcionario("F1", "Ana", db_path=db_path)
    path = tmp_path / "colaboradores.xlsx"
    pd.DataFrame({"Código": ["F1", "F2"], "Nome": ["Ana Souza", "Bruno"]}).to_excel(path, index=False)

    res = run_importar_funcionarios(str(path), db_path=db_path)
    assert res["tipo"] == "Colaboradores"
    assert (res["inseridos"], res["atualizados"]) == (1, 1)
    nomes = [f["name"] for f in list_funcionarios(db_path=db_path)]
    assert nomes == ["Ana Souza", "Bruno"]

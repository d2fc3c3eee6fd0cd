import pytest

from stashkeeper.domain.exceptions import ValidationError
from stashkeeper.usecases.cadastros import add_produto
from stashkeeper.usecases.excluir_movimentacao import run_excluir_movimentacao
from stashkeeper.usecases.registrar_movimentacao import run_registrar_movimentacao
from stashkeeper.usecases.relatorios import (
    relatorio_estoque_baixo,
    relatorio_movimentacoes,
    relatorio_saidas_por_funcionario,
    resumo_dashboard,
)

INICIO = "2000-01-01"
FIM = "2999-12-31"


def test_relatorio_estoque_baixo_empty_db(db_path):
    cols, rows, msg = relatorio_estoque_baixo(db_path=db_path)
    assert cols[0] == "Código"
    assert rows == []
    assert msg == "Nenhum produto com estoque baixo."


def test_relatorio_estoque_baixo_critical_first(seeded_db):
    # P-RL: 3 -> 1.2 (mínimo 1, BAIXO); P-CX: 4 com mínimo 4 (CRÍTICO)
    run_registrar_movimentacao("P-RL", "saida", "180", unidade="un", db_path=seeded_db)
    cols, rows, msg = relatorio_estoque_baixo(db_path=seeded_db)
    assert msg is None
    status_idx = cols.index("Status")
    assert [(r[0], r[status_idx]) for r in rows] == [("P-CX", "Crítico"), ("P-RL", "Baixo")]
    assert rows[1][cols.index("Quantidade")] == "1,20"


def test_relatorio_movimentacoes_filters(seeded_db):
    run_registrar_movimentacao("P-KG", "entrada", "500", unidade="g", db_path=seeded_db)
    run_registrar_movimentacao("P-L", "saida", "1", funcionario="F001", notes="limpeza", db_path=seeded_db)
    apagada = run_registrar_movimentacao("P-L", "saida", "2", db_path=seeded_db)
    run_excluir_movimentacao(apagada["id"], db_path=seeded_db)

    cols, rows, msg = relatorio_movimentacoes(INICIO, FIM, db_path=seeded_db)
    assert msg is None
    assert len(rows) == 2
    assert rows[0][cols.index("Tipo")] == "Saída"
    assert rows[0][cols.index("Colaborador")] == "Ana Souza"
    assert rows[1][cols.index("Unidade")] == "g"

    _, rows, _ = relatorio_movimentacoes(INICIO, FIM, tipo="entrada", db_path=seeded_db)
    assert [r[cols.index("Código")] for r in rows] == ["P-KG"]

    _, rows, msg = relatorio_movimentacoes("2000-01-01", "2000-12-31", db_path=seeded_db)
    assert rows == []
    assert msg == "Nenhuma movimentação no período."


def test_relatorio_movimentacoes_invalid_tipo(seeded_db):
    with pytest.raises(ValidationError):
        relatorio_movimentacoes(tipo="ajuste", db_path=seeded_db)


def test_relatorio_saidas_por_funcionario_aggregates_in_product_unit(seeded_db):
    run_registrar_movimentacao("P-KG", "saida", "500", unidade="g", funcionario="F001", db_path=seeded_db)
    run_registrar_movimentacao("P-KG", "saida", "1", funcionario="F001", db_path=seeded_db)
    run_registrar_movimentacao("P-L", "saida", "1", db_path=seeded_db)
    run_registrar_movimentacao("P-KG", "entrada", "3", db_path=seeded_db)

    cols, rows, msg = relatorio_saidas_por_funcionario(INICIO, FIM, db_path=seeded_db)
    assert msg is None
    assert cols == ["Colaborador", "Código", "Produto", "Total", "Unidade", "Retiradas"]
    assert rows == [
        ["(sem colaborador)", "P-L", "Detergente", "1", "l", 1],
        ["Ana Souza", "P-KG", "Farinha", "1,5", "kg", 2],
    ]


def test_relatorio_saidas_empty(seeded_db):
    _, rows, msg = relatorio_saidas_por_funcionario(db_path=seeded_db)
    assert rows == []
    assert msg == "Nenhuma saída no período."


def test_resumo_dashboard(seeded_db):
    add_produto("P-Z", "Zerado", quantity=0, min_quantity=0, db_path=seeded_db)
    run_registrar_movimentacao("P-KG", "entrada", "1", db_path=seeded_db)
    run_registrar_movimentacao("P-KG", "saida", "1", db_path=seeded_db)
    run_registrar_movimentacao("P-L", "saida", "1", db_path=seeded_db)

    resumo = resumo_dashboard(db_path=seeded_db)
    assert resumo["produtos"] == 5
    assert resumo["colaboradores"] == 1
    assert resumo["criticos"] == 2
    assert resumo["baixos"] == 0
    assert resumo["entradas_periodo"] == 1
    assert resumo["saidas_periodo"] == 2

"""
Tests for the logging layer: flags, log files and summaries.
"""

import logging

import pytest

from stashkeeper.infra import logger as lg


@pytest.fixture
def logs_dir(tmp_path, monkeypatch):
    """Redireciona os loggers para um diretório temporário e liga o logging."""
    monkeypatch.setattr(lg, "ENABLE_LOGGING", True)
    monkeypatch.setattr(lg, "LOGS_DIR", tmp_path)
    for attr, name, arquivo in [
        ("transaction_logger", "stashkeeper.test.transactions", "transactions.log"),
        ("movimentacao_logger", "stashkeeper.test.movimentacoes", "movimentacoes.log"),
        ("database_logger", "stashkeeper.test.database", "database.log"),
        ("system_logger", "stashkeeper.test.system", "system.log"),
    ]:
        monkeypatch.setattr(lg, attr, lg.setup_logger(name, str(tmp_path / arquivo)))
    yield tmp_path
    for name in ("transactions", "movimentacoes", "database", "system"):
        for h in list(logging.getLogger(f"stashkeeper.test.{name}").handlers):
            h.close()


def test_logging_disabled_writes_nothing(tmp_path, monkeypatch):
    monkeypatch.setattr(lg, "ENABLE_LOGGING", False)
    monkeypatch.setattr(lg, "ENABLE_OUTPUT", False)
    monkeypatch.setattr(lg, "system_logger", lg.setup_logger("stashkeeper.test.off", str(tmp_path / "off.log")))
    lg.log_system_event("nada")
    assert not (tmp_path / "off.log").exists()


def test_all_log_functions(logs_dir):
    lg.log_system_event("test_start", {"test_id": "logging"})
    lg.log_movimentacao("insert", "saida", 1, 500, "g", funcionario="F001")
    lg.log_database_operation("products", "UPDATE", 1, product_id=1)
    lg.log_file_operation("import", "produtos.xlsx", rows_processed=50)
    lg.log_transaction("registrar_movimentacao", {"produto": "P1"}, result={"id": 1})
    lg.log_transaction("editar_movimentacao", {"movement_id": 9}, error="Movimentação não encontrada")

    transacoes = lg.get_log_summary("transactions")
    assert "TRANSACTION_SUCCESS: registrar_movimentacao" in transacoes
    assert "TRANSACTION_FAILED: editar_movimentacao" in transacoes
    assert "SAIDA_INSERT" in lg.get_log_summary("movimentacoes")
    assert "DB_UPDATE" in lg.get_log_summary("database")
    sistema = lg.get_log_summary("system")
    assert "SYSTEM_EVENT: test_start" in sistema
    assert "FILE_IMPORT" in sistema


def test_get_log_summary_limits_lines(logs_dir):
    for i in range(10):
        lg.log_system_event(f"evento_{i}")
    resumo = lg.get_log_summary("system", lines=3)
    assert resumo.count("\n") == 3
    assert "evento_9" in resumo
    assert "evento_6" not in resumo


def test_get_log_summary_missing(logs_dir):
    assert lg.get_log_summary("system") == "Log system não encontrado."
    assert "não encontrado" in lg.get_log_summary("inexistente")


def test_warning_level(logs_dir):
    lg.log_system_event("unidade_sem_conversao", {"unidade": "caixa"}, level="warning")
    assert " - WARNING - " in lg.get_log_summary("system")

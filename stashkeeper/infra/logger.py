# stashkeeper/infra/logger.py
"""
Sistema de logging das operações de estoque.

Este módulo configura e fornece loggers para registrar as operações
críticas do sistema: movimentações (entradas, saídas, edições e
exclusões), operações no banco de dados, importações de planilhas e
eventos gerais.

O logging fica desligado por padrão; ative com ``STASHKEEPER_LOGGING=1``
ou alterando ``ENABLE_LOGGING`` em tempo de execução.
"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Optional


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in {"1", "true", "sim", "yes", "on"}


# Flag global para habilitar/desabilitar logging
ENABLE_LOGGING = _env_flag("STASHKEEPER_LOGGING")
# Flag global para habilitar/desabilitar prints/output
ENABLE_OUTPUT = _env_flag("STASHKEEPER_OUTPUT")

def print_system(*args, **kwargs):
    """Print controlado pelo ENABLE_OUTPUT."""
    if ENABLE_OUTPUT:
        print(*args, **kwargs)

# Configuração base dos loggers
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

def setup_logger(name: str, log_file: str, level: int = logging.INFO) -> logging.Logger:
    """
    Configura um logger específico com arquivo de saída.

    O arquivo só é criado na primeira mensagem gravada.

    Args:
        name: Nome do logger
        log_file: Caminho do arquivo de log
        level: Nível de logging (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Logger configurado
    """
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False

    # Remove handlers de configurações anteriores (reimportação em testes)
    while logger.handlers:
        logger.removeHandler(logger.handlers[0])

    file_handler = logging.FileHandler(log_file, encoding='utf-8', delay=True)
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    logger.addHandler(file_handler)

    return logger

# Diretório base para logs
BASE_DIR = Path(__file__).parent.parent.parent
LOGS_DIR = Path(os.environ.get("STASHKEEPER_LOGS_DIR", str(BASE_DIR / "logs")))

# Loggers específicos para cada operação
transaction_logger = setup_logger(
    'stashkeeper.transactions',
    str(LOGS_DIR / 'transactions.log')
)

movimentacao_logger = setup_logger(
    'stashkeeper.movimentacoes',
    str(LOGS_DIR / 'movimentacoes.log')
)

database_logger = setup_logger(
    'stashkeeper.database',
    str(LOGS_DIR / 'database.log')
)

system_logger = setup_logger(
    'stashkeeper.system',
    str(LOGS_DIR / 'system.log')
)

def log_transaction(operation: str, data: Dict[str, Any], result: Optional[Any] = None, error: Optional[str] = None) -> None:
    """
    Registra uma transação completa no log.

    Args:
        operation: Tipo de operação (registrar_movimentacao, editar_movimentacao, ...)
        data: Dados da transação
        result: Resultado da operação (opcional)
        error: Mensagem de erro (opcional)
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    if error:
        transaction_logger.error(f"TRANSACTION_FAILED: {operation} - {error} - Data: {data}")
    else:
        transaction_logger.info(f"TRANSACTION_SUCCESS: {operation} - Result: {result} - Data: {data}")

def log_movimentacao(action: str, tipo: str, product_id: Any, quantidade: Any, unidade: Optional[str] = None, **kwargs) -> None:
    """
    Log específico para movimentações de estoque.

    Args:
        action: Ação realizada (insert, update, delete)
        tipo: entrada ou saida
        product_id: Produto movimentado
        quantidade: Quantidade digitada
        unidade: Unidade digitada (opcional)
        **kwargs: Dados adicionais
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {
        "action": action,
        "tipo": tipo,
        "product_id": product_id,
        "quantidade": quantidade,
        "unidade": unidade,
        **kwargs
    }
    movimentacao_logger.info(f"{str(tipo).upper()}_{action.upper()}: {log_data}")

def log_database_operation(table: str, operation: str, affected_rows: int = 0, **kwargs) -> None:
    """
    Log específico para operações no banco de dados.

    Args:
        table: Nome da tabela
        operation: Operação SQL (INSERT, UPDATE, DELETE, SELECT)
        affected_rows: Número de linhas afetadas
        **kwargs: Dados adicionais
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {
        "table": table,
        "operation": operation,
        "affected_rows": affected_rows,
        **kwargs
    }
    database_logger.info(f"DB_{operation}: {log_data}")

def log_system_event(event: str, details: Dict[str, Any] = None, level: str = "info") -> None:
    """
    Log para eventos do sistema.

    Args:
        event: Descrição do evento
        details: Detalhes adicionais (opcional)
        level: Nível do log (info, warning, error)
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {
        "event": event,
        "details": details or {}
    }
    log_method = getattr(system_logger, level.lower(), system_logger.info)
    log_method(f"SYSTEM_EVENT: {event} - {log_data}")

def log_file_operation(operation: str, file_path: str, rows_processed: int = 0, **kwargs) -> None:
    """
    Log para operações de arquivo (importação).

    Args:
        operation: Tipo de operação (import, export)
        file_path: Caminho do arquivo
        rows_processed: Número de linhas processadas
        **kwargs: Dados adicionais
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {
        "operation": operation,
        "file_path": file_path,
        "rows_processed": rows_processed,
        "at": datetime.now().isoformat(timespec="seconds"),
        **kwargs
    }
    system_logger.info(f"FILE_{operation.upper()}: {log_data}")

def get_log_summary(log_type: str = "transactions", lines: int = 100) -> str:
    """
    Obtém um resumo dos logs recentes.

    Args:
        log_type: Tipo de log (transactions, movimentacoes, database, system)
        lines: Número de linhas a retornar

    Returns:
        Conteúdo do log como string
    """
    log_files = {
        "transactions": LOGS_DIR / "transactions.log",
        "movimentacoes": LOGS_DIR / "movimentacoes.log",
        "database": LOGS_DIR / "database.log",
        "system": LOGS_DIR / "system.log"
    }

    log_file = log_files.get(log_type)
    if not log_file or not log_file.exists():
        return f"Log {log_type} não encontrado."

    try:
        with open(log_file, 'r', encoding='utf-8') as f:
            all_lines = f.readlines()
    except OSError as e:
        return f"Erro ao ler log {log_type}: {e}"
    return ''.join(all_lines[-lines:])

"""
Utilidades de conexão SQLite.

Falhas do SQLite (``sqlite3.Error``) saem destes context managers como
``BackendError``; demais exceções propagam inalteradas após o rollback.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from typing import Iterator

from stashkeeper.domain.exceptions import BackendError


def _open(db_path: str, **kwargs) -> sqlite3.Connection:
    try:
        conn = sqlite3.connect(db_path, **kwargs)
    except sqlite3.Error as e:
        raise BackendError(f"Não foi possível abrir o banco {db_path}: {e}") from e
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def connect(db_path: str) -> Iterator[sqlite3.Connection]:
    """
    Context manager para abrir conexão SQLite com:
    - foreign_keys ON
    - row_factory = sqlite3.Row
    - commit ao sair (rollback em caso de exceção)
    """
    conn = _open(db_path)
    try:
        conn.execute("PRAGMA foreign_keys = ON;")
        yield conn
        conn.commit()
    except sqlite3.Error as e:
        conn.rollback()
        raise BackendError(f"Falha no banco de dados: {e}") from e
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


@contextmanager
def transaction(db_path: str) -> Iterator[sqlite3.Connection]:
    """
    Como ``connect``, mas abre a transação com ``BEGIN IMMEDIATE``.

    O lock de escrita é obtido antes da primeira leitura, então
    ler-quantidade → gravar-movimentação → gravar-quantidade acontece de
    forma atômica: outro cliente não consegue intercalar uma escrita no
    mesmo produto. Qualquer exceção desfaz tudo.
    """
    conn = _open(db_path, isolation_level=None)
    try:
        conn.execute("PRAGMA foreign_keys = ON;")
        conn.execute("BEGIN IMMEDIATE;")
        yield conn
        conn.execute("COMMIT;")
    except sqlite3.Error as e:
        if conn.in_transaction:
            conn.execute("ROLLBACK;")
        raise BackendError(f"Falha no banco de dados: {e}") from e
    except Exception:
        if conn.in_transaction:
            conn.execute("ROLLBACK;")
        raise
    finally:
        conn.close()

# stashkeeper/infra/repositories.py
"""
Repositórios (DAO) para acesso e manipulação de dados no SQLite.

Classes:
- CategoriaRepo
- ProdutoRepo
- FuncionarioRepo
- MovimentacaoRepo

Todos os métodos aceitam ``conn`` opcional: quando informado, a operação
participa da transação do chamador (ver ``infra.db.transaction``); caso
contrário abrem a própria conexão.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from dataclasses import asdict, is_dataclass
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from .db import connect


# -------------------------
# Helpers
# -------------------------

def _as_dict(row: Any) -> Dict[str, Any]:
    if isinstance(row, dict):
        return dict(row)
    if is_dataclass(row):
        return asdict(row)
    raise TypeError("row must be dict or dataclass")


def _rows(cur: sqlite3.Cursor) -> List[Dict[str, Any]]:
    cols = [d[0] for d in cur.description]
    return [dict(zip(cols, row)) for row in cur.fetchall()]


def _one(cur: sqlite3.Cursor) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    if row is None:
        return None
    cols = [d[0] for d in cur.description]
    return dict(zip(cols, row))


class _Repo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    @contextmanager
    def _conn(self, conn: Optional[sqlite3.Connection]) -> Iterator[sqlite3.Connection]:
        if conn is not None:
            yield conn
            return
        with connect(self.db_path) as c:
            yield c


# -------------------------
# Categoria
# -------------------------

class CategoriaRepo(_Repo):

    def insert(self, row: Any, conn=None) -> int:
        r = _as_dict(row)
        with self._conn(conn) as c:
            cur = c.execute(
                "INSERT INTO categories (name, description) VALUES (:name, :description)",
                {"name": r["name"], "description": r.get("description")},
            )
            return int(cur.lastrowid)

    def get(self, category_id: int, conn=None) -> Optional[Dict[str, Any]]:
        with self._conn(conn) as c:
            return _one(c.execute(
                "SELECT id, name, description, created_at FROM categories WHERE id = ?",
                (category_id,),
            ))

    def get_by_name(self, name: str, conn=None) -> Optional[Dict[str, Any]]:
        with self._conn(conn) as c:
            return _one(c.execute(
                "SELECT id, name, description, created_at FROM categories WHERE lower(name) = lower(?)",
                (name.strip(),),
            ))

    def get_all(self) -> List[Dict[str, Any]]:
        with self._conn(None) as c:
            return _rows(c.execute(
                "SELECT id, name, description, created_at FROM categories ORDER BY name"
            ))

    def delete(self, category_id: int) -> int:
        with self._conn(None) as c:
            return c.execute("DELETE FROM categories WHERE id = ?", (category_id,)).rowcount


# -------------------------
# Produto
# -------------------------

_PRODUTO_COLS = """id, code, name, description, category_id, unit, quantity,
                   initial_quantity, min_quantity, created_at"""


class ProdutoRepo(_Repo):

    def insert(self, row: Any, conn=None) -> int:
        r = _as_dict(row)
        r.pop("id", None)
        if r.get("initial_quantity") is None:
            r["initial_quantity"] = r.get("quantity") or 0.0
        r.setdefault("description", None)
        r.setdefault("category_id", None)
        with self._conn(conn) as c:
            cur = c.execute(
                """
                INSERT INTO products
                    (code, name, description, category_id, unit, quantity,
                     initial_quantity, min_quantity)
                VALUES
                    (:code, :name, :description, :category_id, :unit, :quantity,
                     :initial_quantity, :min_quantity)
                """,
                r,
            )
            return int(cur.lastrowid)

    def upsert(self, rows: Iterable[Any]) -> Tuple[int, int]:
        """Insere ou atualiza por ``code``. Retorna (inseridos, atualizados).

        Ao atualizar, ``initial_quantity`` absorve a diferença de quantidade,
        de modo que o recálculo pelo histórico continua consistente.
        """
        rows = [_as_dict(r) for r in rows]
        inseridos = atualizados = 0
        with self._conn(None) as c:
            for r in rows:
                existe = c.execute("SELECT 1 FROM products WHERE code = ?", (r["code"],)).fetchone()
                payload = {
                    "code": r["code"],
                    "name": r["name"],
                    "description": r.get("description"),
                    "category_id": r.get("category_id"),
                    "unit": r.get("unit") or "un",
                    "quantity": float(r.get("quantity") or 0.0),
                    "min_quantity": float(r.get("min_quantity") or 0.0),
                }
                c.execute(
                    """
                    INSERT INTO products
                        (code, name, description, category_id, unit, quantity,
                         initial_quantity, min_quantity)
                    VALUES
                        (:code, :name, :description, :category_id, :unit, :quantity,
                         :quantity, :min_quantity)
                    ON CONFLICT(code) DO UPDATE SET
                        name=excluded.name,
                        description=COALESCE(excluded.description, products.description),
                        category_id=COALESCE(excluded.category_id, products.category_id),
                        unit=excluded.unit,
                        initial_quantity=products.initial_quantity + (excluded.quantity - products.quantity),
                        quantity=excluded.quantity,
                        min_quantity=excluded.min_quantity
                    """,
                    payload,
                )
                if existe:
                    atualizados += 1
                else:
                    inseridos += 1
        return inseridos, atualizados

    def get(self, product_id: int, conn=None) -> Optional[Dict[str, Any]]:
        with self._conn(conn) as c:
            return _one(c.execute(f"SELECT {_PRODUTO_COLS} FROM products WHERE id = ?", (product_id,)))

    def get_by_code(self, code: str, conn=None) -> Optional[Dict[str, Any]]:
        with self._conn(conn) as c:
            return _one(c.execute(f"SELECT {_PRODUTO_COLS} FROM products WHERE code = ?", (code.strip(),)))

    def get_all(self, category_id: Optional[int] = None) -> List[Dict[str, Any]]:
        with self._conn(None) as c:
            if category_id is None:
                cur = c.execute(f"SELECT {_PRODUTO_COLS} FROM products ORDER BY name")
            else:
                cur = c.execute(
                    f"SELECT {_PRODUTO_COLS} FROM products WHERE category_id = ? ORDER BY name",
                    (category_id,),
                )
            return _rows(cur)

    def update(self, product_id: int, fields: Dict[str, Any], conn=None) -> int:
        permitidos = {"code", "name", "description", "category_id", "unit", "min_quantity"}
        sets = {k: v for k, v in fields.items() if k in permitidos}
        if not sets:
            return 0
        sql = ", ".join(f"{k} = :{k}" for k in sets)
        with self._conn(conn) as c:
            return c.execute(
                f"UPDATE products SET {sql} WHERE id = :id", {**sets, "id": product_id}
            ).rowcount

    def set_quantity(self, product_id: int, quantity: float, conn=None) -> None:
        with self._conn(conn) as c:
            c.execute("UPDATE products SET quantity = ? WHERE id = ?", (float(quantity), product_id))

    def delete(self, product_id: int) -> int:
        with self._conn(None) as c:
            return c.execute("DELETE FROM products WHERE id = ?", (product_id,)).rowcount


# -------------------------
# Colaboradores
# -------------------------

class FuncionarioRepo(_Repo):

    def insert(self, row: Any, conn=None) -> int:
        r = _as_dict(row)
        with self._conn(conn) as c:
            cur = c.execute(
                "INSERT INTO employees (code, name, role, active) VALUES (:code, :name, :role, :active)",
                {"code": r["code"], "name": r["name"], "role": r.get("role"), "active": int(r.get("active", 1))},
            )
            return int(cur.lastrowid)

    def upsert(self, rows: Iterable[Any]) -> Tuple[int, int]:
        """Insere ou atualiza o nome por ``code``. Retorna (inseridos, atualizados)."""
        rows = [_as_dict(r) for r in rows]
        inseridos = atualizados = 0
        with self._conn(None) as c:
            for r in rows:
                existe = c.execute("SELECT 1 FROM employees WHERE code = ?", (r["code"],)).fetchone()
                c.execute(
                    """
                    INSERT INTO employees (code, name, role, active)
                    VALUES (:code, :name, :role, 1)
                    ON CONFLICT(code) DO UPDATE SET
                        name=excluded.name,
                        role=COALESCE(excluded.role, employees.role)
                    """,
                    {"code": r["code"], "name": r["name"], "role": r.get("role")},
                )
                if existe:
                    atualizados += 1
                else:
                    inseridos += 1
        return inseridos, atualizados

    def get(self, employee_id: int, conn=None) -> Optional[Dict[str, Any]]:
        with self._conn(conn) as c:
            return _one(c.execute(
                "SELECT id, code, name, role, active, created_at FROM employees WHERE id = ?",
                (employee_id,),
            ))

    def get_by_code(self, code: str, conn=None) -> Optional[Dict[str, Any]]:
        with self._conn(conn) as c:
            return _one(c.execute(
                "SELECT id, code, name, role, active, created_at FROM employees WHERE code = ?",
                (code.strip(),),
            ))

    def get_all(self, somente_ativos: bool = False) -> List[Dict[str, Any]]:
        sql = "SELECT id, code, name, role, active, created_at FROM employees"
        if somente_ativos:
            sql += " WHERE active = 1"
        with self._conn(None) as c:
            return _rows(c.execute(sql + " ORDER BY name"))

    def set_active(self, employee_id: int, active: bool) -> int:
        with self._conn(None) as c:
            return c.execute(
                "UPDATE employees SET active = ? WHERE id = ?", (1 if active else 0, employee_id)
            ).rowcount


# -------------------------
# Movimentações
# -------------------------

_MOV_COLS = "id, product_id, type, quantity, unit, employee_id, notes, created_at, deleted, updated_at"


class MovimentacaoRepo(_Repo):

    def insert(self, row: Any, conn=None) -> int:
        r = _as_dict(row)
        payload = {
            "product_id": r["product_id"],
            "type": r["type"],
            "quantity": float(r["quantity"]),
            "unit": r.get("unit"),
            "employee_id": r.get("employee_id"),
            "notes": r.get("notes"),
            "created_at": r.get("created_at"),
        }
        with self._conn(conn) as c:
            cur = c.execute(
                """
                INSERT INTO movements
                    (product_id, type, quantity, unit, employee_id, notes, created_at)
                VALUES
                    (:product_id, :type, :quantity, :unit, :employee_id, :notes,
                     COALESCE(:created_at, datetime('now')))
                """,
                payload,
            )
            return int(cur.lastrowid)

    def get(self, movement_id: int, conn=None) -> Optional[Dict[str, Any]]:
        with self._conn(conn) as c:
            return _one(c.execute(f"SELECT {_MOV_COLS} FROM movements WHERE id = ?", (movement_id,)))

    def update(self, movement_id: int, fields: Dict[str, Any], conn=None) -> int:
        permitidos = {"type", "quantity", "unit", "employee_id", "notes"}
        sets = {k: v for k, v in fields.items() if k in permitidos}
        if not sets:
            return 0
        sql = ", ".join(f"{k} = :{k}" for k in sets)
        with self._conn(conn) as c:
            return c.execute(
                f"UPDATE movements SET {sql}, updated_at = datetime('now') WHERE id = :id",
                {**sets, "id": movement_id},
            ).rowcount

    def mark_deleted(self, movement_id: int, conn=None) -> int:
        with self._conn(conn) as c:
            return c.execute(
                "UPDATE movements SET deleted = 1, updated_at = datetime('now') WHERE id = ? AND deleted = 0",
                (movement_id,),
            ).rowcount

    def list_by_product(self, product_id: int, incluir_excluidas: bool = False, conn=None) -> List[Dict[str, Any]]:
        sql = f"SELECT {_MOV_COLS} FROM movements WHERE product_id = ?"
        if not incluir_excluidas:
            sql += " AND deleted = 0"
        with self._conn(conn) as c:
            return _rows(c.execute(sql + " ORDER BY created_at, id", (product_id,)))

    def historico(
        self,
        inicio: Optional[str] = None,
        fim: Optional[str] = None,
        tipo: Optional[str] = None,
        product_id: Optional[int] = None,
        employee_id: Optional[int] = None,
        limite: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Movimentações não excluídas com dados de produto e colaborador.

        ``inicio``/``fim`` são datas ISO (YYYY-MM-DD), inclusivas.
        """
        where = ["COALESCE(m.deleted, 0) = 0"]
        params: Dict[str, Any] = {}
        if inicio:
            where.append("date(m.created_at) >= date(:inicio)")
            params["inicio"] = inicio
        if fim:
            where.append("date(m.created_at) <= date(:fim)")
            params["fim"] = fim
        if tipo:
            where.append("m.type = :tipo")
            params["tipo"] = tipo
        if product_id is not None:
            where.append("m.product_id = :product_id")
            params["product_id"] = product_id
        if employee_id is not None:
            where.append("m.employee_id = :employee_id")
            params["employee_id"] = employee_id
        sql = f"""
            SELECT m.id, m.created_at, m.type, m.quantity,
                   COALESCE(NULLIF(m.unit, 'default'), p.unit) AS unit,
                   m.notes, m.product_id, p.code AS product_code, p.name AS product_name,
                   p.unit AS product_unit, m.employee_id, e.name AS employee_name
            FROM movements m
            JOIN products p ON p.id = m.product_id
            LEFT JOIN employees e ON e.id = m.employee_id
            WHERE {' AND '.join(where)}
            ORDER BY m.created_at DESC, m.id DESC
        """
        if limite:
            sql += " LIMIT :limite"
            params["limite"] = int(limite)
        with self._conn(None) as c:
            return _rows(c.execute(sql, params))

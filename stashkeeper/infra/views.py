# stashkeeper/infra/views.py
"""
Criação de views auxiliares para consultas frequentes.

Views criadas:
- vw_produtos:        produtos com o nome da categoria.
- vw_movimentacoes:   movimentações não excluídas com produto e colaborador.

Obs.:
- As views assumem que as migrações V1→V2 já foram aplicadas.
- Um conjunto de índices úteis também é criado, caso não existam.
"""

from __future__ import annotations

from .db import connect


def create_views(db_path: str) -> None:
    with connect(db_path) as c:
        c.executescript(
            """
            DROP VIEW IF EXISTS vw_produtos;
            CREATE VIEW vw_produtos AS
            SELECT
                p.id,
                p.code,
                p.name,
                p.unit,
                p.quantity,
                p.min_quantity,
                p.category_id,
                c.name AS category_name
            FROM products p
            LEFT JOIN categories c ON c.id = p.category_id;

            ---------------------------
            -- Histórico visível (exclusão lógica filtrada)
            ---------------------------
            DROP VIEW IF EXISTS vw_movimentacoes;
            CREATE VIEW vw_movimentacoes AS
            SELECT
                m.id,
                m.created_at,
                date(m.created_at) AS data,
                m.type,
                m.quantity,
                COALESCE(NULLIF(m.unit, 'default'), p.unit) AS unit,
                m.notes,
                m.product_id,
                p.code AS product_code,
                p.name AS product_name,
                p.unit AS product_unit,
                m.employee_id,
                e.code AS employee_code,
                e.name AS employee_name
            FROM movements m
            JOIN products p ON p.id = m.product_id
            LEFT JOIN employees e ON e.id = m.employee_id
            WHERE COALESCE(m.deleted, 0) = 0;
            """
        )

        c.executescript(
            """
            CREATE INDEX IF NOT EXISTS idx_movements_product  ON movements(product_id);
            CREATE INDEX IF NOT EXISTS idx_movements_created  ON movements(created_at);
            CREATE INDEX IF NOT EXISTS idx_movements_employee ON movements(employee_id);
            CREATE INDEX IF NOT EXISTS idx_products_category  ON products(category_id);
            """
        )

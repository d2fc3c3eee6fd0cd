# stashkeeper/usecases/relatorios.py
"""
Relatórios de estoque:
- estoque baixo (status CRÍTICO / BAIXO)
- movimentações por período
- saídas por colaborador
- resumo (painel)
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Tuple

from stashkeeper.config import DB_PATH
from stashkeeper.domain.policies import BAIXO, CRITICO, status_estoque
from stashkeeper.domain.unidades import SAIDA, convert_to_base, format_quantidade, normalize_tipo
from stashkeeper.infra.db import connect
from stashkeeper.infra.migrations import apply_migrations
from stashkeeper.infra.views import create_views
from stashkeeper.infra.logger import (
    log_system_event, log_database_operation, system_logger
)


# ----------------------
# util
# ----------------------

def _prepare(db_path: str) -> None:
    apply_migrations(db_path)
    log_database_operation("migrations", "APPLY", 0)
    create_views(db_path)
    log_database_operation("views", "CREATE", 0)


def _fetch(db_path: str, sql: str, params: Any = ()) -> List[Dict[str, Any]]:
    with connect(db_path) as c:
        cur = c.execute(sql, params)
        cols = [d[0] for d in cur.description]
        return [dict(zip(cols, r)) for r in cur.fetchall()]


def _filtro_periodo(inicio: Optional[str], fim: Optional[str]) -> Tuple[List[str], Dict[str, Any]]:
    where: List[str] = []
    params: Dict[str, Any] = {}
    if inicio:
        where.append("data >= date(:inicio)")
        params["inicio"] = inicio
    if fim:
        where.append("data <= date(:fim)")
        params["fim"] = fim
    return where, params


_ROTULO_STATUS = {CRITICO: "Crítico", BAIXO: "Baixo"}
_ROTULO_TIPO = {"entrada": "Entrada", "saida": "Saída"}


# ----------------------
# 1) Estoque baixo
# ----------------------

def relatorio_estoque_baixo(db_path: str = DB_PATH) -> tuple[list[str], list[list], str | None]:
    """
    Retorna colunas, linhas e mensagem para exibição tabular no DataTable do Textual.
    Produtos com status CRÍTICO ou BAIXO, críticos primeiro.
    """
    log_system_event("relatorio_estoque_baixo_start", {"db_path": db_path})
    try:
        _prepare(db_path)
        produtos = _fetch(db_path, "SELECT * FROM vw_produtos ORDER BY name")
        log_database_operation("vw_produtos", "SELECT_ALL", len(produtos))

        out = []
        for p in produtos:
            st = status_estoque(p["quantity"], p["min_quantity"])
            if st in (CRITICO, BAIXO):
                out.append((st, p))
        out.sort(key=lambda it: (it[0] != CRITICO, it[1]["name"].lower()))

        system_logger.info(f"REPORT_ESTOQUE_BAIXO: {len(out)}/{len(produtos)} produtos abaixo do nível")
        columns = ["Código", "Nome", "Categoria", "Unidade", "Quantidade", "Mínimo", "Status"]
        rows = [
            [
                p["code"],
                p["name"],
                p.get("category_name") or "",
                p["unit"],
                format_quantidade(p["quantity"], p["unit"]),
                format_quantidade(p["min_quantity"], p["unit"]),
                _ROTULO_STATUS[st],
            ]
            for st, p in out
        ]
        msg = None if rows else "Nenhum produto com estoque baixo."
        log_system_event("relatorio_estoque_baixo_success", {"total_resultados": len(rows)})
        return columns, rows, msg
    except Exception as e:
        log_system_event("relatorio_estoque_baixo_error", {"error": str(e)}, level="error")
        system_logger.error(f"REPORT_ESTOQUE_BAIXO: Erro - {e}")
        raise


# ----------------------
# 2) Movimentações
# ----------------------

def relatorio_movimentacoes(
    inicio: Optional[str] = None,
    fim: Optional[str] = None,
    tipo: Optional[str] = None,
    db_path: str = DB_PATH,
) -> tuple[list[str], list[list], str | None]:
    """
    Movimentações não excluídas entre ``inicio`` e ``fim`` (YYYY-MM-DD, inclusivos),
    opcionalmente filtradas por tipo. Mais recentes primeiro.
    """
    log_system_event("relatorio_movimentacoes_start", {"inicio": inicio, "fim": fim, "tipo": tipo})
    try:
        _prepare(db_path)
        where, params = _filtro_periodo(inicio, fim)
        if tipo:
            where.append("type = :tipo")
            params["tipo"] = normalize_tipo(tipo)
        sql = "SELECT * FROM vw_movimentacoes"
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += " ORDER BY created_at DESC, id DESC"
        movs = _fetch(db_path, sql, params)
        log_database_operation("vw_movimentacoes", "SELECT_PERIODO", len(movs))

        columns = ["ID", "Data", "Tipo", "Código", "Produto", "Quantidade", "Unidade", "Colaborador", "Observações"]
        rows = [
            [
                m["id"],
                m["created_at"],
                _ROTULO_TIPO.get(m["type"], m["type"]),
                m["product_code"],
                m["product_name"],
                format_quantidade(m["quantity"], m["unit"]),
                m["unit"],
                m.get("employee_name") or "",
                m.get("notes") or "",
            ]
            for m in movs
        ]
        msg = None if rows else "Nenhuma movimentação no período."
        log_system_event("relatorio_movimentacoes_success", {"total_resultados": len(rows)})
        return columns, rows, msg
    except Exception as e:
        log_system_event("relatorio_movimentacoes_error", {"error": str(e)}, level="error")
        system_logger.error(f"REPORT_MOVIMENTACOES: Erro - {e}")
        raise


# ----------------------
# 3) Saídas por colaborador
# ----------------------

def relatorio_saidas_por_funcionario(
    inicio: Optional[str] = None,
    fim: Optional[str] = None,
    db_path: str = DB_PATH,
) -> tuple[list[str], list[list], str | None]:
    """
    Total retirado por colaborador e produto, na unidade do produto.
    Saídas sem colaborador aparecem como "(sem colaborador)".
    """
    log_system_event("relatorio_saidas_funcionario_start", {"inicio": inicio, "fim": fim})
    try:
        _prepare(db_path)
        where, params = _filtro_periodo(inicio, fim)
        where.append("type = :tipo")
        params["tipo"] = SAIDA
        movs = _fetch(db_path, "SELECT * FROM vw_movimentacoes WHERE " + " AND ".join(where), params)
        log_database_operation("vw_movimentacoes", "SELECT_SAIDAS", len(movs))

        agg: Dict[Tuple[str, str], Dict[str, Any]] = {}
        for m in movs:
            colaborador = m.get("employee_name") or "(sem colaborador)"
            k = (colaborador, m["product_code"])
            if k not in agg:
                agg[k] = {
                    "colaborador": colaborador,
                    "code": m["product_code"],
                    "name": m["product_name"],
                    "unit": m["product_unit"],
                    "total": 0.0,
                    "retiradas": 0,
                }
            it = agg[k]
            it["total"] += float(convert_to_base(m["quantity"], m["unit"], m["product_unit"]))
            it["retiradas"] += 1

        out = sorted(agg.values(), key=lambda r: (r["colaborador"].lower(), r["name"].lower()))
        columns = ["Colaborador", "Código", "Produto", "Total", "Unidade", "Retiradas"]
        rows = [
            [
                r["colaborador"],
                r["code"],
                r["name"],
                format_quantidade(r["total"], r["unit"]),
                r["unit"],
                r["retiradas"],
            ]
            for r in out
        ]
        msg = None if rows else "Nenhuma saída no período."
        log_system_event("relatorio_saidas_funcionario_success", {"total_resultados": len(rows)})
        return columns, rows, msg
    except Exception as e:
        log_system_event("relatorio_saidas_funcionario_error", {"error": str(e)}, level="error")
        system_logger.error(f"REPORT_SAIDAS_FUNCIONARIO: Erro - {e}")
        raise


# ----------------------
# 4) Resumo (painel)
# ----------------------

def resumo_dashboard(dias: int = 30, db_path: str = DB_PATH) -> Dict[str, Any]:
    """Totais para o painel inicial (movimentações dos últimos ``dias``)."""
    _prepare(db_path)
    desde = (date.today() - timedelta(days=dias)).isoformat()
    with connect(db_path) as c:
        total_produtos = c.execute("SELECT COUNT(*) FROM products").fetchone()[0]
        total_categorias = c.execute("SELECT COUNT(*) FROM categories").fetchone()[0]
        total_funcionarios = c.execute("SELECT COUNT(*) FROM employees WHERE active = 1").fetchone()[0]
        estoque = c.execute("SELECT quantity, min_quantity FROM products").fetchall()
        por_tipo = {r[0]: r[1] for r in c.execute(
            "SELECT type, COUNT(*) FROM vw_movimentacoes WHERE data >= date(?) GROUP BY type",
            (desde,),
        ).fetchall()}

    status = [status_estoque(r[0], r[1]) for r in estoque]
    out = {
        "produtos": total_produtos,
        "categorias": total_categorias,
        "colaboradores": total_funcionarios,
        "criticos": status.count(CRITICO),
        "baixos": status.count(BAIXO),
        "entradas_periodo": por_tipo.get("entrada", 0),
        "saidas_periodo": por_tipo.get("saida", 0),
        "dias": dias,
    }
    log_system_event("resumo_dashboard", out)
    return out

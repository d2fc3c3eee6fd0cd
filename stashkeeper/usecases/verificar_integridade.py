# stashkeeper/usecases/verificar_integridade.py
"""
Caso de uso: verificar a integridade do estoque.

Para cada produto, recalcula a quantidade esperada a partir do histórico:

    esperado = initial_quantity + Σ efeito(movimentações não excluídas)

com cada movimentação convertida para a unidade do produto e o saldo
parcial zerado quando fica negativo dentro da tolerância de estoque (a
mesma regra aplicada ao gravar a saída). Produtos cuja
quantidade gravada difere do recalculado por mais de
``DEFAULTS.tolerancia_integridade`` são marcados como inconsistentes.

Com ``corrigir=True`` a quantidade gravada é substituída pela recalculada
(limitada a zero), numa única transação.
"""

from __future__ import annotations

from typing import Any, Dict, List

from stashkeeper.config import DB_PATH, DEFAULTS
from stashkeeper.domain.unidades import apply_movement, limitar_a_zero
from stashkeeper.infra.db import transaction
from stashkeeper.infra.migrations import apply_migrations
from stashkeeper.infra.repositories import MovimentacaoRepo, ProdutoRepo
from stashkeeper.infra.logger import (
    log_transaction, log_database_operation, log_system_event, system_logger
)


def quantidade_recalculada(produto: Dict[str, Any], movimentacoes: List[Dict[str, Any]]) -> float:
    """Estoque esperado do produto a partir do histórico."""
    qtd = float(produto.get("initial_quantity") or 0.0)
    for m in movimentacoes:
        if m.get("deleted"):
            continue
        qtd = limitar_a_zero(apply_movement(qtd, m["type"], m["quantity"], m.get("unit"), produto["unit"]))
    return qtd


def run_verificar_integridade(corrigir: bool = False, db_path: str = DB_PATH) -> Dict[str, Any]:
    """Compara a quantidade gravada de cada produto com a recalculada.

    Returns:
        {
          "produtos": [{"code", "name", "unit", "quantidade_gravada",
                        "quantidade_calculada", "diferenca", "consistente"}],
          "inconsistentes": int,
          "corrigidos": int,
        }
    """
    log_system_event("verificar_integridade_start", {"corrigir": corrigir, "db_path": db_path})
    try:
        apply_migrations(db_path)
        prod_repo = ProdutoRepo(db_path)
        mov_repo = MovimentacaoRepo(db_path)
        tol = DEFAULTS.tolerancia_integridade

        out: List[Dict[str, Any]] = []
        corrigidos = 0
        with transaction(db_path) as conn:
            produtos = [dict(p) for p in conn.execute(
                "SELECT id, code, name, unit, quantity, initial_quantity FROM products ORDER BY name"
            ).fetchall()]
            log_database_operation("products", "SELECT_ALL", len(produtos))

            for p in produtos:
                movs = mov_repo.list_by_product(p["id"], conn=conn)
                calculada = quantidade_recalculada(p, movs)
                gravada = float(p["quantity"] or 0.0)
                diferenca = gravada - calculada
                consistente = abs(diferenca) < tol
                if not consistente:
                    system_logger.warning(
                        f"INTEGRIDADE: {p['code']} gravado={gravada} calculado={calculada}"
                    )
                    if corrigir:
                        prod_repo.set_quantity(p["id"], max(calculada, 0.0), conn=conn)
                        corrigidos += 1
                out.append({
                    "code": p["code"],
                    "name": p["name"],
                    "unit": p["unit"],
                    "quantidade_gravada": gravada,
                    "quantidade_calculada": calculada,
                    "diferenca": diferenca,
                    "consistente": consistente,
                })

        if corrigidos:
            log_database_operation("products", "UPDATE", corrigidos, motivo="integridade")

        result = {
            "produtos": out,
            "inconsistentes": sum(1 for r in out if not r["consistente"]),
            "corrigidos": corrigidos,
        }
        log_transaction("verificar_integridade", {"corrigir": corrigir},
                        result={k: v for k, v in result.items() if k != "produtos"})
        log_system_event("verificar_integridade_success", {
            "total": len(out), "inconsistentes": result["inconsistentes"], "corrigidos": corrigidos,
        })
        return result
    except Exception as e:
        log_transaction("verificar_integridade", {"corrigir": corrigir}, error=str(e))
        log_system_event("verificar_integridade_error", {"error": str(e)}, level="error")
        raise

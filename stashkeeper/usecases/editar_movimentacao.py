# stashkeeper/usecases/editar_movimentacao.py
"""
UC: Editar uma movimentação existente.

Fluxo (uma única transação):
1) Lê a movimentação original e o estoque atual do produto.
2) Reverte o efeito da original e aplica o da editada
   (``reconcile_edited_movement``).
3) Grava a movimentação editada e o novo estoque.

Se a reconciliação deixar o estoque negativo, nada é gravado.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Union

from stashkeeper.config import DB_PATH
from stashkeeper.adapters.parsers import parse_quantidade_positiva
from stashkeeper.domain.exceptions import NotFoundError
from stashkeeper.domain.unidades import (
    SAIDA,
    normalize_tipo,
    reconcile_edited_movement,
    validar_unidade_movimentacao,
)
from stashkeeper.infra.db import transaction
from stashkeeper.infra.repositories import MovimentacaoRepo, ProdutoRepo
from stashkeeper.infra.logger import (
    log_transaction, log_movimentacao, log_database_operation, log_system_event
)
from stashkeeper.usecases.registrar_movimentacao import _unidade_gravada, resolve_funcionario

_MANTER = object()


def run_editar_movimentacao(
    movement_id: int,
    tipo: Optional[str] = None,
    quantidade: Any = None,
    unidade: Optional[str] = None,
    funcionario: Union[int, str, None, object] = _MANTER,
    notes: Union[str, None, object] = _MANTER,
    db_path: str = DB_PATH,
) -> Dict[str, Any]:
    """Edita tipo, quantidade, unidade, colaborador e/ou observações.

    Campos não informados mantêm o valor original.

    Returns:
        Movimentação editada com ``product_quantity`` (estoque final).

    Raises:
        ValidationError, NotFoundError, NegativeStockError, BackendError
    """
    log_system_event("editar_movimentacao_start", {"movement_id": movement_id})
    try:
        tipo_n = normalize_tipo(tipo) if tipo is not None else None
        qtd = parse_quantidade_positiva(quantidade) if quantidade is not None else None

        mov_repo = MovimentacaoRepo(db_path)
        prod_repo = ProdutoRepo(db_path)

        with transaction(db_path) as conn:
            original = mov_repo.get(movement_id, conn=conn)
            if original is None or original.get("deleted"):
                raise NotFoundError("Movimentação", movement_id)
            prod = prod_repo.get(original["product_id"], conn=conn)
            if prod is None:
                raise NotFoundError("Produto", original["product_id"])

            novo_tipo = tipo_n or original["type"]
            if unidade is not None:
                validar_unidade_movimentacao(unidade, prod["unit"])
            nova_unidade = (
                _unidade_gravada(unidade, prod["unit"]) if unidade is not None
                else (original["unit"] or prod["unit"])
            )
            editada = {
                "type": novo_tipo,
                "quantity": qtd if qtd is not None else float(original["quantity"]),
                "unit": nova_unidade,
            }

            if funcionario is _MANTER:
                employee_id = original["employee_id"]
            else:
                func = resolve_funcionario(funcionario, db_path, conn=conn)
                employee_id = func["id"] if func else None
            if novo_tipo != SAIDA:
                employee_id = None

            if notes is _MANTER:
                novas_notas = original["notes"]
            else:
                novas_notas = (notes or "").strip() or None

            nova_quantidade = reconcile_edited_movement(
                original, editada, float(prod["quantity"] or 0.0), prod["unit"]
            )

            mov_repo.update(
                movement_id,
                {**editada, "employee_id": employee_id, "notes": novas_notas},
                conn=conn,
            )
            log_database_operation("movements", "UPDATE", 1, movement_id=movement_id)
            prod_repo.set_quantity(prod["id"], nova_quantidade, conn=conn)
            log_database_operation("products", "UPDATE", 1, product_id=prod["id"], quantity=nova_quantidade)

        log_movimentacao("update", novo_tipo, prod["id"], editada["quantity"], editada["unit"],
                         movement_id=movement_id, anterior=dict(original))
        rec = {
            "id": movement_id,
            "product_id": prod["id"],
            "product_code": prod["code"],
            "product_name": prod["name"],
            "product_unit": prod["unit"],
            **editada,
            "employee_id": employee_id,
            "notes": novas_notas,
            "quantidade_anterior": float(prod["quantity"] or 0.0),
            "product_quantity": nova_quantidade,
        }
        log_transaction("editar_movimentacao", {"movement_id": movement_id}, result=rec)
        log_system_event("editar_movimentacao_success", {"movement_id": movement_id})
        return rec
    except Exception as e:
        log_transaction("editar_movimentacao", {"movement_id": movement_id}, error=str(e))
        log_system_event("editar_movimentacao_error", {"error": str(e)}, level="error")
        raise

# stashkeeper/usecases/excluir_movimentacao.py
"""
UC: Excluir (logicamente) uma movimentação.

A movimentação é marcada com ``deleted = 1`` e seu efeito é revertido no
estoque do produto, na mesma transação. Excluir uma entrada cujo estoque
já foi consumido levanta ``NegativeStockError`` (fase ``reversao``).
"""

from __future__ import annotations

from typing import Any, Dict

from stashkeeper.config import DB_PATH
from stashkeeper.domain.exceptions import NegativeStockError, NotFoundError
from stashkeeper.domain.unidades import efeito_movimentacao
from stashkeeper.infra.db import transaction
from stashkeeper.infra.repositories import MovimentacaoRepo, ProdutoRepo
from stashkeeper.infra.logger import (
    log_transaction, log_movimentacao, log_database_operation, log_system_event
)


def run_excluir_movimentacao(movement_id: int, db_path: str = DB_PATH) -> Dict[str, Any]:
    """Exclui a movimentação e reverte seu efeito no estoque.

    Returns:
        {"id", "product_id", "quantidade_anterior", "product_quantity"}
    """
    log_system_event("excluir_movimentacao_start", {"movement_id": movement_id})
    try:
        mov_repo = MovimentacaoRepo(db_path)
        prod_repo = ProdutoRepo(db_path)

        with transaction(db_path) as conn:
            mov = mov_repo.get(movement_id, conn=conn)
            if mov is None or mov.get("deleted"):
                raise NotFoundError("Movimentação", movement_id)
            prod = prod_repo.get(mov["product_id"], conn=conn)
            if prod is None:
                raise NotFoundError("Produto", mov["product_id"])

            atual = float(prod["quantity"] or 0.0)
            nova = atual - efeito_movimentacao(mov["type"], mov["quantity"], mov["unit"], prod["unit"])
            if nova < 0:
                raise NegativeStockError(NegativeStockError.REVERSAO, nova)

            mov_repo.mark_deleted(movement_id, conn=conn)
            log_database_operation("movements", "SOFT_DELETE", 1, movement_id=movement_id)
            prod_repo.set_quantity(prod["id"], nova, conn=conn)
            log_database_operation("products", "UPDATE", 1, product_id=prod["id"], quantity=nova)

        log_movimentacao("delete", mov["type"], prod["id"], mov["quantity"], mov["unit"], movement_id=movement_id)
        rec = {
            "id": movement_id,
            "product_id": prod["id"],
            "quantidade_anterior": atual,
            "product_quantity": nova,
        }
        log_transaction("excluir_movimentacao", {"movement_id": movement_id}, result=rec)
        return rec
    except Exception as e:
        log_transaction("excluir_movimentacao", {"movement_id": movement_id}, error=str(e))
        log_system_event("excluir_movimentacao_error", {"error": str(e)}, level="error")
        raise

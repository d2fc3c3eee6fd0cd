# stashkeeper/usecases/registrar_movimentacao.py
"""
UC: Registrar movimentações (ENTRADA / SAÍDA), única e em lote.

- run_registrar_movimentacao(): registra uma movimentação e atualiza o
  estoque do produto numa única transação.
- run_movimentacao_lote(path): lê XLSX com o adapter e registra linha a
  linha; falhas de uma linha não impedem as demais.

Obs.:
- A quantidade é gravada na unidade digitada; o estoque do produto é
  atualizado com o valor convertido para a unidade do produto.
- Só são aceitas a unidade do produto e as alternativas da mesma família.
- Validações de quantidade acontecem antes de qualquer acesso ao banco.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from stashkeeper.config import DB_PATH
from stashkeeper.adapters.parsers import parse_quantidade_positiva
from stashkeeper.adapters.xlsx_loader import load_movimentacoes_from_xlsx
from stashkeeper.domain.exceptions import (
    InsufficientStockError,
    NotFoundError,
    StashKeeperError,
    ValidationError,
)
from stashkeeper.domain.unidades import (
    SAIDA,
    UNIDADE_PADRAO,
    apply_movement,
    limitar_a_zero,
    normalize_tipo,
    normalize_unit,
    validar_unidade_movimentacao,
    validate_stock_for_exit,
)
from stashkeeper.infra.db import transaction
from stashkeeper.infra.repositories import FuncionarioRepo, MovimentacaoRepo, ProdutoRepo
from stashkeeper.infra.logger import (
    log_transaction, log_movimentacao, log_database_operation,
    log_system_event, log_file_operation, print_system
)


def _unidade_gravada(unidade: Optional[str], product_unit: str) -> str:
    """Unidade persistida na movimentação (``default`` vira a do produto)."""
    if unidade is None or not str(unidade).strip() or unidade == UNIDADE_PADRAO:
        return normalize_unit(product_unit)
    return normalize_unit(unidade)


def resolve_produto(produto: Union[int, str], db_path: str = DB_PATH, conn=None) -> Dict[str, Any]:
    """Busca o produto por id (int) ou código (str)."""
    repo = ProdutoRepo(db_path)
    if isinstance(produto, int):
        row = repo.get(produto, conn=conn)
    else:
        row = repo.get_by_code(str(produto), conn=conn)
    if row is None:
        raise NotFoundError("Produto", produto)
    return row


def resolve_funcionario(funcionario: Union[int, str, None], db_path: str = DB_PATH, conn=None) -> Optional[Dict[str, Any]]:
    if funcionario is None or (isinstance(funcionario, str) and not funcionario.strip()):
        return None
    repo = FuncionarioRepo(db_path)
    if isinstance(funcionario, int):
        row = repo.get(funcionario, conn=conn)
    else:
        row = repo.get_by_code(str(funcionario), conn=conn)
    if row is None:
        raise NotFoundError("Colaborador", funcionario)
    return row


def run_registrar_movimentacao(
    produto: Union[int, str],
    tipo: str,
    quantidade: Any,
    unidade: Optional[str] = UNIDADE_PADRAO,
    funcionario: Union[int, str, None] = None,
    notes: Optional[str] = None,
    db_path: str = DB_PATH,
) -> Dict[str, Any]:
    """Registra uma ENTRADA ou SAÍDA e atualiza o estoque do produto.

    Args:
        produto: id (int) ou código (str) do produto.
        tipo: ``entrada`` ou ``saida``.
        quantidade: número ou texto (vírgula ou ponto decimal).
        unidade: unidade digitada; ``default`` = unidade do produto.
        funcionario: id ou código do colaborador (apenas saídas).
        notes: observações livres.

    Returns:
        Registro da movimentação com ``product_quantity`` (estoque final).

    Raises:
        ValidationError, InsufficientStockError, NotFoundError, BackendError
    """
    log_system_event("registrar_movimentacao_start", {"produto": produto, "tipo": tipo})
    try:
        tipo_n = normalize_tipo(tipo)
        qtd = parse_quantidade_positiva(quantidade)
        log_movimentacao("input", tipo_n, produto, qtd, unidade, funcionario=funcionario)

        with transaction(db_path) as conn:
            prod = resolve_produto(produto, db_path, conn=conn)
            func = resolve_funcionario(funcionario, db_path, conn=conn) if tipo_n == SAIDA else None
            validar_unidade_movimentacao(unidade, prod["unit"])

            atual = float(prod["quantity"] or 0.0)
            if tipo_n == SAIDA:
                validacao = validate_stock_for_exit(atual, qtd, unidade, prod["unit"])
                if not validacao.valid:
                    raise InsufficientStockError(validacao.message)

            nova = limitar_a_zero(apply_movement(atual, tipo_n, qtd, unidade, prod["unit"]))

            rec = {
                "product_id": prod["id"],
                "type": tipo_n,
                "quantity": qtd,
                "unit": _unidade_gravada(unidade, prod["unit"]),
                "employee_id": func["id"] if func else None,
                "notes": (notes or "").strip() or None,
            }
            mov_repo = MovimentacaoRepo(db_path)
            rec["id"] = mov_repo.insert(rec, conn=conn)
            log_database_operation("movements", "INSERT", 1, product_id=prod["id"], tipo=tipo_n)

            ProdutoRepo(db_path).set_quantity(prod["id"], nova, conn=conn)
            log_database_operation("products", "UPDATE", 1, product_id=prod["id"], quantity=nova)

        rec["product_code"] = prod["code"]
        rec["product_name"] = prod["name"]
        rec["product_unit"] = prod["unit"]
        rec["product_quantity"] = nova
        rec["employee_name"] = func["name"] if func else None

        print_system(f">> {'Saída' if tipo_n == SAIDA else 'Entrada'} registrada com sucesso.")
        log_transaction("registrar_movimentacao", {"produto": produto, "tipo": tipo_n, "quantidade": qtd}, result=rec)
        log_system_event("registrar_movimentacao_success", {"movement_id": rec["id"]})
        return rec
    except Exception as e:
        log_transaction("registrar_movimentacao", {"produto": produto, "tipo": tipo, "quantidade": quantidade}, error=str(e))
        log_system_event("registrar_movimentacao_error", {"error": str(e)}, level="error")
        raise


def run_movimentacao_lote(path: str, db_path: str = DB_PATH) -> Dict[str, Any]:
    """Lê um XLSX de movimentações e registra cada linha.

    Returns:
        {"arquivo", "tipo", "total", "sucessos", "registros", "erros": [{"linha", "mensagem"}]}
    """
    log_system_event("movimentacao_lote_start", {"file_path": path})
    log_file_operation("import", path)

    rows: List[Dict[str, Any]] = load_movimentacoes_from_xlsx(path)
    log_file_operation("import", path, rows_processed=len(rows))

    registros: List[Dict[str, Any]] = []
    erros: List[Dict[str, Any]] = []
    # linha 1 é o cabeçalho da planilha
    for linha, row in enumerate(rows, start=2):
        try:
            if not row.get("codigo"):
                raise ValidationError("Código do produto ausente", field="code")
            rec = run_registrar_movimentacao(
                produto=row["codigo"],
                tipo=row.get("tipo") or "",
                quantidade=row.get("quantidade"),
                unidade=row.get("unidade") or UNIDADE_PADRAO,
                funcionario=row.get("colaborador"),
                notes=row.get("observacoes"),
                db_path=db_path,
            )
            registros.append(rec)
        except StashKeeperError as e:
            erros.append({"linha": linha, "mensagem": e.message})

    result = {
        "arquivo": path,
        "tipo": "Movimentações",
        "total": len(rows),
        "sucessos": len(registros),
        "registros": registros,
        "erros": erros,
    }
    log_transaction("movimentacao_lote", {"file": path, "rows_count": len(rows)},
                    result={"sucessos": len(registros), "erros": len(erros)})
    log_system_event("movimentacao_lote_success", {"file_path": path, "rows_inserted": len(registros)})
    return result

# stashkeeper/usecases/cadastros.py
"""
UC: Cadastros básicos (categorias, produtos e colaboradores).

- CRUD simples sobre os repositórios, com validação dos campos obrigatórios.
- Importação de produtos e colaboradores a partir de XLSX (upsert por código).

Na importação de produtos, quando a planilha não traz a quantidade mínima,
usa-se ``round(quantidade * 0.2)`` (``DEFAULTS.fator_minimo_importacao``).
"""

from __future__ import annotations

import sqlite3
from typing import Any, Dict, List, Optional

from stashkeeper.config import DB_PATH
from stashkeeper.adapters.parsers import parse_quantidade
from stashkeeper.adapters.xlsx_loader import load_funcionarios_from_xlsx, load_produtos_from_xlsx
from stashkeeper.domain.exceptions import BackendError, NotFoundError, ValidationError
from stashkeeper.domain.models import Categoria, Funcionario, Produto
from stashkeeper.domain.policies import quantidade_minima_sugerida
from stashkeeper.domain.unidades import normalize_unit
from stashkeeper.infra.migrations import apply_migrations
from stashkeeper.infra.repositories import CategoriaRepo, FuncionarioRepo, ProdutoRepo
from stashkeeper.infra.logger import (
    log_transaction, log_database_operation, log_system_event, log_file_operation
)


def _obrigatorio(valor: Optional[str], campo: str, rotulo: str) -> str:
    s = (valor or "").strip()
    if not s:
        raise ValidationError(f"{rotulo} é obrigatório", field=campo)
    return s


def _nao_negativo(valor: Any, campo: str) -> float:
    if valor is None or (isinstance(valor, str) and not valor.strip()):
        return 0.0
    q = parse_quantidade(valor)
    if q < 0:
        raise ValidationError("A quantidade não pode ser negativa", field=campo)
    return q


def _codigo_duplicado(e: BackendError) -> bool:
    return isinstance(e.__cause__, sqlite3.IntegrityError)


# -------------------------
# Categorias
# -------------------------

def add_categoria(name: str, description: Optional[str] = None, db_path: str = DB_PATH) -> Dict[str, Any]:
    cat = Categoria(name=_obrigatorio(name, "name", "Nome da categoria"), description=description)
    repo = CategoriaRepo(db_path)
    if repo.get_by_name(cat.name):
        raise ValidationError(f"Categoria já cadastrada: {cat.name}", field="name")
    cat.id = repo.insert(cat)
    log_database_operation("categories", "INSERT", 1, name=cat.name)
    return {"id": cat.id, "name": cat.name, "description": cat.description}


def list_categorias(db_path: str = DB_PATH) -> List[Dict[str, Any]]:
    return CategoriaRepo(db_path).get_all()


def resolve_categoria(categoria: Any, criar: bool = False, db_path: str = DB_PATH) -> Optional[Dict[str, Any]]:
    """Busca a categoria por id ou nome; opcionalmente cria pelo nome."""
    if categoria is None or (isinstance(categoria, str) and not categoria.strip()):
        return None
    repo = CategoriaRepo(db_path)
    if isinstance(categoria, int):
        row = repo.get(categoria)
    else:
        row = repo.get_by_name(str(categoria))
        if row is None and criar:
            add_categoria(str(categoria), db_path=db_path)
            row = repo.get_by_name(str(categoria))
    if row is None:
        raise NotFoundError("Categoria", categoria)
    return row


def delete_categoria(category_id: int, db_path: str = DB_PATH) -> None:
    if not CategoriaRepo(db_path).delete(category_id):
        raise NotFoundError("Categoria", category_id)
    log_database_operation("categories", "DELETE", 1, category_id=category_id)


# -------------------------
# Produtos
# -------------------------

def add_produto(
    code: str,
    name: str,
    unit: str = "un",
    quantity: Any = 0,
    min_quantity: Any = 0,
    description: Optional[str] = None,
    categoria: Any = None,
    db_path: str = DB_PATH,
) -> Dict[str, Any]:
    """Cadastra um produto. A quantidade inicial vira ``initial_quantity``."""
    cat = resolve_categoria(categoria, db_path=db_path)
    prod = Produto(
        code=_obrigatorio(code, "code", "Código"),
        name=_obrigatorio(name, "name", "Nome"),
        unit=normalize_unit(unit or "un"),
        quantity=_nao_negativo(quantity, "quantity"),
        min_quantity=_nao_negativo(min_quantity, "min_quantity"),
        description=description,
        category_id=cat["id"] if cat else None,
    )
    repo = ProdutoRepo(db_path)
    try:
        prod.id = repo.insert(prod)
    except BackendError as e:
        if _codigo_duplicado(e):
            raise ValidationError(f"Código já cadastrado: {prod.code}", field="code") from e
        raise
    log_database_operation("products", "INSERT", 1, code=prod.code)
    log_transaction("add_produto", {"code": prod.code, "quantity": prod.quantity}, result={"id": prod.id})
    return repo.get(prod.id)


def update_produto(product_id: int, db_path: str = DB_PATH, **fields) -> Dict[str, Any]:
    """Atualiza dados cadastrais. A quantidade só muda por movimentações."""
    repo = ProdutoRepo(db_path)
    if repo.get(product_id) is None:
        raise NotFoundError("Produto", product_id)
    if "quantity" in fields:
        raise ValidationError("A quantidade só pode ser alterada por movimentações", field="quantity")
    if "unit" in fields:
        fields["unit"] = normalize_unit(fields["unit"])
    if "min_quantity" in fields:
        fields["min_quantity"] = _nao_negativo(fields["min_quantity"], "min_quantity")
    if "categoria" in fields:
        cat = resolve_categoria(fields.pop("categoria"), db_path=db_path)
        fields["category_id"] = cat["id"] if cat else None
    repo.update(product_id, fields)
    log_database_operation("products", "UPDATE", 1, product_id=product_id, campos=sorted(fields))
    return repo.get(product_id)


def list_produtos(categoria: Any = None, db_path: str = DB_PATH) -> List[Dict[str, Any]]:
    cat = resolve_categoria(categoria, db_path=db_path)
    return ProdutoRepo(db_path).get_all(category_id=cat["id"] if cat else None)


def delete_produto(product_id: int, db_path: str = DB_PATH) -> None:
    """Exclui o produto e, em cascata, o seu histórico de movimentações."""
    if not ProdutoRepo(db_path).delete(product_id):
        raise NotFoundError("Produto", product_id)
    log_database_operation("products", "DELETE", 1, product_id=product_id)


def run_importar_produtos(path: str, categoria: Any = None, db_path: str = DB_PATH) -> Dict[str, Any]:
    """Importa produtos de XLSX (upsert por código).

    ``categoria`` (id ou nome) vale para todas as linhas; sem ela, usa a
    coluna ``Categoria`` da planilha, criando categorias novas pelo nome.

    Returns:
        {"arquivo", "tipo", "total", "inseridos", "atualizados"}
    """
    log_system_event("importar_produtos_start", {"file_path": path, "categoria": categoria})
    log_file_operation("import", path)
    try:
        apply_migrations(db_path)
        rows = load_produtos_from_xlsx(path)
        log_file_operation("import", path, rows_processed=len(rows))

        fixa = resolve_categoria(categoria, criar=True, db_path=db_path)
        cache: Dict[str, Optional[int]] = {}
        payload: List[Dict[str, Any]] = []
        for r in rows:
            if fixa:
                category_id = fixa["id"]
            elif r.get("categoria"):
                nome = r["categoria"]
                if nome.lower() not in cache:
                    cache[nome.lower()] = resolve_categoria(nome, criar=True, db_path=db_path)["id"]
                category_id = cache[nome.lower()]
            else:
                category_id = None
            quantity = max(float(r.get("quantity") or 0.0), 0.0)
            minimo = r.get("min_quantity")
            payload.append({
                "code": r["code"],
                "name": r["name"],
                "unit": normalize_unit(r.get("unit") or "un"),
                "quantity": quantity,
                "min_quantity": quantidade_minima_sugerida(quantity) if minimo is None else max(minimo, 0.0),
                "description": r.get("description"),
                "category_id": category_id,
            })

        inseridos, atualizados = ProdutoRepo(db_path).upsert(payload)
        log_database_operation("products", "UPSERT", len(payload), inseridos=inseridos, atualizados=atualizados)
        result = {
            "arquivo": path,
            "tipo": "Produtos",
            "total": len(payload),
            "inseridos": inseridos,
            "atualizados": atualizados,
        }
        log_transaction("importar_produtos", {"file": path}, result=result)
        log_system_event("importar_produtos_success", result)
        return result
    except Exception as e:
        log_transaction("importar_produtos", {"file": path}, error=str(e))
        log_system_event("importar_produtos_error", {"error": str(e)}, level="error")
        raise


# -------------------------
# Colaboradores
# -------------------------

def add_funcionario(code: str, name: str, role: Optional[str] = None, db_path: str = DB_PATH) -> Dict[str, Any]:
    func = Funcionario(
        code=_obrigatorio(code, "code", "Código"),
        name=_obrigatorio(name, "name", "Nome"),
        role=(role or "").strip() or None,
    )
    repo = FuncionarioRepo(db_path)
    try:
        func.id = repo.insert(func)
    except BackendError as e:
        if _codigo_duplicado(e):
            raise ValidationError(f"Código já cadastrado: {func.code}", field="code") from e
        raise
    log_database_operation("employees", "INSERT", 1, code=func.code)
    return repo.get(func.id)


def list_funcionarios(somente_ativos: bool = False, db_path: str = DB_PATH) -> List[Dict[str, Any]]:
    return FuncionarioRepo(db_path).get_all(somente_ativos=somente_ativos)


def set_funcionario_ativo(employee_id: int, ativo: bool, db_path: str = DB_PATH) -> None:
    if not FuncionarioRepo(db_path).set_active(employee_id, ativo):
        raise NotFoundError("Colaborador", employee_id)
    log_database_operation("employees", "UPDATE", 1, employee_id=employee_id, active=ativo)


def run_importar_funcionarios(path: str, db_path: str = DB_PATH) -> Dict[str, Any]:
    """Importa colaboradores de XLSX (upsert por código)."""
    log_system_event("importar_funcionarios_start", {"file_path": path})
    log_file_operation("import", path)
    try:
        apply_migrations(db_path)
        rows = load_funcionarios_from_xlsx(path)
        inseridos, atualizados = FuncionarioRepo(db_path).upsert(rows)
        log_database_operation("employees", "UPSERT", len(rows), inseridos=inseridos, atualizados=atualizados)
        result = {
            "arquivo": path,
            "tipo": "Colaboradores",
            "total": len(rows),
            "inseridos": inseridos,
            "atualizados": atualizados,
        }
        log_transaction("importar_funcionarios", {"file": path}, result=result)
        return result
    except Exception as e:
        log_transaction("importar_funcionarios", {"file": path}, error=str(e))
        log_system_event("importar_funcionarios_error", {"error": str(e)}, level="error")
        raise

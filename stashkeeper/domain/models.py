# stashkeeper/domain/models.py
"""
Modelos (dataclasses) do domínio.

Observação importante:
- Os repositórios aceitam dicionários; as dataclasses são opcionais
  e servem para tipagem/clareza. Use-as quando fizer sentido.
- ``Produto.quantity`` está sempre na unidade do próprio produto;
  ``Movimentacao.quantity`` está na unidade escolhida na digitação.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class Categoria:
    name: str
    description: Optional[str] = None
    id: Optional[int] = None


@dataclass
class Produto:
    """Cadastro de produto."""
    code: str
    name: str
    unit: str = "un"
    quantity: float = 0.0
    min_quantity: float = 0.0
    description: Optional[str] = None
    category_id: Optional[int] = None
    initial_quantity: Optional[float] = None   # None => igual a quantity no cadastro
    id: Optional[int] = None


@dataclass
class Funcionario:
    """Colaborador que retira produtos (saídas)."""
    code: str
    name: str
    role: Optional[str] = None
    active: int = 1          # 0/1
    id: Optional[int] = None


@dataclass
class Movimentacao:
    """Entrada ou saída de um produto."""
    product_id: int
    type: str                        # 'entrada' | 'saida'
    quantity: float
    unit: Optional[str] = None       # None/'default' => unidade do produto
    employee_id: Optional[int] = None
    notes: Optional[str] = None
    created_at: Optional[str] = None
    deleted: int = 0
    id: Optional[int] = None

"""
Políticas de classificação de estoque.

Este módulo contém a regra de status exibida na lista de produtos e nos
relatórios de estoque baixo, e a regra de quantidade mínima sugerida na
importação de planilhas.
"""

from __future__ import annotations

from typing import Optional

from stashkeeper.config import DEFAULTS


CRITICO = "CRITICO"
BAIXO = "BAIXO"
NORMAL = "NORMAL"
VERIFICAR = "VERIFICAR"


def status_estoque(quantity: Optional[float], min_quantity: Optional[float]) -> str:
    """Classifica o status do estoque de um produto.

    Regras:
        - Se algum dos parâmetros for ``None`` ou não numérico → ``'VERIFICAR'``
        - ``quantity <= min_quantity`` → ``'CRITICO'``
        - ``quantity <= min_quantity * 1.5`` → ``'BAIXO'``
        - caso contrário → ``'NORMAL'``

    Args:
        quantity: Quantidade atual (na unidade do produto).
        min_quantity: Quantidade mínima cadastrada.

    Returns:
        ``'CRITICO'``, ``'BAIXO'``, ``'NORMAL'`` ou ``'VERIFICAR'``.
    """
    try:
        q = float(quantity) if quantity is not None else None
        m = float(min_quantity) if min_quantity is not None else None
    except (TypeError, ValueError):
        return VERIFICAR

    if q is None or m is None:
        return VERIFICAR
    if q <= m:
        return CRITICO
    if q <= m * DEFAULTS.fator_estoque_baixo:
        return BAIXO
    return NORMAL


def quantidade_minima_sugerida(quantity: Optional[float]) -> float:
    """Quantidade mínima padrão para produtos importados sem esse campo.

    20% do estoque importado, arredondado; produtos zerados ficam com 0.
    """
    if quantity is None:
        return 0.0
    q = float(quantity)
    if q <= 0:
        return 0.0
    return float(round(q * DEFAULTS.fator_minimo_importacao))

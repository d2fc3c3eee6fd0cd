"""
Utilidades de parsing para valores de quantidades.

Este módulo interpreta as quantidades digitadas nos formulários e lidas
das planilhas. Vírgula e ponto são aceitos como separador decimal;
entradas malformadas levantam ``ValidationError`` (nunca viram zero).
"""

from __future__ import annotations

import math
import re
from typing import Any, Optional, Tuple

from stashkeeper.domain.exceptions import MSG_QUANTIDADE_POSITIVA, ValidationError

_NUM_RE = re.compile(r"[-+]?\d+(?:[.,]\d+)?")
_NUM_FULL_RE = re.compile(r"[-+]?(?:\d+(?:[.,]\d*)?|[.,]\d+)")
_MILHAR_BR_RE = re.compile(r"[-+]?\d{1,3}(?:\.\d{3})+,\d+")
_MILHAR_US_RE = re.compile(r"[-+]?\d{1,3}(?:,\d{3})+\.\d+")


def parse_quantidade(txt: Any) -> float:
    """Converte o texto digitado numa quantidade.

    Exemplos:
        "1,5"      → 1.5
        "1.5"      → 1.5
        " 2 "      → 2.0
        "1.234,5"  → 1234.5
        3          → 3.0

    Raises:
        ValidationError: texto vazio, não numérico, NaN ou infinito.
    """
    if txt is None or isinstance(txt, bool):
        raise ValidationError("Informe a quantidade", field="quantity")
    if isinstance(txt, (int, float)):
        valor = float(txt)
    else:
        s = str(txt).strip().replace(" ", "")
        if not s:
            raise ValidationError("Informe a quantidade", field="quantity")
        if _MILHAR_BR_RE.fullmatch(s):
            s = s.replace(".", "").replace(",", ".")
        elif _MILHAR_US_RE.fullmatch(s):
            s = s.replace(",", "")
        elif _NUM_FULL_RE.fullmatch(s):
            s = s.replace(",", ".")
        else:
            raise ValidationError(f"Quantidade inválida: {txt!r}", field="quantity")
        valor = float(s)
    if math.isnan(valor) or math.isinf(valor):
        raise ValidationError(f"Quantidade inválida: {txt!r}", field="quantity")
    return valor


def validate_quantidade_positiva(valor: float) -> float:
    """Garante quantidade estritamente positiva."""
    if valor <= 0:
        raise ValidationError(MSG_QUANTIDADE_POSITIVA, field="quantity")
    return valor


def parse_quantidade_positiva(txt: Any) -> float:
    return validate_quantidade_positiva(parse_quantidade(txt))


def parse_quantidade_raw(txt: str) -> Tuple[Optional[float], Optional[str], Optional[str]]:
    """Interpreta uma célula de planilha com quantidade e unidade.

    A string de entrada geralmente segue o padrão "<valor> <unidade> - <descrição>".
    O valor pode usar vírgula ou ponto como separador decimal. A unidade
    é retornada em minúsculas (padrão das unidades de produto).

    Exemplos:
        "500 g - gramas"    → (500.0, "g", "gramas")
        "2 RL"              → (2.0, "rl", None)
        "5,5 ml - mililitro" → (5.5, "ml", "mililitro")
        "12"                → (12.0, None, None)

    Args:
        txt: Texto a ser interpretado.

    Returns:
        Uma tupla (numero, unidade, descricao). Qualquer valor que não
        possa ser determinado será retornado como None.
    """
    if txt is None:
        return None, None, None
    s = str(txt).strip()
    if not s:
        return None, None, None
    head, desc = (s.split(" - ", 1) + [""])[:2]
    head = head.strip()
    desc = desc.strip() or None
    parts = head.split()
    num = None
    unidade = None
    if parts:
        m = _NUM_RE.search(parts[0])
        if m:
            num = float(m.group(0).replace(",", "."))
            resto = parts[0][m.end():].strip()
            # "500g" colado
            if resto:
                unidade = resto.lower()
    if len(parts) >= 2 and parts[1].strip():
        unidade = parts[1].strip().lower()
    return num, unidade, desc

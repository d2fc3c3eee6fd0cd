"""
Conversão de unidades de medida e reconciliação de estoque.

Toda quantidade de produto é armazenada na unidade declarada do próprio
produto (``produto.unit``). As movimentações podem ser digitadas numa
unidade alternativa da mesma família (g para um produto em kg, ml para um
produto em L, etiquetas para um produto em rolos); antes de afetar o
estoque, o valor é sempre convertido para a unidade do produto.

Famílias reconhecidas:

    ==== ========== ===================
    base alternativa alternativa → base
    ==== ========== ===================
    kg   g           ÷ 1000
    l    ml          ÷ 1000
    rl   un          ÷ 100
    ==== ========== ===================

As conversões usam ``fractions.Fraction`` internamente: o valor é
multiplicado pelo fator exato e arredondado para float uma única vez. Não
há arredondamento para casas decimais fixas; isso é responsabilidade de
``format_quantidade`` (apresentação).
"""

from __future__ import annotations

from dataclasses import dataclass
from fractions import Fraction
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from stashkeeper.config import DEFAULTS
from stashkeeper.domain.exceptions import (
    MSG_ESTOQUE_INSUFICIENTE,
    NegativeStockError,
    ValidationError,
)
from stashkeeper.infra.logger import log_system_event


Numero = Union[int, float]

UNIDADE_PADRAO = "default"

ENTRADA = "entrada"
SAIDA = "saida"
TIPOS_MOVIMENTACAO = (ENTRADA, SAIDA)

# Tolerância absoluta para ruído de ponto flutuante em conversões encadeadas
TOLERANCIA_ESTOQUE = DEFAULTS.tolerancia_estoque


_ALIASES: Dict[str, str] = {
    "litro": "l", "litros": "l", "lt": "l", "lts": "l",
    "mililitro": "ml", "mililitros": "ml",
    "quilo": "kg", "quilos": "kg", "quilograma": "kg", "quilogramas": "kg",
    "kilo": "kg", "kilos": "kg", "kgs": "kg",
    "grama": "g", "gramas": "g",
    "rolo": "rl", "rolos": "rl",
    "unidade": "un", "unidades": "un", "etiqueta": "un", "etiquetas": "un",
}

# (de, para) -> fator exato: valor_para = valor_de * fator
_FATORES: Dict[Tuple[str, str], Fraction] = {
    ("g", "kg"): Fraction(1, 1000),
    ("kg", "g"): Fraction(1000),
    ("ml", "l"): Fraction(1, 1000),
    ("l", "ml"): Fraction(1000),
    ("un", "rl"): 1 / Fraction(DEFAULTS.etiquetas_por_rolo),
    ("rl", "un"): Fraction(DEFAULTS.etiquetas_por_rolo),
}

# unidade do produto -> (unidade alternativa oferecida, rótulo, rótulo da padrão)
_ALTERNATIVAS: Dict[str, Tuple[str, str, str]] = {
    "kg": ("g", "g (gramas)", "kg (padrão)"),
    "g": ("kg", "kg (quilogramas)", "g (padrão)"),
    "l": ("ml", "ml (mililitros)", "L (padrão)"),
    "ml": ("l", "L (litros)", "ml (padrão)"),
    "rl": ("un", "Etiquetas", "Rolo (padrão)"),
}

_NOMES_COMPLETOS: Dict[str, str] = {
    "un": "unidades",
    "kg": "quilogramas",
    "g": "gramas",
    "mg": "miligramas",
    "l": "litros",
    "ml": "mililitros",
    "m": "metros",
    "cm": "centímetros",
    "mm": "milímetros",
    "cx": "caixas",
    "pct": "pacotes",
    "rl": "rolos",
    "par": "pares",
    "conj": "conjuntos",
}

_UNIDADES_DECIMAIS = {"kg", "g", "l", "ml"}


@dataclass(frozen=True)
class UnidadeOpcao:
    """Opção de unidade oferecida no diálogo de movimentação.

    ``factor`` é quantas unidades da opção equivalem a uma unidade do
    produto (``default`` sempre 1).
    """
    value: str
    label: str
    factor: float


@dataclass(frozen=True)
class ValidacaoEstoque:
    valid: bool
    message: Optional[str] = None


def normalize_unit(unit: Optional[str]) -> str:
    """Minúsculas, sem espaços, com sinônimos comuns colapsados (``litros`` → ``l``)."""
    if unit is None:
        return ""
    u = str(unit).strip().lower()
    return _ALIASES.get(u, u)


def normalize_tipo(tipo: Optional[str]) -> str:
    """Normaliza o tipo de movimentação para ``entrada`` ou ``saida``."""
    t = (tipo or "").strip().lower().replace("í", "i")
    if t not in TIPOS_MOVIMENTACAO:
        raise ValidationError(f"Tipo de movimentação inválido: {tipo!r}", field="type")
    return t


def related_units(base_unit: str) -> List[UnidadeOpcao]:
    """Opções de unidade para um produto cuja unidade é ``base_unit``.

    Sempre devolve a opção ``default`` (fator 1) e, se a unidade pertencer a
    uma família conhecida, a alternativa correspondente. Unidades
    desconhecidas não geram erro: apenas a padrão é oferecida e um aviso é
    registrado no log, salvo para unidades conhecidas sem conversão (``un``).
    """
    u = normalize_unit(base_unit)
    alt = _ALTERNATIVAS.get(u)
    if alt is None:
        if u not in _NOMES_COMPLETOS:
            log_system_event("unidade_sem_conversao", {"unidade": base_unit}, level="warning")
        return [UnidadeOpcao(UNIDADE_PADRAO, f"{base_unit} (padrão)", 1.0)]
    alt_unit, alt_label, default_label = alt
    return [
        UnidadeOpcao(UNIDADE_PADRAO, default_label, 1.0),
        UnidadeOpcao(alt_unit, alt_label, float(_FATORES[(u, alt_unit)])),
    ]


def validar_unidade_movimentacao(unidade: Optional[str], product_unit: str) -> str:
    """Confere se ``unidade`` pode ser usada numa movimentação do produto.

    Aceita ``default`` (ou vazio), a própria unidade do produto e as
    alternativas de ``related_units``. Devolve a unidade normalizada.
    """
    if unidade is None or not str(unidade).strip() or unidade == UNIDADE_PADRAO:
        return UNIDADE_PADRAO
    u = normalize_unit(unidade)
    aceitas = {normalize_unit(product_unit)}
    aceitas.update(op.value for op in related_units(product_unit) if op.value != UNIDADE_PADRAO)
    if u not in aceitas:
        raise ValidationError(
            f"Unidade {unidade!r} incompatível com a unidade do produto ({product_unit})",
            field="unit",
        )
    return u


def convert_to_base(value: Numero, entered_unit: Optional[str], base_unit: str) -> Numero:
    """Converte ``value`` de ``entered_unit`` para ``base_unit``.

    Identidade (o próprio ``value``, sem cópia nem arredondamento) quando as
    unidades coincidem, quando ``entered_unit`` é ``"default"``/vazio ou
    quando o par não é conhecido.
    """
    if entered_unit is None or entered_unit == UNIDADE_PADRAO or not str(entered_unit).strip():
        return value
    de = normalize_unit(entered_unit)
    para = normalize_unit(base_unit)
    if de == para:
        return value
    fator = _FATORES.get((de, para))
    if fator is None:
        return value
    return float(Fraction(value) * fator)


def efeito_movimentacao(tipo: str, quantidade: Numero, unidade: Optional[str], product_unit: str) -> float:
    """Variação (com sinal) que a movimentação provoca no estoque do produto."""
    convertido = convert_to_base(quantidade, unidade, product_unit)
    return convertido if normalize_tipo(tipo) == ENTRADA else -convertido


def apply_movement(
    current: Numero,
    tipo: str,
    quantidade: Numero,
    unidade: Optional[str],
    product_unit: str,
) -> float:
    """Aplica uma movimentação a ``current`` sem validar o resultado."""
    return float(current) + efeito_movimentacao(tipo, quantidade, unidade, product_unit)


def validate_stock_for_exit(
    current_quantity: Numero,
    entered_value: Numero,
    entered_unit: Optional[str],
    product_unit: str,
    tolerancia: Optional[float] = None,
) -> ValidacaoEstoque:
    """Valida uma saída contra o estoque atual.

    A checagem é consultiva; a baixa definitiva ocorre numa transação que
    volta a conferir o estoque.
    """
    tol = TOLERANCIA_ESTOQUE if tolerancia is None else tolerancia
    convertido = convert_to_base(entered_value, entered_unit, product_unit)
    if convertido > float(current_quantity) + tol:
        return ValidacaoEstoque(False, MSG_ESTOQUE_INSUFICIENTE)
    return ValidacaoEstoque(True, None)


def _campo(mov: Union[Mapping[str, Any], Any], nome: str) -> Any:
    if isinstance(mov, Mapping):
        return mov.get(nome)
    return getattr(mov, nome, None)


def limitar_a_zero(valor: float, tolerancia: Optional[float] = None) -> float:
    """Zera resultados negativos dentro da tolerância de estoque.

    Mesma regra da baixa de saída: ``validate_stock_for_exit`` aceita até
    ``tolerancia`` além do estoque e o saldo é gravado como zero.
    """
    tol = TOLERANCIA_ESTOQUE if tolerancia is None else tolerancia
    if -tol <= valor < 0:
        return 0.0
    return valor


def reconcile_edited_movement(
    original: Union[Mapping[str, Any], Any],
    updated: Union[Mapping[str, Any], Any],
    current_quantity_before_edit: Numero,
    product_unit: str,
    tolerancia: Optional[float] = None,
) -> float:
    """Quantidade final do produto após editar uma movimentação.

    1. Reverte o efeito da movimentação original sobre o estoque atual.
    2. Aplica o efeito da movimentação editada sobre o resultado.

    ``original`` e ``updated`` são dicts ou objetos com ``type``,
    ``quantity`` e ``unit``. A reversão não admite nenhum saldo negativo;
    a aplicação segue a tolerância da validação de saída (resultado
    zerado). Em qualquer falha levanta ``NegativeStockError`` com a fase
    correspondente; nada é aplicado parcialmente.
    """
    tol = TOLERANCIA_ESTOQUE if tolerancia is None else tolerancia

    revertido = float(current_quantity_before_edit) - efeito_movimentacao(
        _campo(original, "type"), _campo(original, "quantity"), _campo(original, "unit"), product_unit
    )
    if revertido < 0:
        raise NegativeStockError(NegativeStockError.REVERSAO, revertido)

    final = revertido + efeito_movimentacao(
        _campo(updated, "type"), _campo(updated, "quantity"), _campo(updated, "unit"), product_unit
    )
    if final < -tol:
        raise NegativeStockError(NegativeStockError.APLICACAO, final)
    return limitar_a_zero(final, tol)


# ----------------------
# apresentação
# ----------------------

def full_unit_name(unit: str) -> str:
    return _NOMES_COMPLETOS.get(normalize_unit(unit), unit)


def is_decimal_unit(unit: str) -> bool:
    """Unidades que aceitam valores fracionados (ex.: 1,5 kg)."""
    return normalize_unit(unit) in _UNIDADES_DECIMAIS


def format_quantidade(value: Optional[Numero], unit: str) -> str:
    """Formata uma quantidade para exibição (vírgula decimal).

    - ml e g: inteiro
    - l e kg: até 2 casas, sem zeros à direita
    - demais unidades: 2 casas
    """
    if value is None:
        return "0"
    u = normalize_unit(unit)
    v = float(value)
    if u in ("ml", "g"):
        return str(int(round(v)))
    if u in ("l", "kg"):
        txt = f"{v:.2f}".rstrip("0").rstrip(".")
        return txt.replace(".", ",")
    return f"{v:.2f}".replace(".", ",")

import pytest

from stashkeeper.domain.exceptions import (
    MSG_ESTOQUE_INSUFICIENTE,
    MSG_NOVA_SAIDA_INSUFICIENTE,
    MSG_REVERSAO_NEGATIVA,
    NegativeStockError,
    ValidationError,
)
from stashkeeper.domain.models import Movimentacao
from stashkeeper.domain.unidades import (
    UNIDADE_PADRAO,
    apply_movement,
    convert_to_base,
    format_quantidade,
    full_unit_name,
    is_decimal_unit,
    normalize_tipo,
    normalize_unit,
    reconcile_edited_movement,
    limitar_a_zero,
    related_units,
    validar_unidade_movimentacao,
    validate_stock_for_exit,
)
from stashkeeper.domain import unidades


# ----------------------
# conversões
# ----------------------

@pytest.mark.parametrize(
    "valor,de,para,esperado",
    [
        (500, "g", "kg", 0.5),
        (1500, "ml", "l", 1.5),
        (100, "un", "rl", 1),
        (2, "kg", "g", 2000),
        (0.25, "l", "ml", 250),
        (3, "rl", "un", 300),
    ],
)
def test_convert_to_base_known(valor, de, para, esperado):
    assert convert_to_base(valor, de, para) == esperado


def test_convert_to_base_default_and_same_unit_are_identity():
    assert convert_to_base(2, UNIDADE_PADRAO, "kg") == 2
    assert convert_to_base(2, "kg", "kg") == 2
    assert convert_to_base(7, "caixa", "caixa") == 7
    v = 0.1 + 0.2
    assert convert_to_base(v, "l", "l") is v


def test_convert_to_base_unknown_pair_is_identity():
    assert convert_to_base(5, "cx", "kg") == 5
    assert convert_to_base(5, None, "kg") == 5
    assert convert_to_base(5, "  ", "kg") == 5


def test_convert_to_base_accepts_aliases_and_case():
    assert convert_to_base(500, "Gramas", "KG") == 0.5
    assert convert_to_base(1, "Litro", "ml") == 1000


@pytest.mark.parametrize("v", [0.001, 1, 3.3333, 1234.5678, 1e-6])
@pytest.mark.parametrize("alt,base", [("g", "kg"), ("ml", "l"), ("un", "rl")])
def test_conversion_round_trip_within_float_epsilon(v, alt, base):
    ida = convert_to_base(v, alt, base)
    volta = convert_to_base(ida, base, alt)
    assert volta == pytest.approx(v, rel=1e-12)


def test_conversion_has_no_fixed_decimal_rounding():
    # 1 g = 0.001 kg; 1 g em kg não vira 0.0
    assert convert_to_base(1, "g", "kg") == pytest.approx(0.001)
    assert convert_to_base(0.4, "g", "kg") == pytest.approx(0.0004)


# ----------------------
# opções de unidade
# ----------------------

def test_related_units_for_kg():
    ops = related_units("kg")
    assert [o.value for o in ops] == [UNIDADE_PADRAO, "g"]
    assert ops[0].factor == 1.0
    assert ops[1].factor == 1000.0
    assert "padrão" in ops[0].label


def test_related_units_for_rolls():
    ops = related_units("rl")
    assert [o.value for o in ops] == [UNIDADE_PADRAO, "un"]
    assert ops[1].label == "Etiquetas"
    assert ops[1].factor == 100.0


def test_related_units_unknown_unit_only_default():
    ops = related_units("caixa")
    assert len(ops) == 1
    assert ops[0].value == UNIDADE_PADRAO
    assert ops[0].factor == 1.0
    assert "caixa" in ops[0].label


def test_related_units_warns_only_for_unknown_units(monkeypatch):
    eventos = []
    monkeypatch.setattr(unidades, "log_system_event", lambda evento, *a, **kw: eventos.append(evento))
    assert [o.value for o in related_units("un")] == [UNIDADE_PADRAO]
    assert eventos == []
    related_units("caixa")
    assert eventos == ["unidade_sem_conversao"]


@pytest.mark.parametrize("unidade, produto, esperado", [
    (None, "kg", UNIDADE_PADRAO),
    ("default", "kg", UNIDADE_PADRAO),
    ("Gramas", "kg", "g"),
    ("KG", "kg", "kg"),
    ("etiquetas", "rl", "un"),
    ("caixa", "caixa", "caixa"),
])
def test_validar_unidade_movimentacao_accepts_same_family(unidade, produto, esperado):
    assert validar_unidade_movimentacao(unidade, produto) == esperado


@pytest.mark.parametrize("unidade, produto", [
    ("ml", "kg"),
    ("g", "l"),
    ("un", "kg"),
    ("kg", "un"),
    ("g", "caixa"),
])
def test_validar_unidade_movimentacao_rejects_other_family(unidade, produto):
    with pytest.raises(ValidationError):
        validar_unidade_movimentacao(unidade, produto)


# ----------------------
# validação de saída
# ----------------------

def test_validate_stock_exact_amount_is_valid():
    assert validate_stock_for_exit(10, 10, "kg", "kg").valid is True


def test_validate_stock_within_tolerance_is_valid():
    assert validate_stock_for_exit(10, 10.0005, "kg", "kg").valid is True


def test_validate_stock_above_tolerance_is_invalid():
    res = validate_stock_for_exit(10, 10.002, "kg", "kg")
    assert res.valid is False
    assert res.message == MSG_ESTOQUE_INSUFICIENTE


def test_validate_stock_converts_entered_unit():
    # 10 kg em estoque: 9500 g cabe, 10500 g não
    assert validate_stock_for_exit(10, 9500, "g", "kg").valid is True
    assert validate_stock_for_exit(10, 10500, "g", "kg").valid is False


def test_validate_stock_custom_tolerance():
    assert validate_stock_for_exit(10, 10.002, "kg", "kg", tolerancia=0.01).valid is True


# ----------------------
# reconciliação
# ----------------------

def test_reconcile_edit_same_type():
    original = {"type": "entrada", "quantity": 5, "unit": "kg"}
    editada = {"type": "entrada", "quantity": 3, "unit": "kg"}
    assert reconcile_edited_movement(original, editada, 20, "kg") == pytest.approx(18)


def test_reconcile_edit_type_change():
    original = {"type": "saida", "quantity": 5, "unit": "kg"}
    editada = {"type": "entrada", "quantity": 3, "unit": "kg"}
    assert reconcile_edited_movement(original, editada, 20, "kg") == pytest.approx(28)


def test_reconcile_with_unit_change():
    # saída de 500 g vira saída de 1 kg: 10 + 0.5 - 1 = 9.5
    original = {"type": "saida", "quantity": 500, "unit": "g"}
    editada = {"type": "saida", "quantity": 1, "unit": "default"}
    assert reconcile_edited_movement(original, editada, 10, "kg") == pytest.approx(9.5)


def test_reconcile_accepts_dataclasses():
    original = Movimentacao(product_id=1, type="entrada", quantity=5, unit="kg")
    editada = Movimentacao(product_id=1, type="entrada", quantity=3, unit="kg")
    assert reconcile_edited_movement(original, editada, 20, "kg") == pytest.approx(18)


def test_reconcile_reversal_underflow_raises():
    original = {"type": "entrada", "quantity": 5, "unit": "kg"}
    editada = {"type": "entrada", "quantity": 1, "unit": "kg"}
    with pytest.raises(NegativeStockError) as exc:
        reconcile_edited_movement(original, editada, 3, "kg")
    assert exc.value.fase == NegativeStockError.REVERSAO
    assert exc.value.message == MSG_REVERSAO_NEGATIVA


def test_reconcile_application_underflow_raises():
    original = {"type": "saida", "quantity": 2, "unit": "kg"}
    editada = {"type": "saida", "quantity": 20, "unit": "kg"}
    with pytest.raises(NegativeStockError) as exc:
        reconcile_edited_movement(original, editada, 5, "kg")
    assert exc.value.fase == NegativeStockError.APLICACAO
    assert exc.value.message == MSG_NOVA_SAIDA_INSUFICIENTE


def test_reconcile_application_within_tolerance_clamps_to_zero():
    original = {"type": "saida", "quantity": 1, "unit": "kg"}
    editada = {"type": "saida", "quantity": 3.0005, "unit": "kg"}
    assert reconcile_edited_movement(original, editada, 2, "kg") == 0.0


def test_reconcile_reversal_has_no_tolerance():
    # reverter a entrada de 3,0005 kg com 3 kg em estoque deixaria -0,0005
    original = {"type": "entrada", "quantity": 3.0005, "unit": "kg"}
    editada = {"type": "entrada", "quantity": 1, "unit": "kg"}
    with pytest.raises(NegativeStockError) as exc:
        reconcile_edited_movement(original, editada, 3, "kg")
    assert exc.value.fase == NegativeStockError.REVERSAO


def test_limitar_a_zero():
    assert limitar_a_zero(-0.0005) == 0.0
    assert limitar_a_zero(-0.5) == -0.5
    assert limitar_a_zero(1.25) == 1.25


# ----------------------
# auxiliares
# ----------------------

def test_apply_movement():
    assert apply_movement(1, "entrada", 500, "g", "kg") == pytest.approx(1.5)
    assert apply_movement(1, "saida", 250, "ml", "l") == pytest.approx(0.75)
    assert apply_movement(2, "saída", 50, "un", "rl") == pytest.approx(1.5)


def test_normalize_tipo():
    assert normalize_tipo("Entrada") == "entrada"
    assert normalize_tipo("SAÍDA") == "saida"
    with pytest.raises(ValidationError):
        normalize_tipo("ajuste")


def test_normalize_unit_aliases():
    assert normalize_unit(" Litros ") == "l"
    assert normalize_unit("Rolo") == "rl"
    assert normalize_unit(None) == ""


def test_unit_names_and_decimal_units():
    assert full_unit_name("kg") == "quilogramas"
    assert full_unit_name("xyz") == "xyz"
    assert is_decimal_unit("ml") is True
    assert is_decimal_unit("un") is False


@pytest.mark.parametrize(
    "valor,unidade,esperado",
    [
        (500.4, "g", "500"),
        (1.5, "kg", "1,5"),
        (2.0, "l", "2"),
        (1.256, "kg", "1,26"),
        (3, "un", "3,00"),
        (None, "kg", "0"),
    ],
)
def test_format_quantidade(valor, unidade, esperado):
    assert format_quantidade(valor, unidade) == esperado

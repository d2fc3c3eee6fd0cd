import pytest

from stashkeeper.domain.policies import (
    BAIXO,
    CRITICO,
    NORMAL,
    VERIFICAR,
    quantidade_minima_sugerida,
    status_estoque,
)


@pytest.mark.parametrize(
    "quantity,minimo,esperado",
    [
        (0, 0, CRITICO),
        (5, 5, CRITICO),
        (4, 5, CRITICO),
        (7.5, 5, BAIXO),
        (6, 5, BAIXO),
        (7.6, 5, NORMAL),
        (10, 0, NORMAL),
        (None, 5, VERIFICAR),
        (5, None, VERIFICAR),
        ("abc", 5, VERIFICAR),
    ],
)
def test_status_estoque(quantity, minimo, esperado):
    assert status_estoque(quantity, minimo) == esperado


@pytest.mark.parametrize(
    "quantity,esperado",
    [
        (100, 20.0),
        (12, 2.0),
        (2, 0.0),
        (0, 0.0),
        (-3, 0.0),
        (None, 0.0),
    ],
)
def test_quantidade_minima_sugerida(quantity, esperado):
    assert quantidade_minima_sugerida(quantity) == esperado

import pytest

from stashkeeper.infra.migrations import apply_migrations
from stashkeeper.infra.views import create_views
from stashkeeper.usecases.cadastros import add_funcionario, add_produto


@pytest.fixture
def db_path(tmp_path):
    path = str(tmp_path / "stashkeeper_test.sqlite")
    apply_migrations(path)
    create_views(path)
    return path


@pytest.fixture
def seeded_db(db_path):
    """Banco com produtos em kg, L, rolos e caixas e um colaborador."""
    add_produto("P-KG", "Farinha", unit="kg", quantity=20, min_quantity=5, db_path=db_path)
    add_produto("P-L", "Detergente", unit="l", quantity=10, min_quantity=2, db_path=db_path)
    add_produto("P-RL", "Etiqueta térmica", unit="rl", quantity=3, min_quantity=1, db_path=db_path)
    add_produto("P-CX", "Luvas", unit="caixa", quantity=4, min_quantity=4, db_path=db_path)
    add_funcionario("F001", "Ana Souza", "Estoquista", db_path=db_path)
    return db_path

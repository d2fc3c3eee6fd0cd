# stashkeeper/config.py
"""
Configurações globais e valores padrão do StashKeeperPro.

Variáveis de ambiente (lidas uma vez, na importação):
- STASHKEEPER_DB:          caminho do banco SQLite
- STASHKEEPER_TOLERANCIA:  tolerância absoluta na validação de saídas
"""

import os
from dataclasses import dataclass


# Caminho padrão do banco de dados SQLite
DB_PATH = os.environ.get("STASHKEEPER_DB", os.path.join(os.getcwd(), "stashkeeper.db"))


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.replace(",", "."))
    except ValueError:
        return default


@dataclass
class DefaultConfig:
    """Valores padrão para parâmetros do sistema."""
    tolerancia_estoque: float = 0.001      # ruído de ponto flutuante aceito numa saída
    etiquetas_por_rolo: float = 100.0      # 1 RL = 100 UN
    fator_estoque_baixo: float = 1.5       # BAIXO até 1.5x a quantidade mínima
    fator_minimo_importacao: float = 0.2   # min_quantity sugerido na importação
    tolerancia_integridade: float = 1e-4   # diferença aceita entre estoque gravado e recalculado


# Instância global dos valores padrão
DEFAULTS = DefaultConfig(
    tolerancia_estoque=_env_float("STASHKEEPER_TOLERANCIA", DefaultConfig.tolerancia_estoque),
)

# brindes/config.py
"""
Configurações globais e valores padrão do sistema de brindes.
"""

import os
from dataclasses import dataclass


# Caminho padrão do banco de dados SQLite
DB_PATH = os.environ.get("BRINDES_DB", os.path.join(os.getcwd(), "brindes.db"))

# Arquivo onde o cliente guarda o token da sessão ativa
SESSION_PATH = os.path.join(os.getcwd(), ".brindes_sessao.json")


def session_path() -> str:
    """Caminho do arquivo de sessão (relido a cada chamada, respeita BRINDES_SESSAO)."""
    return os.environ.get("BRINDES_SESSAO", SESSION_PATH)


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in {"1", "true", "sim", "yes", "on"}


@dataclass
class DefaultConfig:
    """Valores padrão para parâmetros do sistema."""
    quantidade_maxima_pedido: int = 100_000
    quantidade_maxima_movimentacao: int = 1_000_000_000
    estoque_maximo: int = 1_000_000_000_000
    tamanho_minimo_senha: int = 6
    limite_movimentacoes: int = 50
    papel_padrao: str = "usuario"
    enable_logging: bool = _env_flag("BRINDES_LOG")
    enable_output: bool = _env_flag("BRINDES_OUTPUT")


# Instância global dos valores padrão
DEFAULTS = DefaultConfig()

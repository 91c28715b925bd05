# brindes/infra/logger.py
"""
Sistema de logging para as operações de brindes.

Este módulo configura e fornece loggers para registrar as operações
críticas do sistema: movimentações de estoque, transições de pedidos,
operações no banco de dados e eventos gerais.
"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Optional

from brindes.config import DEFAULTS


# Flag global para habilitar/desabilitar logging
ENABLE_LOGGING = DEFAULTS.enable_logging
# Flag global para habilitar/desabilitar prints/output
ENABLE_OUTPUT = DEFAULTS.enable_output

def print_system(*args, **kwargs):
    """Print controlado pelo ENABLE_OUTPUT."""
    if ENABLE_OUTPUT:
        print(*args, **kwargs)

# Configuração base dos loggers
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

def setup_logger(name: str, log_file: str, level: int = logging.INFO) -> logging.Logger:
    """
    Configura um logger específico com arquivo de saída.

    O arquivo só é criado na primeira mensagem emitida.

    Args:
        name: Nome do logger
        log_file: Caminho do arquivo de log
        level: Nível de logging (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Logger configurado
    """
    log_path = Path(log_file)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False

    # Remove handlers existentes (reimportação em testes)
    while logger.handlers:
        logger.removeHandler(logger.handlers[0])

    if ENABLE_LOGGING:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8', delay=True)
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        logger.addHandler(file_handler)
    else:
        logger.addHandler(logging.NullHandler())

    return logger

# Diretório base para logs (na pasta do pacote, ou BRINDES_LOGS_DIR)
BASE_DIR = Path(__file__).parent.parent
LOGS_DIR = Path(os.environ.get("BRINDES_LOGS_DIR", str(BASE_DIR / "logs")))

LOG_FILES = {
    "transactions": LOGS_DIR / "transactions.log",
    "movimentacoes": LOGS_DIR / "movimentacoes.log",
    "pedidos": LOGS_DIR / "pedidos.log",
    "database": LOGS_DIR / "database.log",
    "system": LOGS_DIR / "system.log",
}

# Loggers específicos para cada operação
transaction_logger = setup_logger('brindes.transactions', str(LOG_FILES["transactions"]))
movimentacao_logger = setup_logger('brindes.movimentacoes', str(LOG_FILES["movimentacoes"]))
pedido_logger = setup_logger('brindes.pedidos', str(LOG_FILES["pedidos"]))
database_logger = setup_logger('brindes.database', str(LOG_FILES["database"]))
system_logger = setup_logger('brindes.system', str(LOG_FILES["system"]))


def log_transaction(operation: str, data: Dict[str, Any], result: Optional[Any] = None, error: Optional[str] = None) -> None:
    """
    Registra uma transação completa no log.

    Args:
        operation: Tipo de operação (aprovar_pedido, movimentacao, etc.)
        data: Dados da transação
        result: Resultado da operação (opcional)
        error: Mensagem de erro (opcional)
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    if error:
        transaction_logger.error(f"TRANSACTION_FAILED: {operation} - {error} - Data: {data}")
    else:
        transaction_logger.info(f"TRANSACTION_SUCCESS: {operation} - Result: {result} - Data: {data}")
    print_system(f"[{datetime.now().isoformat(timespec='seconds')}] {operation}: {error or result}")


def log_movimentacao(tipo: str, produto_id: str, quantidade: int, usuario_id: Optional[str] = None, **kwargs) -> None:
    """
    Log específico para lançamentos no razão de movimentações.

    Args:
        tipo: entrada ou saida
        produto_id: Brinde movimentado
        quantidade: Quantidade movimentada
        usuario_id: Quem lançou (opcional)
        **kwargs: Dados adicionais
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {
        "produto_id": produto_id,
        "quantidade": quantidade,
        "usuario_id": usuario_id,
        **kwargs
    }
    movimentacao_logger.info(f"MOV_{tipo.upper()}: {log_data}")


def log_pedido(action: str, pedido_id: str, status: Optional[str] = None, **kwargs) -> None:
    """
    Log específico para o ciclo de vida dos pedidos.

    Args:
        action: Ação realizada (criar, aprovar, rejeitar, finalizar, confirmar)
        pedido_id: Pedido afetado
        status: Status resultante
        **kwargs: Dados adicionais
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {"pedido_id": pedido_id, "status": status, **kwargs}
    pedido_logger.info(f"PEDIDO_{action.upper()}: {log_data}")


def log_database_operation(table: str, operation: str, affected_rows: int = 0, **kwargs) -> None:
    """
    Log específico para operações no banco de dados.

    Args:
        table: Nome da tabela
        operation: Operação SQL (INSERT, UPDATE, DELETE, SELECT)
        affected_rows: Número de linhas afetadas
        **kwargs: Dados adicionais
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {
        "table": table,
        "operation": operation,
        "affected_rows": affected_rows,
        **kwargs
    }
    database_logger.info(f"DB_{operation}: {log_data}")


def log_system_event(event: str, details: Dict[str, Any] = None, level: str = "info") -> None:
    """
    Log para eventos do sistema.

    Args:
        event: Descrição do evento
        details: Detalhes adicionais (opcional)
        level: Nível do log (info, warning, error)
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {
        "event": event,
        "details": details or {}
    }
    log_method = getattr(system_logger, level.lower(), system_logger.info)
    log_method(f"SYSTEM_EVENT: {event} - {log_data}")


def log_file_operation(operation: str, file_path: str, rows_processed: int = 0, **kwargs) -> None:
    """
    Log para operações de arquivo (importação/exportação).
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {
        "operation": operation,
        "file_path": file_path,
        "rows_processed": rows_processed,
        **kwargs
    }
    system_logger.info(f"FILE_{operation.upper()}: {log_data}")


def get_log_summary(log_type: str = "transactions", lines: int = 100) -> str:
    """
    Obtém as linhas mais recentes de um log.

    Args:
        log_type: Tipo de log (transactions, movimentacoes, pedidos, database, system)
        lines: Número de linhas a retornar

    Returns:
        Conteúdo do log como string
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return "Logging desativado."

    log_file = LOG_FILES.get(log_type)
    if not log_file or not log_file.exists():
        return f"Log {log_type} não encontrado."

    try:
        with open(log_file, 'r', encoding='utf-8') as f:
            all_lines = f.readlines()
            recent_lines = all_lines[-lines:] if len(all_lines) > lines else all_lines
            return ''.join(recent_lines)
    except OSError as e:
        return f"Erro ao ler log {log_type}: {str(e)}"

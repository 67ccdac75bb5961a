"""Configuração de logging da aplicação (console + JSON opcional)."""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

from pythonjsonlogger import jsonlogger

from .config import settings


class CatalogJsonFormatter(jsonlogger.JsonFormatter):
    """Formatter JSON com os campos extra que usamos nos agregadores de logs."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["source"] = f"{record.filename}:{record.lineno}"
        if record.funcName:
            log_record["function"] = record.funcName


def setup_logging(base_dir: str | Path | None = None) -> logging.Logger:
    """Configura o logger raiz.

    Args:
        base_dir: diretório onde criar a pasta logs/ quando LOG_JSON está ativo.
                  Se omitido, usa LOG_DIR ou o diretório atual.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    root_logger.addHandler(console_handler)

    if settings.LOG_JSON:
        logs_dir = Path(base_dir or settings.LOG_DIR or Path.cwd()) / "logs"
        logs_dir.mkdir(parents=True, exist_ok=True)

        json_formatter = CatalogJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")

        json_handler = logging.FileHandler(logs_dir / "app.log")
        json_handler.setFormatter(json_formatter)
        root_logger.addHandler(json_handler)

        # Erros também num ficheiro separado
        error_handler = logging.FileHandler(logs_dir / "error.log")
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(json_formatter)
        root_logger.addHandler(error_handler)

    return root_logger

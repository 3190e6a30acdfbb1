"""
Configuração de logs da aplicação.

Console sempre ativo; arquivo rotativo apenas fora dos testes.
"""
import logging
import logging.config
import os
import sys


def _logging_config(level: str, log_dir: str | None) -> dict:
    handlers = {
        "console": {
            "level": level,
            "class": "logging.StreamHandler",
            "formatter": "standard",
            "stream": sys.stdout,
        },
    }
    if log_dir:
        handlers["file"] = {
            "level": "DEBUG",
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "detailed",
            "filename": os.path.join(log_dir, "wellflow.log"),
            "maxBytes": 10485760,  # 10MB
            "backupCount": 5,
            "encoding": "utf-8",
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
            },
            "detailed": {
                "format": "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d: %(message)s"
            },
        },
        "handlers": handlers,
        "loggers": {
            "wellflow": {
                "level": "DEBUG",
                "handlers": list(handlers),
                "propagate": False,
            },
            # alertas de estoque baixo (e-mail simulado)
            "wellflow.alertas": {
                "level": "INFO",
                "handlers": list(handlers),
                "propagate": False,
            },
        },
    }


def setup_logging(app):
    level = (app.config.get("LOG_LEVEL") or "INFO").upper()
    log_dir = None if app.config.get("TESTING") else app.config.get("LOG_DIR")
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    logging.config.dictConfig(_logging_config(level, log_dir))
    logging.getLogger("wellflow").debug("Logging configurado (nível %s)", level)

"""
Logging configuration for applications and test runs using kubeapply.

The library itself never installs handlers; call configure_logging() from
the entry point that owns the process.
"""

import logging
import logging.config
import os
import re
from typing import Any, Dict, Optional

_KUBECONFIG_ARG = re.compile(r"--kubeconfig=\S+")


class KubeconfigFilter(logging.Filter):
    """Mask kubeconfig paths in logged kubectl command lines."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        if "--kubeconfig=" in message:
            record.msg = _KUBECONFIG_ARG.sub("--kubeconfig=***", message)
            record.args = None
        return True  # Never drop records, only rewrite them


def get_logging_config(level: str = "INFO") -> Dict[str, Any]:
    """Get logging configuration with kubeconfig masking."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "kubeconfig_filter": {
                "()": KubeconfigFilter
            }
        },
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            }
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stderr",
                "filters": ["kubeconfig_filter"]
            }
        },
        "loggers": {
            "kubeapply": {
                "handlers": ["default"],
                "level": level,
                "propagate": False
            }
        },
        "root": {
            "level": "WARNING",
            "handlers": ["default"]
        }
    }


def configure_logging(level: Optional[str] = None) -> None:
    """Apply get_logging_config(), taking the level from LOG_LEVEL when not given."""
    if level is None:
        level = os.environ.get("LOG_LEVEL", "INFO")
    logging.config.dictConfig(get_logging_config(level.upper()))

import logging
import os
import opentelemetry.trace
from azure.monitor.opentelemetry import configure_azure_monitor

DEFAULT_LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Only export to Application Insights when hosted by the Functions runtime
if os.environ.get("FUNCTIONS_WORKER_RUNTIME"):
    try:
        configure_azure_monitor()
        logging.info("Azure Monitor OpenTelemetry configured for crm_panel")
    except Exception as e:
        logging.error(f"Error configuring Azure Monitor: {str(e)}")

tracer = opentelemetry.trace.get_tracer("crm_panel")

logger = logging.getLogger("crm_panel")

if not logger.handlers:
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(console_handler)


def set_log_level(level=DEFAULT_LOG_LEVEL):
    """
    Apply a level name (``"DEBUG"``, ``"warning"``...) to the panel logger
    and its console handler.

    Raises:
        ValueError: If the name is not a standard logging level
    """
    numeric = logging.getLevelName(str(level).upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level '{level}'")
    logger.setLevel(numeric)
    for handler in logger.handlers:
        handler.setLevel(numeric)
    return numeric


set_log_level()


def get_child_logger(name):
    """Get a child logger of the panel logger, e.g. ``crud.inventory``."""
    return logger.getChild(name)

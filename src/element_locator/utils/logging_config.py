"""
Centralized logging configuration for suppressing verbose third-party logs.
"""

import logging
import os
import warnings

NOISY_LIBRARIES = [
    "chromadb",
    "chromadb.telemetry",
    "chromadb.db.impl.sqlite",
    "sentence_transformers",
    "urllib3",
    "httpx",
    "httpcore",
    "openai",
    "openai._base_client",
    "anthropic",
    "langchain",
    "langchain_core",
    "langchain_google_genai",
    "google",
    "google.genai",
    "google.auth",
    "google.api_core",
    "grpc",
    "PIL",
]

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"


class NullHandler(logging.Handler):
    """Handler that discards all log records."""

    def emit(self, record):
        pass


def setup_logging(verbose: bool = False) -> None:
    """
    Configure the element locator loggers and silence noisy third-party libraries.

    Args:
        verbose: If True, log element locator internals at DEBUG level and keep
            third-party warnings. If False, log at INFO and silence them.
    """
    if not verbose:
        warnings.filterwarnings("ignore", category=FutureWarning)
        warnings.filterwarnings("ignore", category=DeprecationWarning)

    os.environ["GRPC_VERBOSITY"] = "ERROR"
    os.environ["GLOG_minloglevel"] = "2"
    os.environ.setdefault("ANONYMIZED_TELEMETRY", "False")
    os.environ.setdefault("TOKENIZERS_PARALLELISM", "false")

    third_party_level = logging.WARNING if verbose else logging.CRITICAL
    for logger_name in NOISY_LIBRARIES:
        logger = logging.getLogger(logger_name)
        logger.setLevel(third_party_level)
        logger.propagate = verbose
        logger.handlers = [] if verbose else [NullHandler()]

    logging.basicConfig(
        level=logging.WARNING,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )
    logging.getLogger("element_locator").setLevel(
        logging.DEBUG if verbose else logging.INFO
    )

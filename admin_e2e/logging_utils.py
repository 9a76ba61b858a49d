"""Logging helpers."""

from __future__ import annotations

import logging

from .io_utils import RunPaths

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def build_logger(run_paths: RunPaths, verbose: bool = False) -> logging.Logger:
    logger_name = f"admin_e2e.{run_paths.scenario}.{run_paths.run_id}"
    logger = logging.getLogger(logger_name)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    if not logger.handlers:
        formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%H:%M:%S")
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

        log_file = run_paths.base_dir / f"{run_paths.scenario}.log"
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger

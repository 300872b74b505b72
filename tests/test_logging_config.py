"""
Unit tests for loguru sink setup.
"""

import logging

import pytest
from loguru import logger

from slidereel.configs.logging_config import setup_logging


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    logger.remove()
    logging.basicConfig(handlers=[logging.NullHandler()], force=True)


def test_file_logging_writes_component_log(tmp_path):
    path = setup_logging("INFO", enable_file_logging=True, log_dir=str(tmp_path))

    logger.info("rendered 3 slides")
    logger.complete()

    assert path == str(tmp_path / "slidereel.log")
    assert "rendered 3 slides" in (tmp_path / "slidereel.log").read_text()


def test_stdlib_records_are_forwarded(tmp_path):
    setup_logging(
        "INFO",
        enable_file_logging=True,
        log_dir=str(tmp_path),
        component="worker",
    )

    logging.getLogger("slidereel.thirdparty").warning("disk nearly full")
    logger.complete()

    text = (tmp_path / "worker.log").read_text()
    assert "[slidereel.thirdparty] disk nearly full" in text


def test_noisy_libraries_quieted_outside_debug():
    setup_logging("INFO")
    assert logging.getLogger("httpx").level == logging.WARNING

    setup_logging("debug")
    assert logging.getLogger("httpx").level == logging.DEBUG


def test_no_file_without_flag(tmp_path):
    assert setup_logging("INFO", log_dir=str(tmp_path)) is None
    assert list(tmp_path.iterdir()) == []

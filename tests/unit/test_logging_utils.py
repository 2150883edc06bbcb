import logging

import pytest

from capslep import CapTaperSolver, setup_logging
from capslep.logging_utils import LOGGER_NAME, get_logger


@pytest.fixture
def restore_package_logger():
    logger = logging.getLogger(LOGGER_NAME)
    handlers = list(logger.handlers)
    level = logger.level
    yield logger
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)


def test_get_logger_namespaces_children() -> None:
    assert get_logger().name == "capslep"
    assert get_logger("solver").name == "capslep.solver"
    assert get_logger("capslep.runtime").name == "capslep.runtime"


def test_setup_logging_is_idempotent(restore_package_logger, tmp_path) -> None:
    log_file = tmp_path / "capslep.log"
    setup_logging(verbose=True)
    logger = setup_logging(verbose=True, log_file=str(log_file))

    streams = [
        h
        for h in logger.handlers
        if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
    ]
    files = [h for h in logger.handlers if isinstance(h, logging.FileHandler)]
    assert logger.level == logging.DEBUG
    assert len(streams) == 1
    assert len(files) == 1

    logger.info("hello")
    files[0].flush()
    assert "hello" in log_file.read_text()


def test_status_mode_failure_is_logged(caplog) -> None:
    with caplog.at_level(logging.ERROR, logger="capslep"):
        result = CapTaperSolver(error_mode="status").compute(0.5, 3, 4)

    assert result.status == 2
    records = [r for r in caplog.records if r.name.startswith("capslep")]
    assert len(records) == 1
    assert records[0].levelno == logging.ERROR
    assert "LMAX" in records[0].getMessage()

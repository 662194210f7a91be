import logging

import pytest
import structlog

from tsender.logging_config import airdrop_log_context, setup_logging


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_setup_logging_installs_single_handler():
    setup_logging(log_level="debug", json_logs=False)

    root = logging.getLogger()
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, structlog.stdlib.ProcessorFormatter)
    assert root.level == logging.DEBUG


def test_unknown_level_falls_back_to_info():
    setup_logging(log_level="chatty", json_logs=True)

    assert logging.getLogger().level == logging.INFO


def test_rpc_loggers_quieted():
    setup_logging(log_level="DEBUG", json_logs=True)

    assert logging.getLogger("web3").level == logging.WARNING


def test_airdrop_log_context_binds_and_clears():
    with airdrop_log_context(chain_id=31337, generation=2, operation="approve"):
        bound = structlog.contextvars.get_contextvars()
        assert bound["chain_id"] == 31337
        assert bound["generation"] == 2
        assert bound["operation"] == "approve"

    assert "operation" not in structlog.contextvars.get_contextvars()

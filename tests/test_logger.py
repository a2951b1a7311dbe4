"""
Tests for the logging helpers.
"""

import logging

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from flappy_dqn.utils import logger as logger_module
from flappy_dqn.utils.logger import (
    LogLevel, get_log_path, get_logger, log_model_event, log_training_metrics, setup_logging
)


class RecordingHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.messages = []

    def emit(self, record):
        self.messages.append(record.getMessage())


@pytest.fixture
def recorder():
    handler = RecordingHandler()
    root = logging.getLogger(logger_module.ROOT_LOGGER_NAME)
    previous = root.level
    root.addHandler(handler)
    root.setLevel(logging.DEBUG)
    yield handler
    root.removeHandler(handler)
    root.setLevel(previous)


@pytest.fixture(autouse=True)
def quiet_logging():
    yield
    setup_logging(level=LogLevel.WARNING, console_output=False, force=True)


class TestGetLogger:

    def test_package_prefix_stripped(self):
        assert get_logger('flappy_dqn.ai.trainer').name == 'flappy.ai.trainer'

    def test_plain_name(self):
        assert get_logger('main').name == 'flappy.main'


class TestHelpers:

    def test_training_metrics_line(self, recorder):
        log_training_metrics(episode=10, score=3, epsilon=0.25, reward=1.5, steps=40, memory_size=400)
        assert recorder.messages[-1] == "ep=10 | score=3 | eps=0.2500 | reward=1.50 | steps=40 | memory=400"

    def test_optional_fields_omitted(self, recorder):
        log_training_metrics(episode=1, score=0, epsilon=0.3)
        assert recorder.messages[-1] == "ep=1 | score=0 | eps=0.3000"

    def test_model_event(self, recorder):
        log_model_event('export', 'snapshot', episode=4)
        assert recorder.messages[-1] == "EXPORT | snapshot | episode=4"


class TestSetup:

    def test_file_output(self, tmp_path):
        setup_logging(log_dir=str(tmp_path), console_output=False, file_output=True,
                      log_filename='run.log', force=True)
        get_logger('test').info("hello")
        path = get_log_path()
        assert path == tmp_path / 'run.log'
        for handler in logging.getLogger(logger_module.ROOT_LOGGER_NAME).handlers:
            handler.flush()
        assert "hello" in path.read_text(encoding='utf-8')

    def test_no_file_by_default(self):
        setup_logging(console_output=False, force=True)
        assert get_log_path() is None

"""Tests for smriti.core.utils (logging setup, async helpers)."""

import asyncio
import os

import pytest
from loguru import logger

from smriti.core.config import Config
from smriti.core.exceptions import ConfigurationError
from smriti.core.utils.async_helpers import run_async_safely
from smriti.core.utils.logging import resolve_log_file, setup_logging, setup_logging_from_config


async def _double(x):
    await asyncio.sleep(0)
    return x * 2


class TestRunAsyncSafely:
    def test_without_running_loop(self):
        assert run_async_safely(_double(21)) == 42

    def test_inside_running_loop(self):
        async def outer():
            return run_async_safely(_double(5))

        assert asyncio.run(outer()) == 10

    def test_timeout_cancels(self):
        cancelled = []

        async def slow():
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.append(True)
                raise

        with pytest.raises(TimeoutError, match="Timed out after 0.05s"):
            run_async_safely(slow(), timeout=0.05)
        assert cancelled == [True]

    def test_timeout_inside_running_loop(self):
        async def outer():
            return run_async_safely(asyncio.sleep(10), timeout=0.05)

        with pytest.raises(TimeoutError):
            asyncio.run(outer())

    def test_fast_call_within_timeout(self):
        assert run_async_safely(_double(4), timeout=5) == 8


class TestSetupLogging:
    def teardown_method(self):
        logger.remove()

    def test_file_sink(self, tmp_dir):
        log_file = os.path.join(tmp_dir, "smriti.log")
        setup_logging(level="info", log_file=log_file)
        logger.info("search finished")
        logger.debug("not written")
        logger.remove()

        with open(log_file) as f:
            content = f.read()
        assert "search finished" in content
        assert "not written" not in content

    def test_creates_missing_directory(self, tmp_dir):
        log_file = os.path.join(tmp_dir, "nested", "logs", "smriti.log")
        setup_logging(level="WARNING", log_file=log_file)
        logger.warning("pool exhausted")
        logger.remove()
        assert os.path.exists(log_file)

    def test_unknown_level(self):
        with pytest.raises(ConfigurationError, match="LOUD"):
            setup_logging(level="loud")


class TestLoggingFromConfig:
    def teardown_method(self):
        logger.remove()

    def test_no_file_by_default(self, tmp_dir):
        assert resolve_log_file(Config(data_dir=tmp_dir)) is None

    def test_relative_file_goes_to_log_dir(self, tmp_dir):
        config = Config(data_dir=tmp_dir)
        config.set("logging.file", "search.log")
        assert resolve_log_file(config) == os.path.join(tmp_dir, "logs", "search.log")

    def test_absolute_file_kept(self, tmp_dir):
        config = Config(data_dir=tmp_dir)
        path = os.path.join(tmp_dir, "elsewhere.log")
        config.set("logging.file", path)
        assert resolve_log_file(config) == path

    def test_writes_under_log_dir(self, tmp_dir, monkeypatch):
        monkeypatch.setenv("SMRITI_LOGGING__FILE", "search.log")
        monkeypatch.setenv("SMRITI_LOGGING__LEVEL", "info")
        setup_logging_from_config(Config(data_dir=tmp_dir))
        logger.info("fused 4 results")
        logger.remove()

        with open(os.path.join(tmp_dir, "logs", "search.log")) as f:
            assert "fused 4 results" in f.read()

    def test_level_argument_overrides_config(self, tmp_dir):
        config = Config(data_dir=tmp_dir)
        config.set("logging.file", "search.log")
        setup_logging_from_config(config, level="DEBUG")
        logger.debug("candidate counts")
        logger.remove()

        with open(os.path.join(tmp_dir, "logs", "search.log")) as f:
            assert "candidate counts" in f.read()

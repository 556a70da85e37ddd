"""
Tests for logging utility module.
"""
import logging
from unittest.mock import patch

import pytest

from src.utils.logging import ROOT_LOGGER_NAME, get_logger, setup_logging


@pytest.fixture(autouse=True)
def reset_project_logger():
    """Restore the project logger after each test."""
    project_logger = logging.getLogger(ROOT_LOGGER_NAME)
    level = project_logger.level
    handlers = list(project_logger.handlers)
    yield
    for handler in project_logger.handlers:
        if handler not in handlers:
            handler.close()
    project_logger.handlers = handlers
    project_logger.setLevel(level)


@pytest.mark.unit
class TestSetupLogging:
    """Test setup_logging() function."""

    def test_setup_logging_default_log_level(self, tmp_path):
        """Test setup_logging() falls back to settings.LOG_LEVEL."""
        with patch("src.utils.logging.settings") as mock_settings:
            mock_settings.LOG_LEVEL = "INFO"
            mock_settings.LOG_DIR = tmp_path

            logger = setup_logging()

            assert logger.name == "catalog_traversal"
            assert logger.level == logging.INFO

    @pytest.mark.parametrize(
        "level_name,level",
        [("DEBUG", logging.DEBUG), ("warning", logging.WARNING), ("ERROR", logging.ERROR)],
    )
    def test_setup_logging_custom_log_level(self, tmp_path, level_name, level):
        with patch("src.utils.logging.settings") as mock_settings:
            mock_settings.LOG_DIR = tmp_path

            logger = setup_logging(log_level=level_name)

            assert logger.level == level

    def test_setup_logging_handlers(self, tmp_path):
        """Test console handler at INFO and file handler at DEBUG."""
        with patch("src.utils.logging.settings") as mock_settings:
            mock_settings.LOG_DIR = tmp_path

            logger = setup_logging(log_level="DEBUG")

            assert len(logger.handlers) == 2
            console, file_handler = logger.handlers
            assert isinstance(console, logging.StreamHandler)
            assert console.level == logging.INFO
            assert isinstance(file_handler, logging.FileHandler)
            assert file_handler.level == logging.DEBUG
            assert list(tmp_path.glob("traversal_*.log"))

    def test_setup_logging_clears_existing_handlers(self, tmp_path):
        with patch("src.utils.logging.settings") as mock_settings:
            mock_settings.LOG_DIR = tmp_path

            setup_logging(log_level="INFO")
            logger = setup_logging(log_level="INFO")

            assert len(logger.handlers) == 2


@pytest.mark.unit
class TestGetLogger:
    """Test get_logger() function."""

    def test_default_name(self):
        assert get_logger().name == "catalog_traversal"

    def test_module_name_nested_under_project_logger(self):
        logger = get_logger("src.traversal.traversal_engine")

        assert logger.name == "catalog_traversal.src.traversal.traversal_engine"
        assert logger.parent.name.startswith("catalog_traversal")

    def test_already_prefixed_name(self):
        assert get_logger("catalog_traversal.jobs").name == "catalog_traversal.jobs"

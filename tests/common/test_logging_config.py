"""Tests for logging configuration."""

import pytest
from pydantic import ValidationError

from treepack.common.logging_config import LoggingConfig


class TestLoggingConfig:
    """Test LoggingConfig validation."""

    def test_valid_config(self):
        """Test valid logging configuration."""
        config = LoggingConfig(level="INFO", format="json")
        assert config.level == "INFO"
        assert config.format == "json"

    def test_default_values(self):
        """Test default values."""
        config = LoggingConfig()
        assert config.level == "INFO"
        assert config.format == "simple"
        assert config.file is None

    def test_rejects_invalid_log_level(self):
        """Test that invalid log levels are rejected."""
        with pytest.raises(ValidationError):
            LoggingConfig(level="TRACE")

        with pytest.raises(ValidationError):
            LoggingConfig(level="CRITICAL")

    def test_rejects_invalid_format(self):
        """Test that invalid formats are rejected."""
        with pytest.raises(ValidationError):
            LoggingConfig(format="xml")

    def test_case_insensitive_log_level(self):
        """Test that log level is case-insensitive."""
        assert LoggingConfig(level="info").level == "INFO"
        assert LoggingConfig(level="Debug").level == "DEBUG"

    def test_case_insensitive_format(self):
        """Test that format is case-insensitive."""
        assert LoggingConfig(format="JSON").format == "json"
        assert LoggingConfig(format="Detailed").format == "detailed"

    def test_rejects_unknown_fields(self):
        with pytest.raises(ValidationError):
            LoggingConfig(colour=True)

    def test_serialization(self):
        """Test that config can be serialized."""
        config = LoggingConfig(level="DEBUG", format="detailed", file="treepack.log")

        assert config.model_dump() == {
            "level": "DEBUG",
            "format": "detailed",
            "file": "treepack.log",
        }

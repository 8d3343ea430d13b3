"""Test configuration for pytest."""

import logging
import os
import pytest

# Loggers are configured on import, before fixtures run
os.environ['SHOTBAR_LOG_LEVEL'] = 'WARNING'


@pytest.fixture(autouse=True, scope="session")
def configure_test_environment(tmp_path_factory):
    """Keep logging quiet and point the settings store at a scratch file."""
    os.environ['SHOTBAR_LOG_LEVEL'] = 'WARNING'
    os.environ['SHOTBAR_SETTINGS'] = str(tmp_path_factory.mktemp("config") / "settings.json")

    logging.getLogger().setLevel(logging.WARNING)

    # Fail-open paths log warnings on purpose
    for logger_name in ['shotbar.dedup.detector', 'shotbar.capture.engine']:
        logging.getLogger(logger_name).setLevel(logging.ERROR)

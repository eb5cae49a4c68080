import logging
from rollbar_unfurler.config import get_settings
from rollbar_unfurler.log import get_logger, setup_logging

def test_component_loggers_are_namespaced():
    assert get_logger("pipeline").name == "rollbar_unfurler.pipeline"

def test_setup_applies_level_to_app_loggers_only():
    """
    WHY: LOG_LEVEL=DEBUG should show our own diagnostics, not every httpx/slack_sdk request.
    EXPECTED: App loggers inherit the configured level; the root stays at WARNING or above.
    """
    setup_logging()
    assert get_logger("store").getEffectiveLevel() == logging.getLevelName(get_settings().LOG_LEVEL)
    assert logging.getLogger("httpx").getEffectiveLevel() >= logging.WARNING

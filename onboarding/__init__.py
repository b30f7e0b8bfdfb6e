from onboarding.common.logging_setup import get_logger

logger = get_logger("onboarding.app")

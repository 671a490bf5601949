# Process-wide logging configuration

import logging

_LOGGING_CONFIGURED = False


def configure_logging(level_name='INFO'):
    """Configure the root logger once per process"""
    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return

    level = getattr(logging, str(level_name).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format='%(asctime)s | %(levelname)s | %(name)s | %(message)s',
    )
    _LOGGING_CONFIGURED = True

"""Process-wide configuration helpers.

Submodules:
- config.logging: Logging setup with a colored console handler

Import directly from submodules as needed:
    from config.logging import init_logging, get_logger
"""

"""Entry point for running the Bot Framework adapter as a module.

Usage:
    python -m adapters.botframework
"""

from adapters.botframework.main import run

if __name__ == "__main__":
    run()

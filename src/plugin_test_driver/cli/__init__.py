# src/plugin_test_driver/cli/__init__.py
# CLI package for the plugin test driver.
"""
CLI module providing the `ptd` command-line interface.

Commands:
- ptd init: Create local config
- ptd dump: Extract fields from a capture file
- ptd run: Extract fields from a live plugin source
- ptd fields: List extractable fields
"""

from plugin_test_driver.cli.main import app

__all__ = ["app"]

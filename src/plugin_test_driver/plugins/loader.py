# src/plugin_test_driver/plugins/loader.py
# Import plugin descriptors by dotted path.

"""
Plugins are referenced from configuration files and the CLI as
`package.module:ClassName`.
"""

import importlib

from plugin_test_driver.errors import InitializationError
from plugin_test_driver.plugins.api import Plugin


def load_descriptor(path: str) -> type[Plugin]:
    """Import the plugin descriptor at `module:attr`."""
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise InitializationError(f"invalid plugin path {path!r}, expected 'module:attr'")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise InitializationError(f"cannot import plugin module {module_name!r}: {e}") from e

    try:
        descriptor = getattr(module, attr)
    except AttributeError as e:
        raise InitializationError(f"module {module_name!r} has no attribute {attr!r}") from e

    if not isinstance(descriptor, type) or not issubclass(descriptor, Plugin):
        raise InitializationError(f"{path!r} is not a plugin descriptor")
    return descriptor

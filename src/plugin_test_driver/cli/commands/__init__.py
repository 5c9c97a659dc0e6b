# src/plugin_test_driver/cli/commands/__init__.py
# Implementations of the `ptd` sub-commands.

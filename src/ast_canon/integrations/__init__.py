"""Integrations subpackage for ast-canon.

Contains the pytest plugin, auto-discovered via the ``pytest11`` entry
point declared in pyproject.toml.
"""

"""Test suite for the pytest-relay package.

This package contains unit and integration tests validating source
parsing, case expansion, variable relaying, checkers, the runner, the
command-line interface and the pytest plugin.
"""

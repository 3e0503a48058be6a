"""Declarative runner for HTTP API tests described in YAML.

The `pytest_relay` package reads parameterized test definitions, expands
them into concrete tests and executes them one by one against a target
service.

Key features:
- case expansion of test definitions into concrete tests;
- request and response bodies inline or loaded from files;
- values captured from one response relayed into later requests;
- fixtures, pluggable checkers and reporters around every request;
- a command-line runner and a pytest plugin sharing the same engine.
"""

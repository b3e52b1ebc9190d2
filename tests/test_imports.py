"""
Smoke test that the public modules import cleanly.
"""

import importlib

import pytest


@pytest.mark.parametrize("module", [
    "api_optimizer.core.cache",
    "api_optimizer.core.complexity",
    "api_optimizer.core.compression",
    "api_optimizer.core.orchestrator",
    "api_optimizer.core.pricing",
    "api_optimizer.core.recommendation",
    "api_optimizer.config.loader",
    "api_optimizer.sdk",
    "api_optimizer.storage.repository",
    "api_optimizer.cli.main",
])
def test_module_imports(module):
    assert importlib.import_module(module) is not None

import importlib

import pytest


def test_top_level_package_is_a_namespace_package() -> None:
    package = importlib.import_module("jobtracker")
    assert getattr(package, "__file__", None) is None


@pytest.mark.parametrize(
    "module",
    [
        "jobtracker.api.app",
        "jobtracker.api.routes.admin",
        "jobtracker.cli.app",
        "jobtracker.core.accounts",
        "jobtracker.db.models",
    ],
)
def test_subpackages_import_without_init_modules(module: str) -> None:
    assert importlib.import_module(module).__name__ == module

"""Basic package tests to verify installation."""


def test_package_imports() -> None:
    """Verify the main package can be imported."""
    import modelinsight

    assert modelinsight.__version__


def test_config_module_imports() -> None:
    """Verify config module structure is correct."""
    from modelinsight.config import (
        ConsoleConfig,
        DependencyConfig,
        InsightConfig,
        VarianceConfig,
        load_config,
    )

    assert InsightConfig is not None
    assert VarianceConfig is not None
    assert ConsoleConfig is not None
    assert DependencyConfig is not None
    assert load_config is not None


def test_public_api() -> None:
    """Verify the top-level functions are exported."""
    import modelinsight

    for name in modelinsight.__all__:
        assert hasattr(modelinsight, name), name


def test_schemas_module_imports() -> None:
    """Verify schemas module structure is correct."""
    from modelinsight.schemas import EMMSummarySchema, ParameterTableSchema

    assert EMMSummarySchema is not None
    assert ParameterTableSchema is not None

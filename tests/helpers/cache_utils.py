"""Cache utilities for test isolation."""
from __future__ import annotations


def reset_kce_caches() -> None:
    """Reset module-level caches so env overrides of one test never leak."""
    from kce.core.config.cache import clear_all_caches
    from kce.core.schemas.validation import load_schema
    from kce.core.stdlib_logging import reset_stdlib_logging_for_tests
    from kce.data import clear_caches as clear_data_caches

    clear_all_caches()
    clear_data_caches()
    load_schema.cache_clear()
    reset_stdlib_logging_for_tests()

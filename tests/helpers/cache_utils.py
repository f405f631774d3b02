"""Cache utilities for test isolation."""
from __future__ import annotations


def reset_contentpack_caches() -> None:
    """Reset module-level state that might persist between tests."""
    from contentpack.core.config.cache import clear_all_caches
    from contentpack.core.stdlib_logging import reset_stdlib_logging_for_tests

    clear_all_caches()
    reset_stdlib_logging_for_tests()

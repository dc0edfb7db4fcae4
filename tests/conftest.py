import contextlib
import logging

import pytest

TEST_SIGNING_KEY = "0123456789abcdef" * 4


@pytest.fixture
def signing_key():
    return TEST_SIGNING_KEY


@pytest.fixture
def valid_attributes():
    return {
        "givenName": "Ravi",
        "familyName": "Kumar",
        "level": "gold",
        "validFrom": "2026-01-15",
        "validUntil": "2028-01-15",
    }


@pytest.fixture
def preserved_root_logging():
    """Context manager that puts back the root handlers configure_logging replaces."""

    @contextlib.contextmanager
    def preserve():
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        try:
            yield root
        finally:
            for handler in root.handlers[:]:
                root.removeHandler(handler)
                if handler not in handlers:
                    handler.close()
            for handler in handlers:
                root.addHandler(handler)
            root.setLevel(level)

    return preserve

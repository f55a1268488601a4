import pytest
import structlog


@pytest.fixture(autouse=True)
def reset_structlog():
    # CLI commands configure logging against the runner's captured stderr.
    yield
    structlog.reset_defaults()

from typing import Iterator, List

import pytest
from loguru import logger


@pytest.fixture
def log_records() -> Iterator[List[dict]]:
    """Collects loguru records emitted while the test runs."""
    records: List[dict] = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)

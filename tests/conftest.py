"""Module to setup fixtures and other required artifacts for tests

    isort:skip_file
"""

import pytest


def pytest_addoption(parser):
    """Additional options for running tests with pytest"""
    parser.addoption(
        "--redis", action="store_true", default=False, help="Run Redis based tests"
    )
    parser.addoption(
        "--redis_uri",
        action="store",
        default="redis://localhost:6379/0",
        help="Redis instance to run Redis based tests against",
    )


def pytest_configure(config):
    config.addinivalue_line("markers", "redis: needs a live Redis instance")


def pytest_collection_modifyitems(config, items):
    """Configure special markers on tests, so as to control execution"""
    run_redis = config.getoption("--redis")

    skip_redis = pytest.mark.skip(reason="need --redis option to run")

    for item in items:
        if "redis" in item.keywords and run_redis is False:
            item.add_marker(skip_redis)


class FailingQueueClient:
    """Queue client double whose deletes fail until told otherwise"""

    def __init__(self, error=None):
        self.error = error
        self.deletes = []

    def delete(self, queue_url, receipt_handle):
        self.deletes.append((queue_url, receipt_handle))
        if self.error is not None:
            raise self.error


@pytest.fixture(autouse=True)
def clear_capacity_cache():
    """Reset the process-wide capacity so each test resolves it afresh"""
    from acktrack.config import max_unacknowledged_messages

    max_unacknowledged_messages.cache_clear()
    yield
    max_unacknowledged_messages.cache_clear()


@pytest.fixture
def queue_client():
    from acktrack.adapters.queue.memory import MemoryQueueClient

    client = MemoryQueueClient("default", {})
    yield client
    client._data_reset()


@pytest.fixture
def failing_queue_client():
    return FailingQueueClient()


@pytest.fixture
def session(queue_client):
    from acktrack.session import Session

    with Session(queue_client, max_unacknowledged_messages=None) as session:
        yield session


@pytest.fixture
def make_identifier():
    from acktrack.message import MessageIdentifier

    def _make(receipt_handle, queue_url="https://sqs.local/queue", **kwargs):
        return MessageIdentifier(
            queue_url=queue_url, receipt_handle=receipt_handle, **kwargs
        )

    return _make


@pytest.fixture
def restore_logging():
    """Undo any logging configuration applied during a test"""
    import logging

    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    levels = {
        name: logging.getLogger(name).level
        for name in ("acktrack", "acktrack.adapters", "redis")
    }

    yield

    root.handlers[:] = handlers
    root.setLevel(level)
    for name, saved_level in levels.items():
        logging.getLogger(name).setLevel(saved_level)

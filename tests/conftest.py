"""
Pytest configuration and shared fixtures

Fun fact: The name "conftest" comes from pytest's configuration testing
framework. Files named conftest.py are automatically discovered and their
fixtures are available to all tests in the same directory and subdirectories!
"""

from typing import Iterator

import pytest

from tests.helpers import KNOWN_ID_BYTES, FakeContext, FakeIdService
from znowflake_client.identifier.layout import BitFieldConfig
from znowflake_client.transport.client import TransportClient


@pytest.fixture
def layout() -> BitFieldConfig:
    """Reference layout: 39/15/10 bits, epoch 1337000000"""
    return BitFieldConfig()


@pytest.fixture
def fake_context() -> FakeContext:
    """In-memory ZeroMQ context with an empty reply queue"""
    return FakeContext()


@pytest.fixture
def fake_transport(fake_context: FakeContext) -> Iterator[TransportClient]:
    """Transport client wired to the in-memory context"""
    client = TransportClient("tcp://127.0.0.1:23138", context=fake_context)
    yield client
    client.close()


@pytest.fixture
def id_service() -> Iterator[FakeIdService]:
    """Real ZeroMQ REP service that always answers with the known identifier"""
    with FakeIdService(reply=[KNOWN_ID_BYTES]) as service:
        yield service

import pytest

from orderhub import main
from orderhub.core.broker import broker
from orderhub.services.consumer import consumer


@pytest.mark.asyncio
async def test_lifespan_closes_broker_when_consumer_fails(monkeypatch):
    calls = []

    async def mock_connect():
        calls.append("connect")

    async def mock_close():
        calls.append("close")

    async def mock_start():
        raise ConnectionError("RabbitMQ unreachable")

    monkeypatch.setattr(main, "setup_logging", lambda: None)
    monkeypatch.setattr(broker, "connect", mock_connect)
    monkeypatch.setattr(broker, "close", mock_close)
    monkeypatch.setattr(consumer, "start", mock_start)

    with pytest.raises(ConnectionError):
        async with main.lifespan(main.app):
            pass

    assert calls == ["connect", "close"]

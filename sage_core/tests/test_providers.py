from sage_core.infrastructure.scheduling.main_loop import InlineScheduler, MainLoopScheduler
from sage_core.providers import create_client
from sage_core.providers.observer import LoggingObserver, NullObserver
from sage_core.providers.openrouter_client import OpenRouterClient


def test_create_client_default(monkeypatch):
    class DummySettings:
        debug = False

    monkeypatch.setattr("sage_core.providers.settings", DummySettings())
    client = create_client()
    assert isinstance(client, OpenRouterClient)
    assert isinstance(client._observer, NullObserver)
    assert isinstance(client.scheduler, MainLoopScheduler)


def test_create_client_debug_observer(monkeypatch):
    class DummySettings:
        debug = True

    monkeypatch.setattr("sage_core.providers.settings", DummySettings())
    scheduler = InlineScheduler()
    client = create_client(scheduler=scheduler)
    assert isinstance(client._observer, LoggingObserver)
    assert client.scheduler is scheduler

import pytest

from o3_search_mcp import cli


class FakeLifecycle:
    instances = []

    def __init__(self, server, transport, process_timeout=None):
        self.server = server
        self.transport = transport
        self.process_timeout = process_timeout
        FakeLifecycle.instances.append(self)

    async def run(self):
        return 0


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("OPENAI_API_KEY", "OPENAI_MAX_RETRIES", "OPENAI_API_TIMEOUT",
                 "SEARCH_CONTEXT_SIZE", "REASONING_EFFORT", "PROCESS_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)
    FakeLifecycle.instances.clear()


def test_missing_api_key_is_a_startup_fault(caplog):
    assert cli.main([]) == 1
    assert "Fatal error in main()" in caplog.text


def test_invalid_tier_is_a_startup_fault(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("REASONING_EFFORT", "extreme")

    assert cli.main([]) == 1


def test_runs_lifecycle_with_configured_timeout(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("PROCESS_TIMEOUT", "2500")
    monkeypatch.setattr(cli, "LifecycleManager", FakeLifecycle)

    assert cli.main(["--verbose"]) == 0

    (lifecycle,) = FakeLifecycle.instances
    assert lifecycle.process_timeout == 2.5
    assert [t.name for t in lifecycle.server.list_tools()] == ["o3-search"]


def test_lifecycle_exit_code_is_returned(monkeypatch):
    class FailingClose(FakeLifecycle):
        async def run(self):
            return 1

    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setattr(cli, "LifecycleManager", FailingClose)

    assert cli.main([]) == 1

import pytest

from polyinfer.adapters.http import HttpxTransport
from polyinfer.context import PolyinferContext, get_default_context, reset_default_context, set_default_context
from polyinfer.core.env import EnvCredentialResolver
from polyinfer.core.errors import ConfigError

from conftest import make_config, make_provider


def test_defaults():
    context = PolyinferContext(credentials=EnvCredentialResolver(dotenv=False))

    assert isinstance(context.transport, HttpxTransport)
    assert context.transport.timeout == 30.0
    assert context.config is None
    assert context.get_metrics() == {}


def test_timeout_from_settings(monkeypatch):
    monkeypatch.setenv("POLYINFER_HTTP_TIMEOUT", "5")

    context = PolyinferContext(credentials=EnvCredentialResolver(dotenv=False))

    assert context.transport.timeout == 5.0


def test_install_config_replaces_previous(context):
    context.install_config(make_config(make_provider("a")))
    context.install_config(make_config(make_provider("b")))

    assert [p.name for p in context.config.providers] == ["b"]


def test_install_invalid_config_keeps_previous(context):
    context.install_config(make_config(make_provider("a")))

    with pytest.raises(ConfigError):
        context.install_config({"providers": []})

    assert context.config.providers[0].name == "a"


@pytest.mark.asyncio
async def test_close_drops_state(context):
    context.install_config(make_config(make_provider("a")))
    context.metrics.record_success("a", 12)
    await context.cache.set("k", "v", 60000)

    context.close()

    assert context.config is None
    assert context.get_metrics() == {}
    assert len(context.cache) == 0


def test_contexts_are_isolated(context):
    other = PolyinferContext(transport=context.transport, credentials=context.credentials)
    context.metrics.record_failure("a", 3)

    assert other.get_metrics() == {}


def test_default_context_is_reused_until_reset(context):
    set_default_context(context)
    assert get_default_context() is context

    reset_default_context()
    assert get_default_context() is not context


def test_default_context_with_missing_config_file(monkeypatch, tmp_path):
    monkeypatch.setenv("POLYINFER_CONFIG_PATH", str(tmp_path / "missing.yml"))

    with pytest.raises(ConfigError):
        get_default_context()

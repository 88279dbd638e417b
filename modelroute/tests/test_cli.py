"""Tests for modelroute.cli — argument parsing, commands, exit codes."""

import pytest

import modelroute.config as config_module
from modelroute.cli import build_parser, main, run
from modelroute.hooks.model_store import InMemoryModelStore


@pytest.fixture
def store() -> InMemoryModelStore:
    return InMemoryModelStore()


@pytest.fixture
def invoke(make_services, store):
    """Runs one CLI command against fake services; returns the exit code."""

    async def _invoke(*argv: str, **kwargs) -> int:
        services = make_services(store=store, **kwargs)
        return await run(services, build_parser().parse_args(list(argv)))

    return _invoke


class TestParser:
    """build_parser — closed command set."""

    def test_unknown_command_exits(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["models", "frobnicate"])

    def test_unknown_option_exits(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["models", "add", "a/b", "--apikey", "x"])

    def test_group_required(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestModelsCommands:
    """modelroute models ..."""

    @pytest.mark.asyncio
    async def test_add_and_list(self, invoke, store, capsys) -> None:
        assert await invoke("models", "add", "myhost/llama", "--base-url", "http://h/v1", "--api-key", "sk") == 0
        assert await invoke("models", "list") == 0
        out = capsys.readouterr().out
        assert "Added myhost/llama" in out
        assert "http://h/v1" in out
        assert "api key set" in out
        assert "sk\n" not in out
        assert (await store.get_custom_model("myhost/llama")).credential == "sk"

    @pytest.mark.asyncio
    async def test_list_empty(self, invoke, capsys) -> None:
        assert await invoke("models", "list") == 0
        assert "No custom models." in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_list_provider_models(self, invoke, capsys) -> None:
        assert await invoke("models", "list", "anthropic") == 0
        assert "anthropic/claude-3-5-sonnet-20241022 (200000 ctx)" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_duplicate_add_fails(self, invoke, capsys) -> None:
        await invoke("models", "add", "a/b")
        assert await invoke("models", "add", "a/b") == 1
        err = capsys.readouterr().err
        assert "error: Custom model 'a/b' already exists." in err
        assert "hint:" in err

    @pytest.mark.asyncio
    async def test_remove_missing_fails(self, invoke, capsys) -> None:
        assert await invoke("models", "remove", "ghost/model") == 1
        assert "No custom model" in capsys.readouterr().err

    @pytest.mark.asyncio
    async def test_remove(self, invoke, store) -> None:
        await invoke("models", "add", "a/b")
        assert await invoke("models", "remove", "a/b") == 0
        assert await store.list_custom_models() == []

    @pytest.mark.asyncio
    async def test_default_show_and_set(self, invoke, store, capsys) -> None:
        assert await invoke("models", "default", "ollama/llama3:8b") == 0
        assert await invoke("models", "default") == 0
        out = capsys.readouterr().out
        assert "Default model: ollama/llama3:8b" in out
        assert "ollama/llama3:8b (stored_default)" in out
        assert await store.get_default() == "ollama/llama3:8b"

    @pytest.mark.asyncio
    async def test_default_none_under_require(self, invoke, make_settings, capsys) -> None:
        settings = make_settings(default_model_policy="require")
        assert await invoke("models", "default", settings=settings) == 0
        assert "No default model." in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_resolve_prints_without_credential(self, invoke, capsys) -> None:
        code = await invoke("models", "resolve", "groq/llama-3.1-8b-instant", env={"GROQ_API_KEY": "gsk-secret"})
        out = capsys.readouterr().out
        assert code == 0
        assert "model:          groq/llama-3.1-8b-instant" in out
        assert "credential:     set" in out
        assert "gsk-secret" not in out

    @pytest.mark.asyncio
    async def test_alias_added_model_resolves_with_its_key(self, invoke, store, capsys) -> None:
        assert await invoke("models", "add", "or/some/model", "--api-key", "sk-or") == 0
        assert await invoke("models", "resolve", "or/some/model") == 0
        out = capsys.readouterr().out
        assert "Added openrouter/some/model" in out
        assert "model:          openrouter/some/model" in out
        assert "engine:         openai" in out
        assert "credential:     set" in out

    @pytest.mark.asyncio
    async def test_resolve_not_configured(self, invoke, capsys) -> None:
        assert await invoke("models", "resolve", "groq/x") == 1
        assert "GROQ_API_KEY" in capsys.readouterr().err

    @pytest.mark.asyncio
    async def test_resolve_warning_on_stderr(self, invoke, capsys) -> None:
        code = await invoke("models", "resolve", "openrouter/a/b", env={"OPENROUTER_API_KEY": "k"})
        captured = capsys.readouterr()
        assert code == 0
        assert "warning:" in captured.err


class TestProvidersCommands:
    """modelroute providers ..."""

    @pytest.mark.asyncio
    async def test_list(self, invoke, capsys) -> None:
        assert await invoke("providers", "list") == 0
        out = capsys.readouterr().out
        assert "ollama" in out
        assert "not configured" in out

    @pytest.mark.asyncio
    async def test_models_unknown_provider(self, invoke, capsys) -> None:
        assert await invoke("providers", "models", "nosuch") == 1
        assert "Unknown provider" in capsys.readouterr().err

    @pytest.mark.asyncio
    async def test_pull(self, invoke, capsys) -> None:
        assert await invoke("providers", "pull", "qwen2.5-coder:7b") == 0
        out = capsys.readouterr().out
        assert "pulling manifest" in out
        assert "Done." in out

    @pytest.mark.asyncio
    async def test_pull_unsupported(self, invoke, capsys) -> None:
        assert await invoke("providers", "pull", "x", "--provider", "groq") == 2
        assert "cannot pull" in capsys.readouterr().err


class TestMain:
    """main() — settings from the environment, state persisted between runs."""

    @pytest.fixture(autouse=True)
    def _isolated_env(self, monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
        monkeypatch.setattr(config_module, "_settings", None)
        monkeypatch.setenv("MODELROUTE_CONFIG_DIR", str(tmp_path / "config"))
        monkeypatch.delenv("MODELROUTE_MODEL", raising=False)
        monkeypatch.delenv("MODELROUTE_DEFAULT_POLICY", raising=False)

    def test_default_survives_separate_invocations(self, monkeypatch, capsys) -> None:
        assert main(["models", "add", "myhost/llama", "--base-url", "http://myhost:8080/v1"]) == 0
        assert main(["models", "default", "myhost/llama"]) == 0

        monkeypatch.setattr(config_module, "_settings", None)
        assert main(["models", "resolve"]) == 0

        out = capsys.readouterr().out
        assert "model:          myhost/llama" in out
        assert "base_url:       http://myhost:8080/v1" in out
        assert "source:         stored_default" in out

    def test_invalid_setting_exit_code(self, monkeypatch, capsys) -> None:
        monkeypatch.setenv("MODELROUTE_DEFAULT_POLICY", "sometimes")
        assert main(["models", "list"]) == 2
        assert "MODELROUTE_DEFAULT_POLICY" in capsys.readouterr().err

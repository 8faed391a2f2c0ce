"""Tests for argument tokens and the in-container module runner."""
from pathlib import Path

import pytest

from podwrap.runtime import Flag, ModuleRunner, Option, Positional, build_arglist, tokens_from_call
from podwrap.runtime.arglist import option_name
from podwrap.services.container_engine import ContainerEngine
from podwrap.services.process import ProcessResult


class TestOptionName:

    def test_single_letter(self):
        assert option_name("w") == "-w"

    def test_long_name(self):
        assert option_name("width") == "--width"

    def test_underscores_become_hyphens(self):
        assert option_name("output_dir") == "--output-dir"

    def test_explicit_switch_kept(self):
        assert option_name("-fancy") == "-fancy"


class TestBuildArglist:
    """Test token serialisation."""

    def test_preserves_order(self):
        tokens = [Option("f", "slant"), Positional("hello"), Flag("verbose"), Positional(42)]
        assert build_arglist(tokens) == ["-f", "slant", "hello", "--verbose", "42"]

    def test_empty(self):
        assert build_arglist([]) == []

    def test_rejects_unknown_token(self):
        with pytest.raises(TypeError):
            build_arglist([("width", 80)])


class TestTokensFromCall:
    """Test mapping Python calls onto tokens."""

    def test_positionals_then_keywords(self):
        tokens = tokens_from_call(("input.txt",), {"w": 80, "center": True})
        assert tokens == [Positional("input.txt"), Option("w", 80), Flag("center")]

    def test_false_and_none_dropped(self):
        assert tokens_from_call((), {"center": False, "font": None}) == []

    def test_tokens_pass_through(self):
        flag = Flag("-l")
        assert tokens_from_call((flag, "x"), {}) == [flag, Positional("x")]


class FakeEngine(ContainerEngine):
    def __init__(self, result=None):
        super().__init__(mock=True)
        self.result = result or ProcessResult(exit_code=0, stdout="hello\n")
        self.invocations = []

    def run(self, image, **kwargs):
        self.invocations.append((image, kwargs))
        return self.result


class TestModuleRunner:
    """Test the runner embedded in generated modules."""

    def test_command_mixes_strings_and_tokens(self):
        runner = ModuleRunner(
            package_name="pw_figlet",
            cmd="figlet",
            image="d/pw_figlet",
            arglist=["-c", Option("font", "slant"), Positional("hi")],
        )
        assert runner.command() == ["figlet", "-c", "--font", "slant", "hi"]

    def test_run_mounts_working_dir(self, tmp_path, capsys):
        engine = FakeEngine()
        runner = ModuleRunner(
            package_name="pw_figlet",
            cmd="figlet",
            image="d/pw_figlet",
            arglist=tokens_from_call(("hi",), {}),
            working_dir=tmp_path,
            engine=engine,
        )

        result = runner.run()

        assert result.ok
        image, kwargs = engine.invocations[0]
        assert image == "d/pw_figlet"
        assert kwargs['tag'] == "latest"
        assert kwargs['command'] == ["figlet", "hi"]
        assert kwargs['volumes'] == {str(tmp_path): "/working_dir"}
        assert kwargs['workdir'] == "/working_dir"
        assert capsys.readouterr().out == "hello\n"

    def test_failure_returned(self, tmp_path):
        engine = FakeEngine(ProcessResult(exit_code=1, stderr="figlet: no such font"))
        runner = ModuleRunner("pw_figlet", "figlet", "d/pw_figlet", working_dir=tmp_path, engine=engine)

        result = runner.run()

        assert result.exit_code == 1
        assert "no such font" in result.stderr

    def test_default_working_dir_is_cwd(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        runner = ModuleRunner("pw_figlet", "figlet", "d/pw_figlet", engine=FakeEngine())
        assert runner.working_dir.resolve() == Path(tmp_path).resolve()

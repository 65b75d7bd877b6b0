"""Tests for the ``sagasim`` command line."""

import json
import textwrap

import pytest

from sagasim.__main__ import build_parser, main

SAGAS = textwrap.dedent(
    """
    from sagasim import delay, fork, join, put


    def double(n):
        yield delay(1)
        return n * 2


    def pipeline(n):
        task = yield fork(double, n)
        value = yield join(task)
        yield put({"type": "DONE", "value": value})
        return value


    def failing():
        yield delay(1)
        raise ValueError("broken saga")


    def not_a_saga():
        return 1
    """
)


@pytest.fixture
def sagas_module(tmp_path, monkeypatch):
    (tmp_path / "cli_sagas.py").write_text(SAGAS)
    monkeypatch.syspath_prepend(str(tmp_path))
    return "cli_sagas"


class TestRun:
    def test_text_output(self, sagas_module, capsys) -> None:
        assert main(["run", f"{sagas_module}:pipeline", "--args", "21"]) == 0
        assert capsys.readouterr().out.strip() == "42"

    def test_dotted_path(self, sagas_module, capsys) -> None:
        assert main(["run", f"{sagas_module}.pipeline", "--args", "[1]"]) == 0
        assert capsys.readouterr().out.strip() == "2"

    def test_json_output(self, sagas_module, capsys) -> None:
        assert main(["run", f"{sagas_module}:pipeline", "--args", "[5]", "--format", "json"]) == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["status"] == "ok"
        assert payload["result"] == 10
        assert payload["result_type"] == "int"
        assert payload["dispatched"] == [{"type": "DONE", "value": 10}]
        assert payload["steps"] > 0

    def test_failing_saga(self, sagas_module, capsys) -> None:
        assert main(["run", f"{sagas_module}:failing"]) == 1
        assert "broken saga" in capsys.readouterr().err

    def test_failing_saga_json(self, sagas_module, capsys) -> None:
        assert main(["run", f"{sagas_module}:failing", "--format", "json"]) == 1
        payload = json.loads(capsys.readouterr().out)
        assert payload["status"] == "error"
        assert payload["error"] == "TestedCodeError"

    def test_not_a_generator_function(self, sagas_module, capsys) -> None:
        assert main(["run", f"{sagas_module}:not_a_saga"]) == 1
        assert "generator function" in capsys.readouterr().err

    def test_invalid_args_json(self, sagas_module, capsys) -> None:
        assert main(["run", f"{sagas_module}:pipeline", "--args", "{nope"]) == 1
        assert "--args must be valid JSON" in capsys.readouterr().err

    def test_step_limit(self, sagas_module, capsys) -> None:
        assert main(["run", f"{sagas_module}:pipeline", "--args", "1", "--step-limit", "2"]) == 1
        assert "Step limit of 2 exceeded" in capsys.readouterr().err


class TestParser:
    def test_defaults(self) -> None:
        args = build_parser().parse_args(["run", "pkg.mod:saga"])
        assert args.saga == "pkg.mod:saga"
        assert args.step_limit == 10000
        assert args.strict is False
        assert args.format == "text"

    def test_command_is_required(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

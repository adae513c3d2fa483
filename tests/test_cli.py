"""
CLI 테스트
"""

import argparse
import json
from unittest.mock import AsyncMock, patch

import pytest

from qalib import cli
from qalib.errors import ErrorKind, QalibError
from qalib.types import Render
from tests.sample_data import API_KEY, generate_render


@pytest.fixture(autouse=True)
def no_dotenv(monkeypatch):
    """.env 파일 로드 비활성화"""
    monkeypatch.setattr(cli, "load_dotenv", lambda: None)


class TestVariableArguments:
    """변수 인자 파싱 테스트"""

    def test_variables_keep_command_line_order(self):
        """서로 다른 변수 옵션도 입력 순서 유지"""
        args = cli.build_parser().parse_args(
            [
                "render",
                "-t",
                "tmp_abc123",
                "--text",
                "title=Hello = World",
                "--rating",
                "stars=4.5",
                "--image",
                "logo=https://example.com/logo.png?x=1",
            ]
        )

        assert args.variables == [
            {"name": "title", "text": "Hello = World"},
            {"name": "stars", "rating": 4.5},
            {"name": "logo", "image_url": "https://example.com/logo.png?x=1"},
        ]

    @pytest.mark.parametrize("value", ["title", "=Hello"])
    def test_malformed_pair(self, value):
        with pytest.raises(argparse.ArgumentTypeError):
            cli.text_variable(value)

    def test_non_numeric_rating(self):
        with pytest.raises(argparse.ArgumentTypeError):
            cli.rating_variable("stars=five")


class TestMain:
    """main 엔트리포인트 테스트"""

    def test_missing_api_key_exit_code(self, monkeypatch, capsys):
        """설정 오류는 종료 코드 2"""
        monkeypatch.delenv("QALIB_API_KEY", raising=False)

        assert cli.main(["health"]) == 2
        assert "QALIB_API_KEY" in capsys.readouterr().err

    def test_qalib_error_exit_code(self, monkeypatch, capsys):
        """API 에러는 분류 라벨과 함께 종료 코드 1"""
        monkeypatch.setenv("QALIB_API_KEY", API_KEY)
        error = QalibError(ErrorKind.RENDER_FAILED, "Font missing", details={"renderId": "r1"})

        with patch.object(cli, "run_command", AsyncMock(side_effect=error)):
            assert cli.main(["get", "r1"]) == 1

        err = capsys.readouterr().err
        assert "[재시도 불가] RENDER_ERROR (500): Font missing" in err
        assert '"renderId": "r1"' in err

    def test_render_wait(self, monkeypatch, capsys):
        """render --wait는 create_and_wait 호출"""
        monkeypatch.setenv("QALIB_API_KEY", API_KEY)
        completed = Render.model_validate(generate_render("completed"))

        with patch.object(
            cli.Qalib, "create_and_wait", AsyncMock(return_value=completed)
        ) as mock_wait:
            code = cli.main(
                ["render", "-t", "tmp_abc123", "--text", "title=Hi", "--wait", "--timeout", "30"]
            )

        assert code == 0
        call = mock_wait.call_args
        assert call.args == ("tmp_abc123", [{"name": "title", "text": "Hi"}])
        assert call.kwargs["timeout"] == 30.0
        assert call.kwargs["interval"] == 1.0
        output = json.loads(capsys.readouterr().out)
        assert output["status"] == "completed"
        assert output["self"].endswith(completed.id)

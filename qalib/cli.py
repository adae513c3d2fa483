"""
Qalib 명령줄 도구

사용법:
    # async 렌더 후 완료까지 대기
    qalib render --template tmp_abc123 --text title="Hello World" --wait

    # sync 모드 렌더 (서버가 완료 후 응답)
    qalib render --template tmp_abc123 --text title=Hi --image logo=https://example.com/logo.png --mode sync

    # 렌더 상태 조회 / 대기
    qalib get 3754b935-32e5-47c9-8722-bc9579347b29
    qalib wait 3754b935-32e5-47c9-8722-bc9579347b29 --timeout 120

    # 템플릿 목록
    qalib templates --limit 10
    qalib templates --all --max-results 200

    # 헬스 체크
    qalib health

환경변수: QALIB_API_KEY, QALIB_BASE_URL, QALIB_TIMEOUT, QALIB_MODE,
QALIB_POLL_INTERVAL, QALIB_POLL_TIMEOUT (.env 파일 지원)
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

from dotenv import load_dotenv

from .client import Qalib
from .config import ClientConfig, ConfigurationError
from .errors import ErrorClassifier, QalibError
from .types import Render


def _split_pair(value: str) -> tuple[str, str]:
    if "=" not in value:
        raise argparse.ArgumentTypeError(f"NAME=VALUE 형식이어야 합니다: {value}")
    name, raw = value.split("=", 1)
    if not name:
        raise argparse.ArgumentTypeError(f"변수 이름이 비어 있습니다: {value}")
    return name, raw


def text_variable(value: str) -> dict[str, Any]:
    name, text = _split_pair(value)
    return {"name": name, "text": text}


def image_variable(value: str) -> dict[str, Any]:
    name, image_url = _split_pair(value)
    return {"name": name, "image_url": image_url}


def rating_variable(value: str) -> dict[str, Any]:
    name, raw = _split_pair(value)
    try:
        rating = float(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"별점은 숫자여야 합니다: {value}") from None
    return {"name": name, "rating": rating}


def build_parser() -> argparse.ArgumentParser:
    """CLI 인자 파서 생성"""
    parser = argparse.ArgumentParser(
        prog="qalib",
        description="Qalib 이미지 렌더링 API CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="DEBUG 로그 출력")

    subparsers = parser.add_subparsers(dest="command", required=True)

    # render
    render = subparsers.add_parser("render", help="템플릿으로 이미지 렌더링")
    render.add_argument("--template", "-t", required=True, help="템플릿 ID")
    render.add_argument(
        "--text",
        dest="variables",
        action="append",
        type=text_variable,
        metavar="NAME=TEXT",
        help="텍스트 변수 (반복 가능)",
    )
    render.add_argument(
        "--image",
        dest="variables",
        action="append",
        type=image_variable,
        metavar="NAME=URL",
        help="이미지 변수 (반복 가능)",
    )
    render.add_argument(
        "--rating",
        dest="variables",
        action="append",
        type=rating_variable,
        metavar="NAME=0-5",
        help="별점 변수 (반복 가능)",
    )
    render.add_argument(
        "--mode",
        choices=["sync", "async"],
        help="이번 요청의 렌더링 모드 (기본: QALIB_MODE)",
    )
    render.add_argument(
        "--wait",
        action="store_true",
        help="async 제출 후 완료까지 대기 (--mode 무시)",
    )
    _add_poll_arguments(render)

    # get
    get = subparsers.add_parser("get", help="렌더 상태 조회")
    get.add_argument("render_id", help="렌더 ID")

    # wait
    wait = subparsers.add_parser("wait", help="렌더 완료까지 대기")
    wait.add_argument("render_id", help="렌더 ID")
    _add_poll_arguments(wait)

    # templates
    templates = subparsers.add_parser("templates", help="템플릿 목록 조회")
    templates.add_argument("--limit", type=int, default=50, help="페이지 크기 (1~100)")
    templates.add_argument("--offset", type=int, default=0, help="건너뛸 개수")
    templates.add_argument("--all", action="store_true", help="모든 페이지 조회")
    templates.add_argument("--max-results", type=int, help="--all 사용 시 최대 개수")

    # template
    template = subparsers.add_parser("template", help="템플릿 단건 조회")
    template.add_argument("template_id", help="템플릿 ID")

    # health
    subparsers.add_parser("health", help="API 헬스 체크")

    return parser


def _add_poll_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--interval", type=float, help="폴링 주기 (초)")
    parser.add_argument("--timeout", type=float, help="최대 대기 시간 (초)")


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _progress(render: Render) -> None:
    print(f"  [{render.status.upper()}] {render.id}", file=sys.stderr)


async def run_command(args: argparse.Namespace, config: ClientConfig) -> None:
    """서브커맨드 실행

    Raises:
        QalibError: API 호출 실패
    """
    qalib = Qalib.from_config(config)
    interval = getattr(args, "interval", None) or config.poll_interval
    timeout = getattr(args, "timeout", None) or config.poll_timeout

    if args.command == "render":
        variables = args.variables or []
        if args.wait:
            render = await qalib.create_and_wait(
                args.template,
                variables,
                interval=interval,
                timeout=timeout,
                on_poll=_progress,
            )
        else:
            render = await qalib.render_image(args.template, variables, mode=args.mode)
        _print_json(render.model_dump(by_alias=True, exclude_none=True))

    elif args.command == "get":
        render = await qalib.get_render(args.render_id)
        _print_json(render.model_dump(by_alias=True, exclude_none=True))

    elif args.command == "wait":
        render = await qalib.wait_for(
            args.render_id, interval=interval, timeout=timeout, on_poll=_progress
        )
        _print_json(render.model_dump(by_alias=True, exclude_none=True))

    elif args.command == "templates":
        if args.all:
            items = await qalib.list_all_templates(max_results=args.max_results)
            _print_json([t.model_dump(exclude_none=True) for t in items])
        else:
            page = await qalib.list_templates(limit=args.limit, offset=args.offset)
            _print_json(page.model_dump(exclude_none=True))

    elif args.command == "template":
        template = await qalib.get_template(args.template_id)
        _print_json(template.model_dump(exclude_none=True))

    elif args.command == "health":
        status = await qalib.health()
        _print_json(status.model_dump(exclude_none=True))


def main(argv: list[str] | None = None) -> int:
    """메인 엔트리포인트"""
    load_dotenv()
    args = build_parser().parse_args(argv)

    # 로깅 설정
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        config = ClientConfig.from_env_validated(strict=True)
    except (ConfigurationError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    try:
        asyncio.run(run_command(args, config))
    except QalibError as e:
        print(f"Error: {ErrorClassifier.format_message(e)}", file=sys.stderr)
        if e.details:
            print(json.dumps(e.details, indent=2, ensure_ascii=False, default=str), file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from .config import resolve_limits
from .data.binder import DataSource, DataSourceKind
from .engine import run_render, run_report, write_output
from .errors import RtplUserError
from .jsonic import dumps as jdumps
from .logs import setup_logging
from .types import RunOptions
from .version import tool_version

EXIT_OK = 0


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="rtpl",
        description="Render templates with data from various sources",
        add_help=True,
    )
    p.add_argument("-v", "--version", action="version", version=f"%(prog)s {tool_version()}")
    sub = p.add_subparsers(dest="cmd", required=True)

    # Общие аргументы для render/report
    def add_common(sp: argparse.ArgumentParser) -> None:
        sp.add_argument(
            "template",
            nargs="?",
            help="путь к файлу шаблона или - для чтения шаблона из stdin",
        )
        sp.add_argument(
            "-t", "--template",
            dest="template_option",
            metavar="PATH",
            help="то же, что позиционный TEMPLATE (форма исходного rtpl)",
        )
        sp.add_argument(
            "-d", "--data",
            action="append",
            metavar="JSON",
            help="данные как JSON-строка (можно указать несколько)",
        )
        sp.add_argument(
            "--data-file",
            action="append",
            metavar="PATH",
            help="файл данных .json/.yaml/.yml (можно указать несколько)",
        )
        sp.add_argument(
            "--env-prefix",
            action="append",
            metavar="PREFIX",
            help="данные из переменных окружения с префиксом (префикс отрезается)",
        )
        sp.add_argument(
            "--stdin-data",
            action="store_true",
            help="прочитать JSON-данные из stdin",
        )
        sp.add_argument(
            "--no-env",
            action="store_true",
            help="не добавлять _ENV с переменными окружения",
        )
        sp.add_argument(
            "--max-depth",
            type=int,
            metavar="N",
            help="максимальная вложенность блоков, не больше 128 (по умолчанию 64 или RTPL_MAX_DEPTH)",
        )
        sp.add_argument(
            "--max-iterations",
            type=int,
            metavar="N",
            help="лимит итераций циклов за рендер, 0 — без лимита (RTPL_MAX_ITERATIONS)",
        )
        sp.add_argument(
            "--debug",
            action="store_true",
            help="отладочный вывод в stderr (также RTPL_DEBUG=1)",
        )

    sp_render = sub.add_parser("render", help="Отрендерить шаблон (текст)")
    add_common(sp_render)
    sp_render.add_argument(
        "-o", "--output",
        metavar="PATH",
        help="записать результат в файл вместо stdout",
    )

    sp_report = sub.add_parser("report", help="JSON-отчёт: переменные, узлы, размер результата")
    add_common(sp_report)

    return p


def _opts(ns: argparse.Namespace) -> RunOptions:
    # Порядок источников: --data, --data-file, --env-prefix, stdin; поздние перекрывают ключи ранних
    template_text: Optional[str] = None
    template_path: Optional[Path] = None

    template = ns.template_option or ns.template
    if template == "-":
        if ns.stdin_data:
            raise RtplUserError("Cannot read both template and data from stdin")
        template_text = sys.stdin.read()
    else:
        template_path = Path(template)

    return RunOptions(
        template_path=template_path,
        template_text=template_text,
        sources=tuple(_parse_sources(ns)),
        include_env=not ns.no_env,
        limits=resolve_limits(ns.max_depth, ns.max_iterations),
    )


def _parse_sources(ns: argparse.Namespace) -> List[DataSource]:
    """Собирает источники данных из аргументов командной строки."""
    sources: List[DataSource] = []
    for raw in ns.data or []:
        sources.append(DataSource(DataSourceKind.INLINE_JSON, raw))
    for raw in ns.data_file or []:
        sources.append(DataSource(DataSourceKind.FILE_PATH, Path(raw)))
    for raw in ns.env_prefix or []:
        sources.append(DataSource(DataSourceKind.ENV_PREFIX, raw))
    if ns.stdin_data:
        sources.append(DataSource(DataSourceKind.STDIN, sys.stdin.read()))
    return sources


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    ns = parser.parse_args(argv)
    if ns.template is not None and ns.template_option is not None:
        parser.error("template given both as TEMPLATE and -t/--template")
    if ns.template is None and ns.template_option is None:
        parser.error("the following arguments are required: template")
    setup_logging(debug=bool(getattr(ns, "debug", False)))

    try:
        if ns.cmd == "render":
            options = _opts(ns)
            # Рендер целиком до записи: при ошибке вывод остаётся пустым
            doc_text = run_render(options)
            write_output(doc_text, Path(ns.output) if ns.output else None)
            return EXIT_OK

        if ns.cmd == "report":
            result = run_report(_opts(ns))
            sys.stdout.write(jdumps(result.model_dump(mode="json", by_alias=True)))
            return EXIT_OK

    except RtplUserError as e:
        sys.stderr.write(str(e).rstrip() + "\n")
        return e.exit_code

    return 2


if __name__ == "__main__":
    raise SystemExit(main())

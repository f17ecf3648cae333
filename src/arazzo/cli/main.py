"""arazzo CLI — Click 기반 커맨드라인 인터페이스.

`arazzo validate` 로 문서 검증, `arazzo convert` 로 포맷 변환을 수행한다.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
import structlog
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from arazzo.codec import Format, decode, encode, format_for_path, resolve_format
from arazzo.errors import ArazzoError, DecodeError
from arazzo.models.document import Arazzo

console = Console()
error_console = Console(stderr=True)

FORMAT_CHOICES = click.Choice([f.value for f in Format], case_sensitive=False)

# ─── 유틸리티 ──────────────────────────────────────────


def _configure_logging(verbose: bool) -> None:
    """structlog 출력을 stderr 로 보낸다 (stdout 은 변환 결과 전용). 기본은 warning 이상만."""
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG if verbose else logging.WARNING),
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
    )


def _load(file: str, fmt: str | None) -> Arazzo:
    """파일 → Arazzo. 실패하면 에러 출력 후 종료."""
    path = Path(file)
    try:
        source = resolve_format(fmt) if fmt else format_for_path(path)
        return decode(path.read_bytes(), source)
    except DecodeError as e:
        error_console.print(f"[red]✗ 읽기 실패 ({escape(str(path))}): {escape(e.summary)}[/red]")
        for detail in e.details:
            error_console.print(f"  [dim]•[/dim] {escape(detail)}")
        sys.exit(1)
    except ArazzoError as e:
        error_console.print(f"[red]✗ {escape(str(e))}[/red]")
        sys.exit(1)


# ─── 메인 그룹 ─────────────────────────────────────────


@click.group()
@click.version_option(version="0.1.0", prog_name="arazzo")
@click.option("--verbose", "-v", is_flag=True, help="debug 로그 출력 (stderr)")
def cli(verbose: bool) -> None:
    """🧵 arazzo — Arazzo 워크플로우 문서 도구.

    JSON / YAML / HCL 문서를 읽고, 검증하고, 변환한다.
    """
    _configure_logging(verbose)


# ─── arazzo validate ───────────────────────────────────


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--format", "-f", "fmt", type=FORMAT_CHOICES, default=None, help="입력 포맷 (기본: 확장자로 판단)")
def validate(file: str, fmt: str | None) -> None:
    """✅ 문서 검증 — 모든 규칙 위반을 한 번에 보고한다."""
    document = _load(file, fmt)
    result = document.validate()

    if not result.valid:
        console.print()
        table = Table(title="⚠ 검증 에러", show_header=True, header_style="bold red")
        table.add_column("경로", style="cyan")
        table.add_column("메시지", style="red")
        for issue in result.errors:
            table.add_row(escape(issue.path) or "—", escape(issue.message))
        console.print(table)
        console.print(f"[red bold]✗ {len(result.errors)}개 위반[/red bold]")
        sys.exit(1)

    console.print()
    console.print(
        Panel(
            f"[green bold]✓[/green bold] 검증 통과 — "
            f"workflow {len(document.workflows)}개, "
            f"source {len(document.source_descriptions)}개",
            style="green",
        )
    )


# ─── arazzo convert ────────────────────────────────────


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--to", "-t", "target", type=FORMAT_CHOICES, required=True, help="출력 포맷")
@click.option("--format", "-f", "fmt", type=FORMAT_CHOICES, default=None, help="입력 포맷 (기본: 확장자로 판단)")
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=None, help="출력 파일 (기본: stdout)")
def convert(file: str, target: str, fmt: str | None, output: str | None) -> None:
    """🔁 포맷 변환 — json / yaml / hcl."""
    document = _load(file, fmt)
    try:
        data = encode(document, target)
    except ArazzoError as e:
        error_console.print(f"[red]✗ 변환 실패: {escape(str(e))}[/red]")
        sys.exit(1)

    if output is None:
        click.echo(data.decode("utf-8"), nl=False)
        return

    Path(output).write_bytes(data)
    error_console.print(f"[green]✓ {output} 저장됨 ({target})[/green]")


# ─── 엔트리포인트 ──────────────────────────────────────

if __name__ == "__main__":
    cli()

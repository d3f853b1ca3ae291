"""
CLI интерфейс для аудита сайтов.

Использует Rich для живого чеклиста и вывода результатов.
"""

import asyncio
from typing import List, Optional

import httpx
import typer
from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.table import Table

from siteaudit.config import AuditConfig
from siteaudit.core.checklist import Checklist, ProgressEvent
from siteaudit.core.errors import TargetResolutionError
from siteaudit.core.models import AuditReport, CheckStatus
from siteaudit.orchestrator import AuditOrchestrator, build_descriptors, parse_check_ids
from siteaudit.reports.generator import SECTION_TITLES, STATUS_GLYPHS, ReportGenerator

app = typer.Typer(
    name="siteaudit",
    help="Site audit CLI: проверка сайта по домену"
)
console = Console()

BACKEND_URL = "http://localhost:8000"

STATUS_STYLES = {
    CheckStatus.PENDING: "dim",
    CheckStatus.TESTING: "bold blue",
    CheckStatus.SUCCESS: "green",
    CheckStatus.WARNING: "yellow",
    CheckStatus.ERROR: "red",
}

BORDER_STYLES = {
    CheckStatus.SUCCESS: "green",
    CheckStatus.WARNING: "yellow",
    CheckStatus.ERROR: "red",
}


def render_checklist(title: str, rows: List[List[str]]) -> Table:
    table = Table(title=title)
    table.add_column("#", style="dim", width=3)
    table.add_column("Проверка", style="cyan")
    table.add_column("Статус")
    for row in rows:
        table.add_row(*row)
    return table


def render_report(report: AuditReport) -> Group:
    panels = []
    for result in report.results:
        title = f"{STATUS_GLYPHS[result.status]} {SECTION_TITLES.get(result.check_id, result.check_id.value)}"
        body = "\n".join(result.details) or (result.error or "")
        panels.append(Panel(body, title=title, border_style=BORDER_STYLES[result.status]))
    return Group(*panels)


@app.command()
def run(
    domain: str = typer.Argument(..., help="Домен или URL"),
    checks: Optional[str] = typer.Option(None, help="Проверки через запятую (topology всегда включена)"),
    concurrent: bool = typer.Option(False, help="Запускать проверки параллельно"),
    output_format: Optional[str] = typer.Option(None, help="Сохранить отчёт: markdown или json"),
):
    """🔎 Запустить аудит сайта."""

    try:
        enabled = parse_check_ids(c for c in checks.split(",") if c.strip()) if checks else None
    except ValueError as e:
        console.print(f"[red]❌ {e}[/]")
        raise typer.Exit(2)

    config = AuditConfig()
    config.concurrent = concurrent

    # Локальная копия чеклиста только для отображения
    view = Checklist(build_descriptors(enabled))
    rows = [[str(i + 1), item.label, STATUS_GLYPHS[item.status]] for i, item in enumerate(view)]

    with Live(render_checklist(view.title, rows), console=console, refresh_per_second=8) as live:
        def on_progress(event: ProgressEvent):
            style = STATUS_STYLES[event.status]
            rows[event.index][2] = f"[{style}]{STATUS_GLYPHS[event.status]} {event.status.value}[/]"
            live.update(render_checklist(event.title, rows))

        try:
            report = asyncio.run(AuditOrchestrator(config).run_audit(domain, enabled, listener=on_progress))
        except TargetResolutionError as e:
            console.print(f"[red]❌ {e}[/]")
            raise typer.Exit(2)

    console.print(render_report(report))
    console.print(
        f"[dim]Завершено: {report.completed_at.strftime('%Y-%m-%d %H:%M:%S')} "
        f"({report.duration_seconds:.2f}s)[/]"
    )

    if output_format:
        path = ReportGenerator(config.report_output_dir).generate_report(report, format=output_format)
        console.print(f"📄 Отчёт: {path}")

    if report.overall_status is CheckStatus.ERROR:
        raise typer.Exit(1)


@app.command()
def checks():
    """📋 Список доступных проверок."""

    table = Table(title="📋 Проверки")
    table.add_column("ID", style="cyan")
    table.add_column("Название", style="green")
    table.add_column("Обязательная", style="dim")

    for descriptor in build_descriptors([]):
        table.add_row(descriptor.check_id.value, descriptor.label, "да" if descriptor.enabled else "")

    console.print(table)


@app.command()
def health():
    """🏥 Проверить статус backend."""

    try:
        response = httpx.get(f"{BACKEND_URL}/health", timeout=5)
        data = response.json()
    except (httpx.HTTPError, ValueError) as e:
        console.print(f"🔴 Backend недоступен: {e}")
        raise typer.Exit(1)

    status = "🟢" if data.get("status") == "ok" else "🔴"
    console.print(f"{status} Backend: {data.get('status')}")
    console.print(f"   Version: {data.get('version', 'N/A')}")
    console.print(f"   Checks: {', '.join(data.get('checks', [])) or 'N/A'}")


if __name__ == "__main__":
    app()

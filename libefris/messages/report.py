"""Console tables for validation results, registered interfaces and batch outcomes."""

from __future__ import annotations

from collections.abc import Iterable

from rich.console import Console
from rich.table import Table

from .. import return_codes
from ..schemas.rules import SchemaDescriptor
from ..validation.result import Violation
from .batch import BatchItemResult

DEFAULT_CONSOLE = Console()


def render_violations(violations: Iterable[Violation], *, title: str = "Violations", console: Console | None = None) -> None:
    target_console = console or DEFAULT_CONSOLE

    table = Table(show_header=True, header_style="bold white on navy_blue", title=title)
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Rule", style="yellow")
    table.add_column("Message", style="white")
    table.add_column("Code", justify="right", style="magenta")

    for violation in violations:
        table.add_row(violation.field_path, violation.rule, violation.message, violation.code)

    target_console.print(table)


def render_interfaces(descriptors: Iterable[SchemaDescriptor], *, console: Console | None = None) -> None:
    """Render one row per registered (interfaceCode, direction) pair."""

    target_console = console or DEFAULT_CONSOLE

    table = Table(show_header=True, header_style="bold white on navy_blue", title="Registered Interfaces")
    table.add_column("Interface", style="cyan", no_wrap=True)
    table.add_column("Direction", style="green")
    table.add_column("Title", style="white")
    table.add_column("Body", style="white")
    table.add_column("Array", justify="center")
    table.add_column("Encrypted", justify="center")

    for descriptor in descriptors:
        table.add_row(
            descriptor.interface_code,
            descriptor.direction.value,
            descriptor.title,
            descriptor.body.name if descriptor.body is not None else "N/A",
            "yes" if descriptor.many else "",
            "yes" if descriptor.encrypted else "",
        )

    target_console.print(table)


def render_batch(results: Iterable[BatchItemResult], *, title: str, console: Console | None = None) -> None:
    target_console = console or DEFAULT_CONSOLE

    table = Table(show_header=True, header_style="bold white on navy_blue", title=title)
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Return Code", justify="right", style="magenta")
    table.add_column("Message", style="white")

    for result in results:
        style = "green" if result.ok else "red"
        message = result.return_message or return_codes.describe(result.return_code)
        table.add_row(str(result.index), f"[{style}]{result.return_code}[/{style}]", message)

    target_console.print(table)

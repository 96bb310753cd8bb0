"""Rendering of who-can results."""

from typing import List, Sequence

from rich.console import Console
from rich.text import Text

from whocan.models.rbac import Grant, SubjectKind
from whocan.services.who_can import WhoCanResult

NAMESPACED_COLUMNS = ["ROLEBINDING", "NAMESPACE", "SUBJECT", "TYPE", "SA-NAMESPACE"]
CLUSTER_COLUMNS = ["CLUSTERROLEBINDING", "SUBJECT", "TYPE", "SA-NAMESPACE"]

COLUMN_PADDING = 2


def _sa_namespace(grant: Grant) -> str:
    if grant.subject.kind == SubjectKind.SERVICE_ACCOUNT:
        return grant.subject.namespace
    return ""


def align_rows(columns: Sequence[str], rows: Sequence[Sequence[str]]) -> List[str]:
    """Left-align cells into columns sized to their widest cell.

    Lines are never truncated, whatever the width of the terminal.
    """
    widths = [len(column) for column in columns]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    separator = " " * COLUMN_PADDING
    return [
        separator.join(cell.ljust(width) for cell, width in zip(row, widths)).rstrip()
        for row in [list(columns), *rows]
    ]


def namespaced_rows(grants: Sequence[Grant]) -> List[List[str]]:
    return [
        [
            grant.binding_name,
            grant.binding_namespace,
            grant.subject.name,
            grant.subject.kind.value,
            _sa_namespace(grant),
        ]
        for grant in grants
    ]


def cluster_rows(grants: Sequence[Grant]) -> List[List[str]]:
    return [
        [
            grant.binding_name,
            grant.subject.name,
            grant.subject.kind.value,
            _sa_namespace(grant),
        ]
        for grant in grants
    ]


def _print_lines(console: Console, lines: Sequence[str]) -> None:
    # Cells hold user supplied names, so they are never parsed as markup
    header, *body = lines
    console.print(Text(header, style="bold"), soft_wrap=True)
    for line in body:
        console.print(Text(line), soft_wrap=True)


def _print_message(console: Console, message: str) -> None:
    console.print(message, highlight=False, markup=False, soft_wrap=True)


def print_warnings(result: WhoCanResult, err_console: Console) -> None:
    for warning in result.warnings:
        _print_message(err_console, f"Warning: {warning}")


def print_table(result: WhoCanResult, console: Console) -> None:
    """Print the RoleBinding and ClusterRoleBinding tables.

    The RoleBinding table is left out for non-resource URLs, which can only
    be granted cluster-wide.
    """
    action = result.action
    what = f"{action.verb} {action.target}"

    if not action.is_non_resource:
        if result.namespaced:
            _print_lines(
                console, align_rows(NAMESPACED_COLUMNS, namespaced_rows(result.namespaced))
            )
        else:
            _print_message(
                console,
                f"No subjects found with permissions to {what} assigned through RoleBindings",
            )
        console.print()

    if result.cluster_wide:
        _print_lines(console, align_rows(CLUSTER_COLUMNS, cluster_rows(result.cluster_wide)))
    else:
        _print_message(
            console,
            f"No subjects found with permissions to {what} assigned through ClusterRoleBindings",
        )


def print_json(result: WhoCanResult, console: Console) -> None:
    console.print_json(result.to_response().model_dump_json(by_alias=True))

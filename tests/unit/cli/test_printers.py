"""Unit tests for result rendering."""

from io import StringIO

import pytest
from rich.console import Console

from whocan.cli.printers import align_rows, print_table, print_warnings
from whocan.models.rbac import Action, Grant, Subject, SubjectKind
from whocan.services.who_can import WhoCanResult

LONG_BINDING = "system:controller:horizontal-pod-autoscaler-binding"
LONG_SUBJECT = "system:serviceaccount:kube-system:horizontal-pod-autoscaler"


def _render(result, width=80):
    """Render to a non-terminal console of the given width."""
    buffer = StringIO()
    print_table(result, Console(file=buffer, width=width))
    return buffer.getvalue()


def _result(namespaced=(), cluster_wide=(), action=None):
    return WhoCanResult(
        action=action or Action(verb="get", resource="pods"),
        namespaced=tuple(namespaced),
        cluster_wide=tuple(cluster_wide),
    )


class TestAlignRows:
    def test_columns_sized_to_widest_cell(self):
        """Test cells are padded to the widest value of their column."""
        lines = align_rows(["A", "BB"], [["xxx", "y"], ["z", "w"]])

        assert lines == ["A    BB", "xxx  y", "z    w"]

    def test_trailing_blank_cells_trimmed(self):
        """Test empty trailing cells leave no trailing whitespace."""
        lines = align_rows(["A", "B"], [["x", ""]])

        assert lines[1] == "x"


class TestPrintTable:
    def test_long_names_not_truncated(self):
        """Test every column and full names survive an 80 column console."""
        grant = Grant(
            LONG_BINDING,
            "kube-system",
            Subject(SubjectKind.SERVICE_ACCOUNT, LONG_SUBJECT, "kube-system"),
        )

        output = _render(_result(namespaced=[grant]))

        header, row = output.splitlines()[:2]
        assert header.split() == [
            "ROLEBINDING",
            "NAMESPACE",
            "SUBJECT",
            "TYPE",
            "SA-NAMESPACE",
        ]
        assert row.split() == [
            LONG_BINDING,
            "kube-system",
            LONG_SUBJECT,
            "ServiceAccount",
            "kube-system",
        ]
        assert "..." not in output
        assert "…" not in output

    def test_long_cluster_rows_not_truncated(self):
        """Test the cluster table keeps full names on a narrow console."""
        grant = Grant(LONG_BINDING, "", Subject(SubjectKind.USER, LONG_SUBJECT))

        output = _render(_result(cluster_wide=[grant]), width=40)

        assert f"{LONG_BINDING}  {LONG_SUBJECT}  User" in output

    @pytest.mark.parametrize("name", ["oidc:[/admins]", "[bold]x", "[red]ops[/red]"])
    def test_bracketed_names_printed_verbatim(self, name):
        """Test subject names are never interpreted as markup."""
        grant = Grant("admins", "default", Subject(SubjectKind.GROUP, name))

        output = _render(_result(namespaced=[grant]))

        assert name in output.splitlines()[1]

    def test_empty_messages_not_wrapped(self):
        """Test the empty result messages stay on one line."""
        output = _render(_result(), width=40)

        lines = output.splitlines()
        assert (
            "No subjects found with permissions to get pods assigned through RoleBindings"
            in lines
        )
        assert (
            "No subjects found with permissions to get pods assigned through "
            "ClusterRoleBindings" in lines
        )

    def test_non_resource_url_has_no_role_binding_section(self):
        """Test URLs only report ClusterRoleBindings."""
        output = _render(_result(action=Action(verb="get", non_resource_url="/logs")))

        assert output.strip() == (
            "No subjects found with permissions to get /logs assigned through "
            "ClusterRoleBindings"
        )


class TestPrintWarnings:
    def test_markup_in_warnings(self):
        """Test warnings are printed as plain text."""
        buffer = StringIO()
        result = WhoCanResult(
            action=Action(verb="get", resource="pods"), warnings=("cannot [/list] roles",)
        )

        print_warnings(result, Console(file=buffer, width=20))

        assert buffer.getvalue() == "Warning: cannot [/list] roles\n"

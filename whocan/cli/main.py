"""CLI entry point for kubectl-who-can."""

from typing import Annotated, Optional

import redis
import typer
from rich.console import Console

from whocan.cli.args import parse_action
from whocan.cli.printers import print_json, print_table, print_warnings
from whocan.core.config import LogLevel, OutputFormat, Settings, get_settings
from whocan.core.exceptions import InvalidAction, WhoCanError
from whocan.core.logging import get_logger, log_event, setup_logging
from whocan.db.kubernetes import get_api_client
from whocan.db.redis import close_redis_connection, get_redis_client
from whocan.models.rbac import WILDCARD, Action
from whocan.repositories.discovery import APIDiscovery
from whocan.repositories.rbac_source import KubernetesRBACSource, RBACSource
from whocan.repositories.snapshot_cache import CachedRBACSource, SnapshotCache
from whocan.services.access_check import AccessChecker
from whocan.services.resource_resolver import ResourceResolver
from whocan.services.who_can import WhoCan

logger = get_logger(__name__)

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name="kubectl-who-can",
    help="Show which subjects have RBAC permissions to VERB [TYPE | TYPE/NAME | NONRESOURCEURL].",
    add_completion=False,
    no_args_is_help=True,
)

EXAMPLES = """
Examples:

  kubectl who-can create pods

  kubectl who-can get pods --all-namespaces

  kubectl who-can get pod/mypod -n foo

  kubectl who-can get /logs

  kubectl who-can update deployment --subresource scale
"""


def _with_cache(source: RBACSource, settings: Settings) -> RBACSource:
    if not settings.cache_enabled:
        return source
    try:
        redis_client = get_redis_client()
    except (redis.RedisError, ValueError) as e:
        logger.warning(f"Snapshot cache disabled, Redis is unavailable: {e}")
        return source
    return CachedRBACSource(source, SnapshotCache(redis_client, settings.snapshot_cache_ttl))


def build_who_can(settings: Settings, action: Action) -> WhoCan:
    """Wire the Kubernetes-backed collaborators for one query."""
    api_client = get_api_client(settings)

    source: RBACSource = KubernetesRBACSource(
        api_client,
        workers=settings.fetch_workers,
        request_timeout=settings.request_timeout,
    )
    source = _with_cache(source, settings)

    resolver = None
    if not action.is_non_resource and action.resource != WILDCARD:
        discovery = APIDiscovery(
            api_client,
            workers=settings.fetch_workers,
            request_timeout=settings.request_timeout,
        )
        resolver = ResourceResolver(discovery.list_resources())

    access_checker = AccessChecker(api_client, request_timeout=settings.request_timeout)
    return WhoCan(source, resolver=resolver, access_checker=access_checker)


@app.command(epilog=EXAMPLES)
def who_can(
    verb: Annotated[str, typer.Argument(help="Verb, e.g. get, list, create")],
    target: Annotated[
        str, typer.Argument(help="TYPE, TYPE/NAME or a NONRESOURCEURL such as /logs")
    ],
    namespace: Annotated[
        Optional[str],
        typer.Option("--namespace", "-n", help="Restrict the query to this namespace"),
    ] = None,
    all_namespaces: Annotated[
        bool,
        typer.Option(
            "--all-namespaces",
            "-A",
            help="Query across all namespaces (default without --namespace)",
        ),
    ] = False,
    subresource: Annotated[
        Optional[str],
        typer.Option("--subresource", help="Subresource such as scale or status"),
    ] = None,
    output: Annotated[
        Optional[OutputFormat],
        typer.Option("--output", "-o", help="Output format"),
    ] = None,
    kubeconfig: Annotated[
        Optional[str], typer.Option("--kubeconfig", help="Path to the kubeconfig file")
    ] = None,
    context: Annotated[
        Optional[str], typer.Option("--context", help="Kubeconfig context to use")
    ] = None,
    cache_ttl: Annotated[
        Optional[int],
        typer.Option("--cache-ttl", min=0, help="Cache RBAC snapshots in Redis for N seconds"),
    ] = None,
    log_level: Annotated[
        Optional[LogLevel],
        typer.Option("--log-level", case_sensitive=False, help="Log level"),
    ] = None,
) -> None:
    """Show which subjects have RBAC permissions to VERB [TYPE | TYPE/NAME | NONRESOURCEURL]."""
    overrides = {
        "kubeconfig": kubeconfig,
        "context": context,
        "snapshot_cache_ttl": cache_ttl,
        "log_level": log_level,
        "output": output,
    }
    settings = get_settings().model_copy(
        update={k: v for k, v in overrides.items() if v is not None}
    )
    setup_logging(settings)

    try:
        action = parse_action(
            verb,
            target,
            namespace=namespace,
            subresource=subresource,
            all_namespaces=all_namespaces,
        )
    except InvalidAction as e:
        err_console.print(f"Error: {e}", highlight=False, markup=False, soft_wrap=True)
        raise typer.Exit(code=2)

    try:
        service = build_who_can(settings, action)
        result = service.check(action)
    except InvalidAction as e:
        err_console.print(f"Error: {e}", highlight=False, markup=False, soft_wrap=True)
        raise typer.Exit(code=2)
    except WhoCanError as e:
        err_console.print(f"Error: {e}", highlight=False, markup=False, soft_wrap=True)
        raise typer.Exit(code=1)
    finally:
        close_redis_connection()

    if isinstance(service.source, CachedRBACSource):
        log_event(logger, "debug", "snapshot_cache", **service.source.cache.get_stats())

    print_warnings(result, err_console)
    if settings.output == OutputFormat.JSON:
        print_json(result, console)
    else:
        print_table(result, console)


def main() -> None:
    app()


if __name__ == "__main__":
    main()

"""CLI commands for the BIA service."""

import asyncio
import json
import logging
import re
import sys

import click

from bia_service.config import settings


class SecretRedactingFilter(logging.Filter):
    """Redact integration tokens and credentials from log records."""

    SECRET_PATTERNS = [
        (re.compile(r"((?:api[_-]?)?token[\s:=]+)[\w.-]{8,}", re.IGNORECASE), r"\1[REDACTED]"),
        (re.compile(r"(password[\s:=]+)\S+", re.IGNORECASE), r"\1[REDACTED]"),
        (re.compile(r"(bearer\s+)[\w.-]+", re.IGNORECASE), r"\1[REDACTED]"),
        (re.compile(r"(://[^:/\s]+:)[^@\s]+(@)"), r"\1[REDACTED]\2"),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = message
        for pattern, replacement in self.SECRET_PATTERNS:
            redacted = pattern.sub(replacement, redacted)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def configure_logging(level: int = logging.INFO) -> None:
    """Configure root logging with secret redaction."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    root = logging.getLogger()
    if not any(isinstance(f, SecretRedactingFilter) for f in root.filters):
        root.addFilter(SecretRedactingFilter())


logger = logging.getLogger(__name__)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
def cli(verbose: bool) -> None:
    """Self-updating BIA CLI."""
    configure_logging(logging.DEBUG if verbose else logging.INFO)


@cli.command(name="init-db")
def init_database() -> None:
    """Create the database tables."""
    asyncio.run(_init_database())


async def _init_database() -> None:
    from bia_service.db import init_db

    await init_db()
    click.echo(f"Database initialized: {settings.DATABASE_URL}")


@cli.command()
@click.argument("function_name")
@click.option(
    "--type",
    "-t",
    "function_type",
    required=True,
    help="Function type (product, platform, support, infrastructure, compliance)",
)
@click.option("--dri", help="Directly responsible individual")
@click.option("--team", help="DRI team (personnel lookup key)")
@click.option("--region", "-r", "regions", multiple=True, help="Regional overlay (repeatable)")
@click.option("--json", "as_json", is_flag=True, help="Print the full document as JSON")
def generate(
    function_name: str,
    function_type: str,
    dri: str | None,
    team: str | None,
    regions: tuple[str, ...],
    as_json: bool,
) -> None:
    """Generate and store a BIA document."""
    asyncio.run(_generate(function_name, function_type, dri, team, list(regions), as_json))


async def _generate(
    function_name: str,
    function_type: str,
    dri: str | None,
    team: str | None,
    regions: list[str],
    as_json: bool,
) -> None:
    from bia_service.db import async_session_maker, init_db
    from bia_service.documents import AuditSink, BIAAssembler, BIARepository, BIARequest
    from bia_service.exceptions import PersistenceError, ValidationError
    from bia_service.fusion import build_risk_platform_client
    from bia_service.sources import build_collector

    try:
        request = BIARequest(
            function_name=function_name,
            function_type=function_type,
            dri_name=dri,
            dri_team=team,
            regions=regions,
        )
    except ValidationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)

    await init_db()

    async with async_session_maker() as session:
        assembler = BIAAssembler(
            build_collector(),
            BIARepository(session),
            audit=AuditSink(async_session_maker),
            risk_platform=build_risk_platform_client(),
        )
        try:
            result = await assembler.generate(request, created_by="cli")
        except PersistenceError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)

    document = result.document
    if as_json:
        click.echo(json.dumps(document, indent=2, default=str))
        return

    assessment = document["confidence_assessment"]
    click.echo(f"\nGenerated BIA {document['id']}")
    click.echo(f"  Function: {document['function_name']} ({document['function_type']})")
    click.echo(
        f"  Confidence: {assessment['overall_confidence']:.2f} ({assessment['confidence_level']})"
    )
    click.echo(f"  Data completeness: {assessment['data_completeness']:.0f}%")
    for name, status in result.data_source_status.items():
        click.echo(f"    {name}: {status}")
    for recommendation in assessment["recommendations"]:
        click.echo(f"  - {recommendation}")
    for warning in result.warnings:
        click.echo(f"  Warning: {warning}")


@cli.command()
@click.argument("bia_id")
def show(bia_id: str) -> None:
    """Print a stored BIA document as JSON."""
    asyncio.run(_show(bia_id))


async def _show(bia_id: str) -> None:
    from bia_service.db import async_session_maker
    from bia_service.documents import BIARepository

    async with async_session_maker() as session:
        document = await BIARepository(session).get_by_id(bia_id)
        if document is None:
            click.echo(f"BIA {bia_id} not found", err=True)
            sys.exit(1)
        click.echo(json.dumps(document.to_dict(), indent=2, default=str))


@cli.command(name="list")
@click.option(
    "--status",
    "-s",
    type=click.Choice(["draft", "pending_approval", "approved", "rejected", "archived"]),
    help="Filter by status",
)
@click.option(
    "--type",
    "-t",
    "function_type",
    type=click.Choice(["product", "platform", "support", "infrastructure", "compliance"]),
    help="Filter by function type",
)
@click.option("--limit", "-n", type=int, default=20, help="Maximum documents to show")
def list_documents(status: str | None, function_type: str | None, limit: int) -> None:
    """List stored BIA documents."""
    asyncio.run(_list_documents(status, function_type, limit))


async def _list_documents(status: str | None, function_type: str | None, limit: int) -> None:
    from bia_service.db import async_session_maker
    from bia_service.documents import BIARepository

    async with async_session_maker() as session:
        documents = await BIARepository(session).list_documents(
            status=status, function_type=function_type, limit=limit
        )

    if not documents:
        click.echo("No BIA documents found.")
        return

    for doc in documents:
        confidence = (doc.confidence_assessment or {}).get("overall_confidence", "-")
        click.echo(
            f"{doc.id}  {doc.function_name:<30} {doc.function_type:<15} "
            f"{doc.status:<17} v{doc.version}  confidence={confidence}"
        )


@cli.command()
def sources() -> None:
    """Check data source health."""
    asyncio.run(_sources())


async def _sources() -> None:
    from bia_service.fusion import build_risk_platform_client
    from bia_service.sources import build_collector, check_data_source_health

    collector = build_collector()
    report = await check_data_source_health(
        collector.adapters,
        predictive=collector.predictive,
        extra_checks={"fusion": build_risk_platform_client().check_health()},
    )

    click.echo(f"Overall: {report.pop('overall')}")
    for name, status in report.items():
        detail = status.get("error", "")
        click.echo(f"  {name:<12} {status.get('status', 'unknown'):<12} {detail}")


@cli.command()
@click.option("--host", default="127.0.0.1", help="Bind address")
@click.option("--port", "-p", type=int, default=8000, help="Bind port")
@click.option("--reload", is_flag=True, help="Reload on code changes")
def serve(host: str, port: int, reload: bool) -> None:
    """Run the API server."""
    import uvicorn

    uvicorn.run("bia_service.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    cli()

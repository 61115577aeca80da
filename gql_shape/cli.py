"""Command-line interface for gql-shape."""

import asyncio
import importlib
import json
import os
import sys
from pathlib import Path

import click

from .core.client import GraphQLClient
from .core.errors import BuildError, GraphQLError
from .core.options import OperationName
from .core.query_builder import OperationType, QueryBuilder


def load_shape(target: str):
    """Import a shape class given as ``package.module:ClassName``.

    The working directory is searched first, so local modules that are not
    installed can be named.
    """
    module_name, _, attr = target.partition(":")
    if not module_name or not attr:
        raise click.BadParameter(f"Expected MODULE:CLASS, got {target!r}")
    cwd = os.getcwd()
    if cwd not in sys.path:
        sys.path.insert(0, cwd)
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise click.BadParameter(f"Cannot import {module_name}: {e}") from e
    try:
        return getattr(module, attr)
    except AttributeError as e:
        raise click.BadParameter(f"{module_name} has no attribute {attr!r}") from e


def parse_variables(text: str | None) -> dict:
    """Parse the ``--variables`` JSON object."""
    if not text:
        return {}
    try:
        variables = json.loads(text)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"Variables are not valid JSON: {e}") from e
    if not isinstance(variables, dict):
        raise click.BadParameter("Variables must be a JSON object")
    return variables


@click.group()
@click.version_option(package_name="gql-shape")
def main():
    """Typed-shape GraphQL client.

    Build documents from dataclass shapes and run GraphQL operations.
    """
    pass


@main.command("exec")
@click.option(
    "--url",
    "-u",
    required=True,
    envvar="GQL_SHAPE_URL",
    help="GraphQL endpoint URL (default: $GQL_SHAPE_URL).",
)
@click.option("--query", "-q", help="GraphQL document text.")
@click.option(
    "--file",
    "-f",
    "query_file",
    type=click.Path(exists=True, dir_okay=False),
    help="File holding the GraphQL document.",
)
@click.option("--variables", "-V", help="Variables as a JSON object.")
@click.option("--operation-name", "-n", help="Operation name to send.")
@click.option("--debug", is_flag=True, help="Include the raw exchange in errors.")
def exec_command(
    url: str,
    query: str | None,
    query_file: str | None,
    variables: str | None,
    operation_name: str | None,
    debug: bool,
):
    """Run a GraphQL document and print its data and extensions.

    Examples:

        gql-shape exec -u https://api.example.com/graphql -q '{viewer{login}}'

        gql-shape exec -f ./query.graphql -V '{"login": "gopher"}'
    """
    if bool(query) == bool(query_file):
        raise click.UsageError("Pass exactly one of --query or --file.")
    document = query or Path(query_file).read_text()
    options = [OperationName(operation_name)] if operation_name else []

    async def run():
        async with GraphQLClient(url, debug=debug) as client:
            return await client.exec_raw_with_extensions(
                document, parse_variables(variables), options
            )

    try:
        data, extensions = asyncio.run(run())
    except GraphQLError as e:
        for record in e.errors:
            click.echo(str(record), err=True)
        raise SystemExit(1) from e

    result = {
        "data": data.loads() if data is not None else None,
        "extensions": extensions.loads() if extensions is not None else None,
    }
    click.echo(json.dumps(result, indent=2))


@main.command()
@click.argument("shape")
@click.option("--variables", "-V", help="Variables as a JSON object.")
@click.option("--mutation", is_flag=True, help="Build a mutation instead of a query.")
@click.option("--operation-name", "-n", help="Operation name.")
def document(shape: str, variables: str | None, mutation: bool, operation_name: str | None):
    """Print the document built from a shape class.

    Examples:

        gql-shape document myapp.queries:ViewerQuery

        gql-shape document myapp.queries:UserQuery -V '{"login": "gopher"}'
    """
    shape_cls = load_shape(shape)
    op_type = OperationType.MUTATION if mutation else OperationType.QUERY
    try:
        text, table = QueryBuilder().build(
            shape_cls, parse_variables(variables), op_type, operation_name
        )
    except BuildError as e:
        raise click.ClickException(str(e)) from e

    click.echo(text)
    for name, type_ in table.items():
        click.echo(f"  ${name}: {type_}")


if __name__ == "__main__":
    main()

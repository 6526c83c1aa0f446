"""hmacguard CLI - compute, check and send HMAC-signed HTTP messages."""

import asyncio
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from hmacguard.client import SignedClient, SignedClientError
from hmacguard.core import hexcodec
from hmacguard.core.authenticator import RequestAuthenticator
from hmacguard.core.digest import get_backend
from hmacguard.core.keys import SecretKey
from hmacguard.core.signer import ResponseSigner

console = Console()

BACKENDS = click.Choice(["hashlib", "cryptography"])


def _read_body(body: str | None, body_file: str | None) -> bytes:
    if body is not None and body_file is not None:
        raise click.UsageError("Use either --body or --body-file, not both")
    if body_file is not None:
        return Path(body_file).expanduser().read_bytes()
    if body is not None:
        return body.encode("utf-8")
    return b""


def _body_options(f):
    f = click.option(
        "--body-file",
        type=click.Path(exists=True, dir_okay=False),
        help="Read body from file",
    )(f)
    f = click.option("--body", default=None, help="Body text (UTF-8)")(f)
    return f


@click.group()
@click.option(
    "--secret",
    envvar="HMACGUARD_HMAC_SECRET",
    help="Shared secret (defaults to HMACGUARD_HMAC_SECRET)",
)
@click.option(
    "--header",
    "header_name",
    default="x-hmac",
    show_default=True,
    help="Signature header name",
)
@click.option(
    "--backend",
    type=BACKENDS,
    default="hashlib",
    show_default=True,
    help="HMAC implementation",
)
@click.pass_context
def cli(ctx: click.Context, secret: str | None, header_name: str, backend: str) -> None:
    """hmacguard CLI - HMAC-SHA256 request and response signatures."""
    ctx.ensure_object(dict)
    ctx.obj["secret"] = secret
    ctx.obj["header"] = header_name
    ctx.obj["backend"] = get_backend(backend)


def _secret(ctx: click.Context) -> SecretKey:
    secret = ctx.obj.get("secret")
    if secret is None:
        console.print("[red]No secret given (use --secret or HMACGUARD_HMAC_SECRET)[/red]")
        sys.exit(2)
    return SecretKey.from_text(secret)


@cli.command("sign-request")
@click.option("--method", default="GET", show_default=True, help="HTTP method")
@click.option("--path", default="/", show_default=True, help="Request path as the server sees it")
@_body_options
@click.pass_context
def sign_request(
    ctx: click.Context,
    method: str,
    path: str,
    body: str | None,
    body_file: str | None,
) -> None:
    """Print the header value a client must send."""
    authenticator = RequestAuthenticator(_secret(ctx), ctx.obj["header"], ctx.obj["backend"])
    click.echo(authenticator.expected_header(method.upper(), path, _read_body(body, body_file)))


@cli.command("sign-response")
@_body_options
@click.pass_context
def sign_response(ctx: click.Context, body: str | None, body_file: str | None) -> None:
    """Print the header value a server attaches to a response body."""
    signer = ResponseSigner(_secret(ctx), ctx.obj["header"], ctx.obj["backend"])
    click.echo(signer.sign(_read_body(body, body_file)))


@cli.command("verify")
@click.option("--method", default="GET", show_default=True, help="HTTP method")
@click.option("--path", default="/", show_default=True, help="Request path as the server sees it")
@click.option("--signature", default=None, help="Header value to check (omit for none)")
@_body_options
@click.pass_context
def verify(
    ctx: click.Context,
    method: str,
    path: str,
    signature: str | None,
    body: str | None,
    body_file: str | None,
) -> None:
    """Verify a request signature; exits 1 when rejected."""
    header_name = ctx.obj["header"]
    authenticator = RequestAuthenticator(_secret(ctx), header_name, ctx.obj["backend"])
    headers = {header_name: signature} if signature is not None else {}
    outcome = authenticator.authenticate(headers, method.upper(), path, _read_body(body, body_file))

    if outcome.allowed:
        console.print("[green]Allowed[/green]")
        return
    console.print(f"[red]{outcome}[/red] {outcome.message}")
    sys.exit(1)


@cli.command("call")
@click.argument("url")
@click.option("--method", default="GET", show_default=True, help="HTTP method")
@click.option("--include-query", is_flag=True, help="Sign the query string with the path")
@_body_options
@click.pass_context
def call(
    ctx: click.Context,
    url: str,
    method: str,
    include_query: bool,
    body: str | None,
    body_file: str | None,
) -> None:
    """Send a signed request and check the response signature."""
    key = _secret(ctx)
    payload = _read_body(body, body_file)

    async def _send() -> bool:
        async with SignedClient(
            key,
            header_name=ctx.obj["header"],
            backend=ctx.obj["backend"],
            include_query=include_query,
        ) as client:
            response = await client.request(method, url, body=payload)

        table = Table(title=f"{method.upper()} {url}")
        table.add_column("Field", style="cyan")
        table.add_column("Value")
        table.add_row("Status", str(response.status))
        table.add_row("Signature", response.signature or "-")
        table.add_row(
            "Signature valid",
            "[green]yes[/green]" if response.signature_valid else "[red]no[/red]",
        )
        console.print(table)
        console.print(response.text, markup=False)
        return response.signature_valid

    try:
        valid = asyncio.run(_send())
    except SignedClientError as exc:
        console.print(f"[red]Error: {exc}[/red]")
        sys.exit(1)
    if not valid:
        sys.exit(1)


@cli.command("decode")
@click.argument("value")
def decode(value: str) -> None:
    """Check that VALUE is a well-formed signature header."""
    try:
        raw = hexcodec.decode(value, lowercase_only=True)
    except hexcodec.MalformedHex as exc:
        console.print(f"[red]{exc}[/red]")
        sys.exit(1)
    console.print(f"{len(raw)} bytes")


@cli.command("serve")
def serve() -> None:
    """Run the demo server using HMACGUARD_* settings."""
    from hmacguard.demo.main import main as demo_main

    demo_main()


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()

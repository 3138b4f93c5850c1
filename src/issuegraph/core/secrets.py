"""
Credential resolution for tracker instances.

A secret is either stored inline in the config file or produced by a shell
command (``pass show jira/token``, ``security find-generic-password ...``).
Commands run through the platform shell as a subprocess of the event loop,
so several instances can resolve their secrets concurrently; their trimmed
stdout is the secret.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

from issuegraph.core.constants import SECRET_COMMAND_TIMEOUT_SECONDS
from issuegraph.core.exceptions import CredentialError

if TYPE_CHECKING:
    from issuegraph.core.config import AccessConfig, SecretConfig

logger = structlog.get_logger()


async def run_secret_command(
    command: str, *, timeout: float = SECRET_COMMAND_TIMEOUT_SECONDS
) -> str:
    """Execute *command* and return its trimmed stdout."""
    try:
        proc = await asyncio.create_subprocess_shell(
            command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        raise CredentialError(f"Failed to execute {command!r}: {exc}") from exc

    try:
        stdout, _ = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except TimeoutError as exc:
        proc.kill()
        await proc.wait()
        raise CredentialError(
            f"Secret command {command!r} did not finish within {timeout:g}s"
        ) from exc

    if proc.returncode != 0:
        raise CredentialError(
            f"Failed to execute secret command {command!r} (exit status {proc.returncode})"
        )
    try:
        output = stdout.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise CredentialError(f"Invalid UTF-8 sequence in command {command!r} output") from exc

    logger.debug("secret_command_resolved", command=command)
    return output.strip()


async def resolve_secret(secret: SecretConfig) -> str:
    if secret.value is not None:
        return secret.value.get_secret_value().strip()
    if secret.command is None:
        raise CredentialError("Secret has neither a value nor a command")
    return await run_secret_command(secret.command)


async def auth_headers(access: AccessConfig) -> dict[str, str]:
    """Return the HTTP headers that authenticate a request for *access*."""
    secret = await resolve_secret(access.secret)
    if access.kind == "token":
        return {"Authorization": f"Bearer {secret}"}
    return {"Cookie": f"JSESSIONID={secret}"}

"""Credential resolution: inline values, secret commands, auth headers."""

from __future__ import annotations

import asyncio
import sys
import time

import pytest

from issuegraph.core.config import AccessConfig, SecretConfig
from issuegraph.core.exceptions import CredentialError
from issuegraph.core.secrets import auth_headers, resolve_secret, run_secret_command

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="uses POSIX shell commands")


class TestResolveSecret:
    @pytest.mark.asyncio
    async def test_inline_value_is_trimmed(self) -> None:
        assert await resolve_secret(SecretConfig(value="  tok-123\n")) == "tok-123"

    @posix_only
    @pytest.mark.asyncio
    async def test_command_stdout(self) -> None:
        secret = SecretConfig(command="echo '  from-command  '")
        assert await resolve_secret(secret) == "from-command"

    @posix_only
    @pytest.mark.asyncio
    async def test_command_failure(self) -> None:
        with pytest.raises(CredentialError, match="exit status 3"):
            await run_secret_command("exit 3")

    @posix_only
    @pytest.mark.asyncio
    async def test_command_invalid_utf8(self) -> None:
        with pytest.raises(CredentialError, match="UTF-8"):
            await run_secret_command("printf '\\377\\376'")

    @posix_only
    @pytest.mark.asyncio
    async def test_hung_command_times_out(self) -> None:
        with pytest.raises(CredentialError, match="did not finish"):
            await run_secret_command("sleep 10", timeout=0.2)

    @posix_only
    @pytest.mark.asyncio
    async def test_commands_run_concurrently(self) -> None:
        started = time.monotonic()
        secrets = await asyncio.gather(
            *[run_secret_command(f"sleep 1; echo tok-{i}") for i in range(3)]
        )
        assert secrets == ["tok-0", "tok-1", "tok-2"]
        assert time.monotonic() - started < 2.5


class TestAuthHeaders:
    @pytest.mark.asyncio
    async def test_token_is_bearer(self) -> None:
        access = AccessConfig(kind="token", secret=SecretConfig(value="tok-123"))
        assert await auth_headers(access) == {"Authorization": "Bearer tok-123"}

    @pytest.mark.asyncio
    async def test_jsessionid_is_cookie(self) -> None:
        access = AccessConfig(kind="jsessionid", secret=SecretConfig(value="ABCDEF"))
        assert await auth_headers(access) == {"Cookie": "JSESSIONID=ABCDEF"}

    @pytest.mark.asyncio
    async def test_secret_without_source(self) -> None:
        secret = SecretConfig.model_construct(value=None, command=None)
        with pytest.raises(CredentialError, match="neither"):
            await resolve_secret(secret)

    def test_secret_value_not_in_repr(self) -> None:
        secret = SecretConfig(value="tok-super-secret")
        assert "tok-super-secret" not in repr(secret)

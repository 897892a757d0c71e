"""Tests for the command-line interface."""

import pytest
from click.testing import CliRunner

from ntsapi.cli import CliOptions, cli
from ntsapi.session import Session
from ntsapi.transport.mock import MockTransport, ScriptedMockTransport

NUMBER = "441234567890"


def options_for(transport):
    """CLI options whose sessions talk to ``transport``."""

    def factory(config):
        return Session(config.model_copy(update={"disconnect_grace": 0.01}), transport=transport)

    return CliOptions(session_factory=factory)


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def transport():
    return ScriptedMockTransport()


def invoke(runner, transport, args, **kwargs):
    return runner.invoke(cli, args, obj=options_for(transport), **kwargs)


class TestCommands:
    """One-shot commands."""

    def test_status(self, runner, transport):
        transport.expect(
            request=f"STAT {NUMBER}",
            response=f"0 {NUMBER} Y 2025-01-31 441234567891|S:bob@sip.example.com\n",
        )
        result = invoke(runner, transport, ["status", NUMBER])

        assert result.exit_code == 0, result.output
        assert "Yes" in result.output
        assert "441234567891" in result.output
        assert "S:bob@sip.example.com" in result.output
        assert transport.last_written == b"QUIT"

    def test_status_failure_exits_nonzero(self, runner, transport):
        transport.expect(request=f"STAT {NUMBER}", response="21 Number not allocated\n")
        result = invoke(runner, transport, ["status", NUMBER])

        assert result.exit_code == 1
        assert "Number not allocated" in result.output

    def test_allocate(self, runner, transport):
        transport.expect(request="ALLO 4412345678__", response=f"0 {NUMBER}\n")
        result = invoke(runner, transport, ["allocate", "4412345678__"])

        assert result.exit_code == 0, result.output
        assert f"{NUMBER} allocated" in result.output
        assert "Remember to activate" in result.output

    @pytest.mark.parametrize(
        "command,verb,word",
        [
            ("activate", "ACTI", "activated"),
            ("deactivate", "DEAC", "deactivated"),
            ("reactivate", "REAC", "reactivated"),
        ],
    )
    def test_simple_commands(self, runner, transport, command, verb, word):
        transport.expect(request=f"{verb} {NUMBER}", response="0 OK\n")
        result = invoke(runner, transport, [command, NUMBER])

        assert result.exit_code == 0, result.output
        assert f"{NUMBER} {word}" in result.output

    def test_destination(self, runner, transport):
        transport.expect(request=f"SET {NUMBER} 1 S:bob@sip.example.com", response="0 OK\n")
        result = invoke(runner, transport, ["destination", NUMBER, "1", "S:bob@sip.example.com"])

        assert result.exit_code == 0, result.output
        assert "OK" in result.output

    def test_destination_priority_must_be_positive(self, runner, transport):
        result = invoke(runner, transport, ["destination", NUMBER, "0", "441234567891"])
        assert result.exit_code == 2
        assert transport.written_data == []

    def test_incomplete_destination(self, runner, transport):
        result = invoke(runner, transport, ["destination", NUMBER, "1", "S:bob"])
        assert result.exit_code == 1
        assert "Destination is incomplete" in result.output

    def test_available(self, runner, transport):
        transport.expect(
            request="ALIST 4412345678__ 2",
            response=f"0 {NUMBER}\n0 441234567891\n21 end\n",
        )
        result = invoke(runner, transport, ["available", "4412345678__", "2"])

        assert result.exit_code == 0, result.output
        assert NUMBER in result.output
        assert "441234567891" in result.output

    def test_available_failure(self, runner, transport):
        transport.expect(request="ALIST 4412345678__ 2", response="21 Bad range\n")
        result = invoke(runner, transport, ["available", "4412345678__", "2"])

        assert result.exit_code == 1
        assert "Bad range" in result.output

    def test_invalid_number_never_connects(self, runner, transport):
        result = invoke(runner, transport, ["status", "0800-CALL-NOW"])

        assert result.exit_code == 2
        assert "Invalid number format" in result.output
        assert transport.written_data == []

    def test_connection(self, runner):
        transport = MockTransport(extra={"peername": ("192.0.2.1", 777)})
        result = invoke(runner, transport, ["connection"])

        assert result.exit_code == 0, result.output
        assert "192.0.2.1:777" in result.output

    def test_connect_failure(self, runner):
        from ntsapi.exceptions import TransportError

        transport = MockTransport(open_error=TransportError("refused"))
        result = invoke(runner, transport, ["status", NUMBER])

        assert result.exit_code == 1
        assert "refused" in result.output


class TestAuthentication:
    """Login before a command."""

    def test_login(self, runner, transport):
        transport.expect(request="AUTH bob secret", response="0 OK\n")
        transport.expect(request=f"ACTI {NUMBER}", response="0 OK\n")
        result = invoke(runner, transport, ["-u", "bob", "-p", "secret", "activate", NUMBER])

        assert result.exit_code == 0, result.output
        assert "Login successful" in result.output
        assert transport.script_complete

    def test_password_prompt(self, runner, transport):
        transport.expect(request="AUTH bob secret", response="0 OK\n")
        transport.expect(request=f"ACTI {NUMBER}", response="0 OK\n")
        result = invoke(runner, transport, ["--user", "bob", "activate", NUMBER], input="secret\n")

        assert result.exit_code == 0, result.output
        assert transport.script_complete

    def test_login_failure(self, runner, transport):
        transport.expect(request="AUTH bob wrong", response="1 Bad credentials\n")
        result = invoke(runner, transport, ["-u", "bob", "-p", "wrong", "activate", NUMBER])

        assert result.exit_code == 1
        assert "Login failed" in result.output
        assert b"ACTI" not in b"".join(transport.written_data)


class TestShell:
    """Interactive shell."""

    def test_commands_until_exit(self, runner, transport):
        transport.expect(request=f"STAT {NUMBER}", response=f"0 {NUMBER} N 2025-01-31\n")
        result = invoke(
            runner,
            transport,
            ["shell"],
            input=f"status {NUMBER}\nfrobnicate\nactivate\n\nhelp\nexit\n",
        )

        assert result.exit_code == 0, result.output
        assert "Connecting to Magrathea" in result.output
        assert "anonymous@api$" in result.output
        assert "No" in result.output
        assert "Unknown command: frobnicate" in result.output
        assert "Usage: activate <number>" in result.output
        assert "available <range> <size>" in result.output
        assert transport.last_written == b"QUIT"

    def test_end_of_input_leaves_shell(self, runner, transport):
        result = invoke(runner, transport, ["shell"], input="")
        assert result.exit_code == 0, result.output
        assert transport.last_written == b"QUIT"

    def test_auth_changes_prompt(self, runner, transport):
        transport.expect(request="AUTH bob secret", response="0 OK\n")
        result = invoke(runner, transport, ["shell"], input="auth bob secret\nexit\n")

        assert result.exit_code == 0, result.output
        assert "Login successful" in result.output
        assert "bob@api$" in result.output

    def test_invalid_argument_is_reported(self, runner, transport):
        result = invoke(runner, transport, ["shell"], input="status 0800-CALL-NOW\nexit\n")

        assert result.exit_code == 0, result.output
        assert "Invalid number format" in result.output
        assert transport.written_data == [b"", b"QUIT"]

    def test_connection_closed_during_command(self, runner, transport):
        transport.expect(request=f"STAT {NUMBER}", response="", close=True)
        result = invoke(runner, transport, ["shell"], input=f"status {NUMBER}\nstatus {NUMBER}\n")

        assert result.exit_code == 0, result.output
        assert "Connection to server lost" in result.output
        assert transport.written_data == [b"", f"STAT {NUMBER}".encode()]

    def test_connection_lost(self, runner, transport):
        transport.expect(request=f"STAT {NUMBER}", response=f"0 {NUMBER} Y 2025-01-31\n", close=True)
        result = invoke(runner, transport, ["shell"], input=f"status {NUMBER}\nstatus {NUMBER}\n")

        assert result.exit_code == 0, result.output
        assert "Connection to server lost" in result.output

"""
Tests for the wristvault command
================================

Commands are run through click's CliRunner. The assembler and the
serial transport are replaced with fakes.
"""

from unittest.mock import patch

import pytest
from click.testing import CliRunner

from wristvault import __version__
from wristvault.cli.errors import ExitCode
from wristvault.cli.wristvault import main
from wristvault.comms.serial import PortInfo
from wristvault.pipeline import install_recovery_codes


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def tools(fake_assembler, transport):
    """Route the CLI's default assembler and transport to the fakes."""
    with patch("wristvault.pipeline.default_assembler", return_value=fake_assembler), \
            patch("wristvault.cli.wristvault.default_transport", return_value=transport):
        yield fake_assembler, transport


class TestMain:

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_commands(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        for command in ("send", "generate", "build", "ports"):
            assert command in result.output


class TestSend:
    """Tests for `wristvault send`."""

    def test_success(self, runner, tools, include_dir):
        _, transport = tools
        result = runner.invoke(main, [
            "send", "github:abc123,google:def456", "/dev/ttyUSB0",
            "--include-dir", str(include_dir),
        ])

        assert result.exit_code == 0, result.output
        assert "Generating wristapp with recovery codes..." in result.output
        assert "First 64 chars of hex: A6C0B7" in result.output
        assert "Converted hex to 3 bytes of binary data" in result.output
        assert "Generated 4 packet groups for transmission" in result.output
        assert "Successfully sent to watch on /dev/ttyUSB0" in result.output
        assert transport.writes[0][0] == "/dev/ttyUSB0"

    def test_runs_install_pipeline(self, runner, tools, include_dir):
        """send hands the whole job to install_recovery_codes."""
        with patch("wristvault.cli.wristvault.install_recovery_codes",
                   wraps=install_recovery_codes) as install:
            result = runner.invoke(main, [
                "send", "github:abc123", "/dev/ttyUSB0", "--include-dir", str(include_dir),
            ])
        assert result.exit_code == 0, result.output
        install.assert_called_once()
        args, kwargs = install.call_args
        assert args == ("github:abc123", "/dev/ttyUSB0")
        assert kwargs["transport"] is tools[1]

    def test_show_listing(self, runner, fake_assembler, tools, include_dir):
        fake_assembler.listing = ("0110  jmp MAIN",)
        result = runner.invoke(main, [
            "send", "github:abc123", "/dev/ttyUSB0",
            "--include-dir", str(include_dir), "--show-listing",
        ])
        assert result.exit_code == 0, result.output
        assert "=== ASSEMBLY LISTING ===" in result.output
        assert "0110  jmp MAIN" in result.output

    def test_sync_length_option(self, runner, tools, include_dir):
        _, transport = tools
        result = runner.invoke(main, [
            "send", "github:abc123", "/dev/ttyUSB0",
            "--include-dir", str(include_dir), "--sync-length", "10",
        ])
        assert result.exit_code == 0, result.output
        _, groups = transport.writes[0]
        assert groups[0].size == 1 + 10 + 40

    def test_missing_include(self, runner, tools, tmp_path):
        result = runner.invoke(main, [
            "send", "github:abc123", "/dev/ttyUSB0", "--include-dir", str(tmp_path),
        ])
        assert result.exit_code == ExitCode.BUILD_ERROR
        assert "compile: error: include file not found" in result.output

    def test_strict_rejects_malformed(self, runner, tools, include_dir):
        result = runner.invoke(main, [
            "send", "github:abc123,oops", "/dev/ttyUSB0",
            "--include-dir", str(include_dir), "--strict",
        ])
        assert result.exit_code == ExitCode.BUILD_ERROR
        assert "parse: error:" in result.output

    def test_invalid_variant(self, runner):
        result = runner.invoke(main, ["send", "a:b", "/dev/null", "--variant", "fancy"])
        assert result.exit_code == ExitCode.INVALID_ARGS


class TestGenerate:
    """Tests for `wristvault generate`."""

    def test_stdout(self, runner):
        result = runner.invoke(main, ["generate", "github:abc123,google:def456"])
        assert result.exit_code == 0, result.output
        assert "LOOKUP_TABLE:" in result.output
        assert 'S8_SVC1:    timex   "GOOGLE  "' in result.output

    def test_output_file(self, runner, tmp_path):
        output = tmp_path / "wristapp.asm"
        result = runner.invoke(main, ["generate", "github:abc123", "-o", str(output)])
        assert result.exit_code == 0, result.output
        assert "START   EQU     *" in output.read_text()
        assert "1 entries" in result.output

    def test_basic_variant(self, runner):
        result = runner.invoke(main, ["generate", "a:b", "--variant", "basic"])
        assert result.exit_code == 0
        assert "SHORT_TABLE:" in result.output

    def test_empty_input(self, runner):
        result = runner.invoke(main, ["generate", ""])
        assert result.exit_code == ExitCode.BUILD_ERROR
        assert "no usable recovery codes" in result.output

    def test_internal_error(self, runner):
        with patch("wristvault.cli.wristvault.generate_wristapp", side_effect=RuntimeError("bug")):
            result = runner.invoke(main, ["generate", "a:b"])
        assert result.exit_code == ExitCode.INTERNAL_ERROR
        assert "Internal error: bug" in result.output


class TestBuild:
    """Tests for `wristvault build`."""

    def test_writes_hex_and_listing(self, runner, fake_assembler, tools, include_dir, tmp_path):
        fake_assembler.listing = ("0110  jmp MAIN",)
        hex_file = tmp_path / "out.hex"
        listing_file = tmp_path / "out.lst"
        result = runner.invoke(main, [
            "build", "github:abc123", "--include-dir", str(include_dir),
            "-o", str(hex_file), "-l", str(listing_file),
        ])
        assert result.exit_code == 0, result.output
        assert hex_file.read_text() == "A6C0B7\n"
        assert listing_file.read_text() == "0110  jmp MAIN\n"
        assert "Binary size: 3 bytes" in result.output

    def test_does_not_transmit(self, runner, tools, include_dir):
        _, transport = tools
        result = runner.invoke(main, ["build", "a:b", "--include-dir", str(include_dir)])
        assert result.exit_code == 0, result.output
        assert transport.writes == []


class TestPorts:
    """Tests for `wristvault ports`."""

    def test_no_ports(self, runner):
        with patch("wristvault.cli.wristvault.list_serial_ports", return_value=[]):
            result = runner.invoke(main, ["ports"])
        assert result.exit_code == 0
        assert "No serial ports found." in result.output

    def test_lists_ports(self, runner):
        ports = [PortInfo("/dev/ttyUSB0", "USB Serial", "FTDI", 0x0403, 0x6001)]
        with patch("wristvault.cli.wristvault.list_serial_ports", return_value=ports):
            result = runner.invoke(main, ["ports", "--detailed"])
        assert result.exit_code == 0
        assert "/dev/ttyUSB0" in result.output
        assert "0403:6001" in result.output

"""
Shared fixtures for the WristVault test suite.

Provides stand-ins for the external collaborators (assembler, serial
transport) and a temporary include directory, so the whole pipeline can
run without a 6805 assembler or a notebook adapter attached.
"""

import pytest

from wristvault.config import VaultConfig, set_default_config
from wristvault.toolchain.assembler import AssemblerOutput


class FakeAssembler:
    """Records what it was asked to assemble and returns canned output."""

    def __init__(self, hex_text="A6C0B7", diagnostics=(), listing=(), error=None):
        self.hex_text = hex_text
        self.diagnostics = tuple(diagnostics)
        self.listing = tuple(listing)
        self.error = error
        self.calls = []

    def assemble(self, program_name, lines):
        self.calls.append((program_name, list(lines)))
        if self.error is not None:
            raise self.error
        return AssemblerOutput(
            diagnostics=self.diagnostics,
            hex_text=self.hex_text,
            listing=self.listing,
        )


class RecordingTransport:
    """Transport that keeps every write instead of touching a port."""

    def __init__(self, error=None):
        self.error = error
        self.writes = []

    def write(self, destination, packet_groups):
        if self.error is not None:
            raise self.error
        self.writes.append((destination, tuple(packet_groups)))


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Keep WRISTVAULT_* variables and the cached default config out of tests."""
    for name in (
        "WRISTVAULT_INCLUDE_DIR",
        "WRISTVAULT_ASSEMBLER",
        "WRISTVAULT_ASSEMBLER_TIMEOUT",
        "WRISTVAULT_SYNC_LENGTH",
        "WRISTVAULT_BYTE_SLEEP",
        "WRISTVAULT_PACKET_SLEEP",
        "WRISTVAULT_STRICT",
        "WRISTVAULT_VARIANT",
    ):
        monkeypatch.delenv(name, raising=False)
    set_default_config(None)
    yield
    set_default_config(None)


@pytest.fixture
def include_dir(tmp_path):
    """An include directory holding an (empty) Inc150/WRISTAPP.I."""
    directory = tmp_path / "include"
    (directory / "Inc150").mkdir(parents=True)
    (directory / "Inc150" / "WRISTAPP.I").write_text("; device definitions\n")
    return directory


@pytest.fixture
def config(include_dir):
    """Configuration pointing at the temporary include directory."""
    return VaultConfig(include_dir=include_dir, byte_sleep=0.0, packet_sleep=0.0)


@pytest.fixture
def fake_assembler():
    return FakeAssembler()


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def make_assembler():
    """Factory for FakeAssembler instances with custom output."""
    return FakeAssembler


@pytest.fixture
def make_transport():
    """Factory for RecordingTransport instances."""
    return RecordingTransport

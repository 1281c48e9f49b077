"""
WristVault Toolchain Boundary
=============================

- **assembler**: hands program text to a 6805 assembler (CompiledArtifact)
- **hexcodec**: lenient hex text to bytes conversion
"""

from wristvault.toolchain.assembler import (
    Assembler,
    AssemblerOutput,
    CompiledArtifact,
    ExternalAssembler,
    compile_program,
    require_include_file,
)
from wristvault.toolchain.hexcodec import DecodedHex, decode_hex, hex_to_binary

__all__ = [
    "Assembler",
    "AssemblerOutput",
    "CompiledArtifact",
    "ExternalAssembler",
    "compile_program",
    "require_include_file",
    "DecodedHex",
    "decode_hex",
    "hex_to_binary",
]

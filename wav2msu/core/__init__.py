"""Core validation and assembly modules.

WHY: The core package holds the only real decision logic of the converter —
the WAVE header checks and the MSU1 header/concatenation rules. The CLI is
thin glue around it.

HOW: ir.py defines the header dataclasses, stream.py wraps input streams
so seekable files and pipes are read the same way, validator.py checks the
WAVE header, assembler.py computes the loop point and writes the output.

RULES:
- Core functions never open or close files — callers own their streams
- Validation failures are exceptions, never sentinel return values
"""

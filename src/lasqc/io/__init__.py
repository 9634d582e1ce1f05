"""LAS input adapters."""

from lasqc.io.las_reader import ParseError, parse_las_text, read_las_bytes

__all__ = ["ParseError", "parse_las_text", "read_las_bytes"]

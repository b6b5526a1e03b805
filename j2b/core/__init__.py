"""Core detection, data model and orchestration modules.

WHY: The core package holds the parts of the converter that carry the
engineering risk: telling the two forms apart and driving a conversion so
that damaged input still yields its valid prefix. Everything here is
independent of the CLI.

HOW: ir.py and errors.py define the data structures, classify.py and
detect.py implement format detection, pipeline.py orchestrates a
conversion and output.py does the file and stream I/O.

RULES:
- IR dataclasses are the contract; change with care
- Detection is format knowledge only; no decoding happens in detect.py
"""

"""
tidyfolder
==========

A local folder tidying engine.

Features:
- Recursive scan with folder exclusions by name
- Same-size duplicate groups with keep-one resolution
- Categorization by custom rules, a local LLM and an extension table
- Copy-then-delete moves into category folders, with undo

All processing occurs locally; the classifier only ever sees file names.
"""

__version__ = "0.1.0"

"""Core normalization, matching, and session modules.

WHY: The core package holds the two pure transformations the rest of
the project is built on (transcript normalization and keyterm
matching), plus the IR dataclasses they share.

HOW: ir.py defines the data structures, normalizer.py builds them from
service word tokens, compliance.py matches keyterms against text, and
session.py drives matching from playback time.

RULES:
- IR dataclasses are the contract; change with care
- No network or storage access anywhere in this package
"""

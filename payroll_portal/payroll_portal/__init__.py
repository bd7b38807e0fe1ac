"""
payroll_portal package.

Desktop client for the village payroll portal. Session handling lives in
the top-level ``core`` package; this package carries the entry point
support code.
"""

__all__ = [
    "logger",
]

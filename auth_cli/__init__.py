"""Operational CLI for the Cognito auth stack.

Commands print machine-friendly JSON on stdout; errors go to stderr.
"""

__all__ = ["__version__"]

__version__ = "1.0.0"

"""
Commands - one module per CLI command.

Each command gets its components from :func:`tokenwright.runtime.runtime_from_context`
and maps a :class:`~tokenwright.errors.TokenwrightError` to its exit code.
"""

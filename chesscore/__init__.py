"""chesscore: chess rules engine and alpha-beta search.

The engine core lives under ``chesscore.engine``; ``chesscore.api`` gathers
the function-call surface used by UI and transport callers.
"""

__version__ = "0.1.0"

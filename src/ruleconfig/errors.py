"""Error types raised while reading settings documents."""

from __future__ import annotations


class ParseError(ValueError):
    """A settings document is malformed.

    ``line`` and ``column`` are 1-based and point at the offending token when
    the failure is syntactic; structural failures leave them as ``None``.
    """

    def __init__(self, message: str, line: int | None = None,
                 column: int | None = None, source: str = "") -> None:
        self.message = message
        self.line = line
        self.column = column
        self.source = source
        super().__init__(self._format())

    def _format(self) -> str:
        where = self.source
        if self.line is not None:
            where = f"{where}:{self.line}:{self.column}" if where else \
                f"line {self.line}, column {self.column}"
        return f"{where}: {self.message}" if where else self.message

    def with_source(self, source: str) -> ParseError:
        """Return a copy of this error attributed to ``source``."""
        return ParseError(self.message, self.line, self.column, source)

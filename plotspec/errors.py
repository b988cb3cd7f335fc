from __future__ import annotations


class PlotSpecError(ValueError):
    """Base class for every diagnostic this package raises."""


class CompileError(PlotSpecError):
    pass


class InvalidExpressionError(CompileError):
    pass


class IllegalCharacterError(CompileError):
    def __init__(self, char: str, position: int) -> None:
        super().__init__(f"illegal character {char!r} at position {position}")
        self.char = char
        self.position = position


class ExpressionSyntaxError(CompileError):
    pass


class UnknownSymbolError(CompileError):
    def __init__(self, symbol: str) -> None:
        super().__init__(f"unknown symbol: {symbol}")
        self.symbol = symbol


class InterpretError(PlotSpecError):
    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class MissingGeometryError(InterpretError):
    pass


class NoFunctionsError(InterpretError):
    pass


class UnsupportedImplicitSurfaceError(InterpretError):
    pass


class InvalidRangeError(InterpretError):
    pass


class UnsupportedKindError(InterpretError):
    def __init__(self, kind: object) -> None:
        super().__init__(f"unsupported plot kind: {kind!r}", field="kind")
        self.kind = kind

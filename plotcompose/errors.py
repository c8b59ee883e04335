from __future__ import annotations


class ComposeError(ValueError):
    """Base class for every failure reported by the composition engine."""


class InvalidFrame(ComposeError):
    pass


class DegenerateRange(ComposeError):
    pass


class InvalidPadding(ComposeError):
    pass


class EmptyContent(ComposeError):
    pass


class InvalidGridSpec(ComposeError):
    pass


class ContentRenderError(ComposeError):
    pass


class PlotDataError(ComposeError):
    pass

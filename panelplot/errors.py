from __future__ import annotations


class PlotDataError(ValueError):
    """Series input or derived geometry cannot be plotted."""


class NoDataError(PlotDataError):
    """No non-gap point is available to establish an axis domain."""


class ScaleDomainError(PlotDataError):
    """Scale kind is unknown or the data domain is invalid for it."""


class ExportError(RuntimeError):
    """Figure export failed; temporary off-screen elements were removed."""


class DecodeError(ExportError):
    """Serialized chart markup could not be decoded into an image."""

"""
Exception hierarchy for the production report engine.

Input-shape problems never raise; they degrade to empty/zero data.
Everything below is a failure the caller has to report to the user once.
"""


class ReportError(Exception):
    """Base class for all report engine errors"""


class NoProductionDataError(ReportError):
    """Export requested for a snapshot without any production lines"""


class PermissionDeniedError(ReportError):
    """The caller's role does not allow the requested action"""


class InvalidWindowError(ReportError, ValueError):
    """Month selection outside -1..11"""


class RenderError(ReportError):
    """A document page could not be drawn or rasterized"""


class ExportError(ReportError):
    """Final serialization of a workbook or document failed"""


class EditStateError(ReportError):
    """Edit workflow operation invoked in the wrong state"""


class FutureDateError(ReportError):
    """Attempt to edit a day after today"""


class CommitError(ReportError):
    """Persisting an edited month failed; nothing was written"""

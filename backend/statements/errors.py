"""
Fatal ingestion errors.

Only two conditions abort a parse: an extension outside the supported set,
and bytes that no spreadsheet reader can open. Everything else degrades.
"""


class StatementIngestError(Exception):
    """Base class for errors that abort a statement parse."""


class UnsupportedExtensionError(StatementIngestError, ValueError):
    def __init__(self, extension: str):
        self.extension = extension
        super().__init__(f"Unsupported file type: {extension or '(none)'}")


class UnreadableWorkbookError(StatementIngestError):
    def __init__(self, file_name: str, reason: str):
        self.file_name = file_name
        self.reason = reason
        super().__init__(f"Could not read {file_name} as a spreadsheet: {reason}")

class CsvSyncError(Exception):
    pass


class ParseError(CsvSyncError):
    """Raised when uploaded text holds no usable CSV lines."""


class MissingColumnError(CsvSyncError):
    """Raised when an export needs a column the table does not have."""

    def __init__(self, role: str):
        self.role = role
        super().__init__(f"No {role} column found in CSV headers")


class ExportError(CsvSyncError):
    pass


class StorageError(CsvSyncError):
    pass

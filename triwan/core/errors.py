class MigrationError(Exception):
    """Fatal condition; the run stops and exits non-zero."""


class PrivilegeError(MigrationError):
    pass


class BackupError(MigrationError):
    pass


class StoreError(MigrationError):
    def __init__(self, store: str, message: str):
        super().__init__(f"{store}: {message}")
        self.store = store


class CommitError(StoreError):
    def __init__(self, store: str, message: str = "commit failed"):
        super().__init__(store, message)

# Word Store Adapters
from .file_store import FileWordStore
from .sheet_store import SheetWordStore

__all__ = ["FileWordStore", "SheetWordStore"]

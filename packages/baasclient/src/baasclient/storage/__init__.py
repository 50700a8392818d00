from baasclient.storage.client import StorageClient

__all__ = ["StorageClient"]

from socialhub.client.sync import SyncClient

__all__ = ["SyncClient"]

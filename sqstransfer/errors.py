class ConfigError(Exception):
    """Invalid transfer configuration, rejected before any worker starts."""

class TransferError(Exception):
    """A batch transfer step failed; fatal to the worker that ran it."""

class FetchError(TransferError):
    """Receiving a batch from the source queue failed."""

class SendError(TransferError):
    """Sending a batch to the destination queue failed as a whole."""

class MissingReceiptHandleError(SendError):
    """A fetched message has no receipt handle and cannot be acknowledged."""

class DeleteError(TransferError):
    """Deleting a batch from the source queue failed as a whole."""

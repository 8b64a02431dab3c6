"""Service process for the storage layer."""

"""Port definition for UploadStorage."""

from typing import Protocol

from domain.model.record import Upload


class UploadStorage(Protocol):
    def save(self, upload: Upload) -> str:
        """Persist the file under a generated name and return its public reference (/uploads/<name>)."""
        ...

    def delete(self, reference: str) -> None:
        """Delete the file behind reference. Missing files are not an error."""
        ...

    def exists(self, reference: str) -> bool: ...

    def ping(self) -> bool:
        """Return True if the storage root is usable."""
        ...

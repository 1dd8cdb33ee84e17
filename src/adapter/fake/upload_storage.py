"""In-memory implementation of UploadStorage for testing."""

import itertools

from domain.model.record import Upload


class FakeUploadStorage:
    def __init__(self):
        self.files: dict[str, Upload] = {}
        self.deleted: list[str] = []
        self._counter = itertools.count(1)

    def save(self, upload: Upload) -> str:
        reference = f"/uploads/fake-{next(self._counter)}-{upload.filename}"
        self.files[reference] = upload
        return reference

    def delete(self, reference: str) -> None:
        self.deleted.append(reference)
        self.files.pop(reference, None)

    def exists(self, reference: str) -> bool:
        return reference in self.files

    def ping(self) -> bool:
        return True

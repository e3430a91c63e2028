"""Result of a single backend upload and the legacy descriptor encoding."""

from __future__ import annotations

from dataclasses import dataclass

DESCRIPTOR_SEPARATOR = "@@@"


@dataclass(frozen=True)
class UploadResult:
    """Where an uploaded object lives and how to delete it.

    url: public URL, or a root-relative path for local storage.
    delete_identifier: backend-specific handle for delete (object key,
        provider deletion token, relative path); None when the backend
        gives none.
    """

    url: str
    delete_identifier: str | None = None

    @property
    def descriptor(self) -> str:
        """Encode as 'url@@@token' (token part omitted when absent)."""
        if self.delete_identifier:
            return f"{self.url}{DESCRIPTOR_SEPARATOR}{self.delete_identifier}"
        return self.url

    @classmethod
    def from_descriptor(cls, descriptor: str) -> "UploadResult":
        """Parse 'url@@@token' or a bare url.

        Only the first separator splits, so a token may itself contain it.
        """
        url, sep, token = descriptor.partition(DESCRIPTOR_SEPARATOR)
        if not sep:
            return cls(url=descriptor, delete_identifier=None)
        return cls(url=url, delete_identifier=token or None)

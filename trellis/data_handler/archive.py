"""
Archive Membership Join.

Labels and filters the entries of a sequential archive against a membership
list read from a companion metadata resource. Because sequential archives
yield each entry once, in order, the membership list is read completely
before traversal starts; the join key and the label are then computed the
same way for every entry.

An entry is kept when it lies under ``image_dir`` and its identifier is a
member. The identifier is the file stem (``key_mode="stem"``) or the path
below ``image_dir`` without extension (``key_mode="relative"``); the label
is the path segment at ``label_segment``.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import IO, Literal

from ..exceptions import MetadataFormatError, ResourceUnavailableError, SchemaMismatchError


def read_membership(path: Path | str) -> frozenset[str]:
    """
    Read a membership list (one identifier per line, blank lines ignored).

    Raises:
        ResourceUnavailableError: If the file does not exist.
        MetadataFormatError: If the file is not valid UTF-8.
    """
    path = Path(path)
    if not path.is_file():
        raise ResourceUnavailableError(str(path), "membership list not found")
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise MetadataFormatError(f"{path.name}: not valid UTF-8 ({e.reason})") from e
    return frozenset(line.strip() for line in text.splitlines() if line.strip())


@dataclass(frozen=True)
class ArchiveMembershipJoin:
    """
    Filter/label policy for archive entries.

    Attributes:
        image_dir: Archive directory holding the images (e.g. ``"food-101/images"``).
        members: Identifiers to keep.
        label_segment: Index of the ``/``-separated path segment naming the class.
        key_mode: How identifiers are derived from entry paths.
    """

    image_dir: str
    members: frozenset[str]
    label_segment: int
    key_mode: Literal["stem", "relative"] = "stem"

    @property
    def prefix(self) -> str:
        return self.image_dir.strip("/") + "/"

    def entry_key(self, entry_path: str) -> str | None:
        """Identifier of *entry_path*, or None when it is outside ``image_dir``."""
        if not entry_path.startswith(self.prefix):
            return None
        relative = PurePosixPath(entry_path[len(self.prefix) :])
        if self.key_mode == "stem":
            return relative.stem
        return relative.with_suffix("").as_posix()

    def label_of(self, entry_path: str) -> str:
        parts = entry_path.split("/")
        try:
            return parts[self.label_segment]
        except IndexError:
            raise SchemaMismatchError(
                f"Entry '{entry_path}' has no path segment {self.label_segment}"
            ) from None

    def select(
        self, entries: Iterable[tuple[str, IO[bytes]]]
    ) -> Iterator[tuple[str, IO[bytes], str]]:
        """
        Yield ``(entry_path, file_obj, label)`` for member entries, in archive order.

        ``file_obj`` keeps the validity rules of the underlying archive stream.
        """
        for entry_path, file_obj in entries:
            if self.entry_key(entry_path) in self.members:
                yield entry_path, file_obj, self.label_of(entry_path)

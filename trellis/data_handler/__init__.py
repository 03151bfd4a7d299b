"""
Data Handling Package.

Resource fetching and archive streaming, the metadata joins that attach
labels and fields to images, the folder-convention builder, and dataset
publishing.
"""

from .archive import ArchiveMembershipJoin, read_membership
from .download_manager import ArchiveIterable, DownloadManager
from .folder import ImageFolderBuilder
from .metadata import MetadataFile, join_metadata
from .publisher import LocalHubPublisher, Publisher

__all__ = [
    "ArchiveIterable",
    "ArchiveMembershipJoin",
    "DownloadManager",
    "ImageFolderBuilder",
    "LocalHubPublisher",
    "MetadataFile",
    "Publisher",
    "join_metadata",
    "read_membership",
]

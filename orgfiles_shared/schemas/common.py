from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    MEMBER = "member"


class FileType(str, Enum):
    IMAGE = "image"
    CSV = "csv"
    PDF = "pdf"


class FileStatus(str, Enum):
    LIVE = "live"
    FLAGGED = "flagged"  # soft-deleted, awaiting purge

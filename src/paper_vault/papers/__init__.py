from .catalog import catalog_options
from .fields import PaperFields, validate_paper_fields
from .filters import PaperFilter, compose_filter
from .models import Paper, User
from .pagination import PageInfo, PageRequest, paginate
from .repository import PaperRepository, PaperStats, UserRepository
from .service import PaperService, StorageReport
from .storage import DocumentStore, FileStream, StoredRef, attach_storage

__all__ = [
    "catalog_options",
    "PaperFields",
    "validate_paper_fields",
    "PaperFilter",
    "compose_filter",
    "Paper",
    "User",
    "PageInfo",
    "PageRequest",
    "paginate",
    "PaperRepository",
    "PaperStats",
    "UserRepository",
    "PaperService",
    "StorageReport",
    "DocumentStore",
    "FileStream",
    "StoredRef",
    "attach_storage",
]

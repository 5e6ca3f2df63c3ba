from .acl import AclEntryCreate, AclEntryList, AclEntryResponse
from .entry import EntryCreate, EntryListResponse, EntryResponse, EntryUpdate
from .form import (
    FormCreate,
    FormDetailResponse,
    FormFieldInput,
    FormFieldResponse,
    FormListResponse,
    FormResponse,
    FormUpdate,
    FormVersionResponse,
    Pagination,
    PublishResponse,
)
from .scope import ScopeModeResponse

__all__ = [
    "AclEntryCreate",
    "AclEntryList",
    "AclEntryResponse",
    "EntryCreate",
    "EntryListResponse",
    "EntryResponse",
    "EntryUpdate",
    "FormCreate",
    "FormDetailResponse",
    "FormFieldInput",
    "FormFieldResponse",
    "FormListResponse",
    "FormResponse",
    "FormUpdate",
    "FormVersionResponse",
    "Pagination",
    "PublishResponse",
    "ScopeModeResponse",
]

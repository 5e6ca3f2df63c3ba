from .acl import FormAcl
from .base import Base
from .entry import FormEntry
from .form import Form, FormField, FormVersion

__all__ = [
    "Base",
    "Form",
    "FormVersion",
    "FormField",
    "FormEntry",
    "FormAcl",
]

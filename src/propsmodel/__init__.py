"""propsmodel: named primary and derived properties with synchronous change events."""

from importlib.metadata import version as _version

__version__ = _version("propsmodel")

from propsmodel.errors import (
    PropsModelError,
    DuplicateNameError,
    NoSuchPropertyError,
    AccessDeniedError,
    ValidationRejectedError,
    InvalidAccessModeError,
)
from propsmodel.events import EventEmitter, SETTLED, changed_channel
from propsmodel.model import PropsModel, MISSING, default_did_change
from propsmodel.view import ViewLink, ViewState
from propsmodel.api import PropsApi, is_public_name, public_api, owner_api
from propsmodel.accessors import Access, accessor_names, create_accessors, install_accessors
# textual NOT auto-imported, opt-in only

__all__ = [
    "PropsModel",
    "MISSING",
    "default_did_change",
    "EventEmitter",
    "SETTLED",
    "changed_channel",
    "ViewLink",
    "ViewState",
    "PropsApi",
    "is_public_name",
    "public_api",
    "owner_api",
    "Access",
    "accessor_names",
    "create_accessors",
    "install_accessors",
    "PropsModelError",
    "DuplicateNameError",
    "NoSuchPropertyError",
    "AccessDeniedError",
    "ValidationRejectedError",
    "InvalidAccessModeError",
]

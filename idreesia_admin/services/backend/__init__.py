"""Utilities for interacting with the backend service."""

from .client import BackendClient, BackendRequestError, Transport
from .entities import (
    KarkunJoinRequest,
    Khat,
    KhatQuestion,
    Mehfil,
    Message,
    MessageLink,
    NaatShareef,
    TarteebRequest,
    Zone,
)
from .payloads import Page, PageMeta, normalize_entity_payload, normalize_list_payload
from .resources import (
    DEFINITIONS,
    KarkunJoinRequestsClient,
    KhatClient,
    ResourceClient,
    ResourceDefinition,
    ResourceRegistry,
    TarteebRequestsClient,
)
from .uploads import FileUploader, UploadedFile, UploadError

__all__ = [
    "BackendClient",
    "BackendRequestError",
    "Transport",
    "KarkunJoinRequest",
    "Khat",
    "KhatQuestion",
    "Mehfil",
    "Message",
    "MessageLink",
    "NaatShareef",
    "TarteebRequest",
    "Zone",
    "Page",
    "PageMeta",
    "normalize_entity_payload",
    "normalize_list_payload",
    "DEFINITIONS",
    "KarkunJoinRequestsClient",
    "KhatClient",
    "ResourceClient",
    "ResourceDefinition",
    "ResourceRegistry",
    "TarteebRequestsClient",
    "FileUploader",
    "UploadedFile",
    "UploadError",
]

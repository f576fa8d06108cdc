"""FMData Python Client.

Builds find requests for the FileMaker Data API from plain dicts or dataclass
records, and maps the JSON results back into records.

Usage:
    from dataclasses import dataclass
    from fmdata import FileMakerClient, FindRequest, wire_field

    @dataclass
    class User:
        __layout__ = "Users"

        id: int = wire_field(default=0, name="Id")
        name: str | None = None

    request = FindRequest.for_record(User, limit=10)
    request.add_query(User(name="Buzz"))
    request.add_query({"Name": "Admin"}, omit=True)

    with FileMakerClient("https://fms.example.com", "Contacts", "admin", "secret") as fm:
        users = fm.find(request, User)
"""

from .client import AsyncFileMakerClient, FileMakerClient
from .config import ClientConfig
from .exceptions import (
    ConnectionError,
    ConstructionError,
    FMDataError,
    InvalidRequestError,
    RemoteError,
    SerializationError,
)
from .logging_config import get_logger, setup_logging
from .mapping import field_specs, is_default, layout_for, to_map, to_record, wire_field
from .requests import FindRequest, QueryInstance, SortField, SortOrder
from .serializer import serialize_find_request
from .types import DataInfo, FindResponse, Message, Record

__version__ = "0.1.0"
__all__ = [
    "AsyncFileMakerClient",
    "FileMakerClient",
    "ClientConfig",
    "FMDataError",
    "InvalidRequestError",
    "ConstructionError",
    "SerializationError",
    "RemoteError",
    "ConnectionError",
    "get_logger",
    "setup_logging",
    "field_specs",
    "is_default",
    "layout_for",
    "to_map",
    "to_record",
    "wire_field",
    "FindRequest",
    "QueryInstance",
    "SortField",
    "SortOrder",
    "serialize_find_request",
    "DataInfo",
    "FindResponse",
    "Message",
    "Record",
]

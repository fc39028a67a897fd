"""Entity ID formatting and parsing.

IDs are ``::``-joined strings rooted at a POSIX path relative to the
project root::

    src/app.ts                      file
    src/app.ts::AppModule           class / interface / function
    src/app.ts::AppModule::start    method
"""

from __future__ import annotations

from typing import NamedTuple, Optional

from .errors import MalformedEntityId

SEPARATOR = "::"


class EntityIdParts(NamedTuple):
    file_path: str
    class_name: Optional[str] = None
    member_name: Optional[str] = None


def format_file_id(file_path: str) -> str:
    return file_path


def format_class_id(file_path: str, class_name: str) -> str:
    return f"{file_path}{SEPARATOR}{class_name}"


def format_method_id(file_path: str, class_name: str, method_name: str) -> str:
    return f"{file_path}{SEPARATOR}{class_name}{SEPARATOR}{method_name}"


def format_function_id(file_path: str, function_name: str) -> str:
    return f"{file_path}{SEPARATOR}{function_name}"


def format_interface_id(file_path: str, interface_name: str) -> str:
    return f"{file_path}{SEPARATOR}{interface_name}"


def parse_entity_id(entity_id: str) -> EntityIdParts:
    """Split an entity ID into its file, class and member segments.

    Raises:
        MalformedEntityId: if the ID has more than three segments.
    """
    parts = entity_id.split(SEPARATOR)
    if len(parts) > 3:
        raise MalformedEntityId(entity_id)
    return EntityIdParts(*parts)

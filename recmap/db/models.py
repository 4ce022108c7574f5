from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional


class OperationType(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    GET = "get"


@dataclass
class BoundStatement:
    """
    A single SQL statement bound to one record.
    """
    query: str
    args: List[Any] = field(default_factory=list)
    # version the row is expected to carry; None for unversioned tables
    existing_version: Optional[int] = None

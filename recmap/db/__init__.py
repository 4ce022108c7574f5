from .dbmap import DbMap
from .handle import ConnectionHandle, EngineHandle, ExecResult, SqlHandle, TracingHandle
from .helpers import rebind
from .tx import Transaction

__all__ = [
    "DbMap",
    "Transaction",
    "SqlHandle",
    "EngineHandle",
    "ConnectionHandle",
    "TracingHandle",
    "ExecResult",
    "rebind",
]

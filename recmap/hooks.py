"""
Optional record lifecycle hooks.

A record type opts into a hook simply by defining the method; detection is a
runtime Protocol check, so no base class is needed. Every hook receives the
executor running the operation (a DbMap or a Transaction) and may issue
further statements through it. Hooks report failure by raising; the
exception reaches the caller unchanged.

Pre-hooks run before the statement is built, so they may change the record
that gets written. Post-hooks run after the statement succeeded.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, Union, runtime_checkable

if TYPE_CHECKING:
    from .db.dbmap import DbMap
    from .db.tx import Transaction

    SqlExecutor = Union[DbMap, Transaction]
else:
    SqlExecutor = Any


@runtime_checkable
class PreInserter(Protocol):
    def pre_insert(self, executor: SqlExecutor) -> None: ...


@runtime_checkable
class PostInserter(Protocol):
    def post_insert(self, executor: SqlExecutor) -> None: ...


@runtime_checkable
class PreUpdater(Protocol):
    def pre_update(self, executor: SqlExecutor) -> None: ...


@runtime_checkable
class PostUpdater(Protocol):
    def post_update(self, executor: SqlExecutor) -> None: ...


@runtime_checkable
class PreDeleter(Protocol):
    def pre_delete(self, executor: SqlExecutor) -> None: ...


@runtime_checkable
class PostDeleter(Protocol):
    def post_delete(self, executor: SqlExecutor) -> None: ...


@runtime_checkable
class PostGetter(Protocol):
    def post_get(self, executor: SqlExecutor) -> None: ...

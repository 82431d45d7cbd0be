"""
Storage shared across harness instances.

Instances without an explicit database each get an ``EphemeralDatabase``,
a SQLite file in a private temporary directory. Instances pointed at an
explicit URL, or at a PostgreSQL container, share one ``PooledDatabase``
entry from the process-wide ``StorePool``. The pool initializes the schema
once, serializes resets and drops everything it created at teardown.
"""

import asyncio
import shutil
import tempfile
import threading
import weakref
from collections.abc import Callable
from pathlib import Path
from typing import ClassVar, Optional

from sqlalchemy.engine import make_url
from testcontainers.postgres import PostgresContainer

from pyusers.core.exceptions import HarnessError
from pyusers.core.logging import LoggerMixin


def _display(url: str) -> str:
    return make_url(url).render_as_string(hide_password=True)


class EphemeralDatabase:
    """A throwaway SQLite database owned by one harness instance."""

    FILENAME = "harness.sqlite"

    def __init__(self, prefix: str = "pyusers-harness-") -> None:
        self.directory = Path(tempfile.mkdtemp(prefix=prefix))
        self.path = self.directory / self.FILENAME

    @property
    def url(self) -> str:
        return f"sqlite+aiosqlite:///{self.path}"

    @property
    def sync_url(self) -> str:
        return f"sqlite:///{self.path}"

    def remove(self) -> None:
        """Delete the database file and its directory."""
        if self.directory.exists():
            shutil.rmtree(self.directory)

    def __repr__(self) -> str:
        return f"<EphemeralDatabase path={str(self.path)!r}>"


class PostgresContainerServer(LoggerMixin):
    """
    A PostgreSQL server running in a Docker container.

    ``start`` is idempotent; the pool starts one server per image on first
    use and stops it at teardown.
    """

    DEFAULT_IMAGE = "postgres:16"
    PORT = 5432

    def __init__(
        self,
        image: str = DEFAULT_IMAGE,
        username: str = "testuser",
        password: str = "testpassword",
        dbname: str = "postgres",
    ) -> None:
        self.image = image
        self.username = username
        self.password = password
        self.dbname = dbname
        self._container: Optional[PostgresContainer] = None

    @property
    def started(self) -> bool:
        return self._container is not None

    def start(self) -> None:
        if self._container is not None:
            return
        container = PostgresContainer(
            self.image,
            username=self.username,
            password=self.password,
            dbname=self.dbname,
            driver=None,
        )
        container.start()
        self._container = container
        self.logger.info(f"Started PostgreSQL container {self.image}")

    def stop(self) -> None:
        if self._container is None:
            return
        container, self._container = self._container, None
        container.stop()
        self.logger.info(f"Stopped PostgreSQL container {self.image}")

    def _address(self) -> str:
        if self._container is None:
            raise RuntimeError(f"PostgreSQL container {self.image} is not running")
        host = self._container.get_container_host_ip()
        port = self._container.get_exposed_port(self.PORT)
        return f"{self.username}:{self.password}@{host}:{port}/{self.dbname}"

    @property
    def url(self) -> str:
        return f"postgresql+asyncpg://{self._address()}"

    @property
    def sync_url(self) -> str:
        return f"postgresql+psycopg://{self._address()}"

    def __repr__(self) -> str:
        return f"<PostgresContainerServer image={self.image!r} started={self.started}>"


class PooledDatabase:
    """Book-keeping for one shared database URL."""

    def __init__(self, url: str) -> None:
        self.url = url
        self.refcount = 0
        self.initialized = False
        # Undoes the initializer at teardown
        self.finalizer: Optional[Callable[[], None]] = None
        # asyncio locks bind to a loop; keep one per loop that resets this URL
        self._locks: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, asyncio.Lock]" = (
            weakref.WeakKeyDictionary()
        )

    def lock(self) -> asyncio.Lock:
        """Reset lock for the running event loop."""
        loop = asyncio.get_running_loop()
        lock = self._locks.get(loop)
        if lock is None:
            lock = self._locks[loop] = asyncio.Lock()
        return lock

    def __repr__(self) -> str:
        return f"<PooledDatabase url={_display(self.url)!r} refcount={self.refcount}>"


class StorePool(LoggerMixin):
    """
    Process-wide registry of shared databases keyed by URL.

    ``acquire`` runs the initializer for a URL exactly once, however many
    instances attach to it. ``teardown`` runs every finalizer, stops the
    PostgreSQL containers and reports the entries still held.
    """

    _shared: ClassVar[Optional["StorePool"]] = None
    _shared_lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(self) -> None:
        self._entries: dict[str, PooledDatabase] = {}
        self._servers: dict[str, PostgresContainerServer] = {}
        self._lock = threading.Lock()

    @classmethod
    def shared(cls) -> "StorePool":
        """The pool used by harness instances that are not given one."""
        with cls._shared_lock:
            if cls._shared is None:
                cls._shared = cls()
            return cls._shared

    def acquire(
        self,
        url: str,
        initializer: Callable[[], None],
        finalizer: Optional[Callable[[], None]] = None,
    ) -> PooledDatabase:
        """
        Attach to the database at ``url``, initializing it on first use.

        If the initializer raises, the attachment is rolled back and the
        next caller retries the initialization. ``finalizer`` is kept from
        the call that initialized the entry.
        """
        with self._lock:
            entry = self._entries.get(url)
            if entry is None:
                entry = self._entries[url] = PooledDatabase(url)
            entry.refcount += 1
            if not entry.initialized:
                try:
                    initializer()
                except Exception:
                    entry.refcount -= 1
                    if entry.refcount == 0:
                        del self._entries[url]
                    raise
                entry.initialized = True
                entry.finalizer = finalizer
                self.logger.info(f"Initialized shared database {_display(url)}")
            return entry

    def release(self, url: str) -> None:
        """Detach one instance; the schema stays in place until teardown."""
        with self._lock:
            entry = self._entries.get(url)
            if entry is None or entry.refcount == 0:
                raise KeyError(url)
            entry.refcount -= 1

    def postgres(self, image: str = PostgresContainerServer.DEFAULT_IMAGE) -> PostgresContainerServer:
        """The running PostgreSQL server for ``image``, started on first use."""
        with self._lock:
            server = self._servers.get(image)
            if server is None:
                server = self._servers[image] = PostgresContainerServer(image)
            server.start()
            return server

    def teardown(self) -> list[str]:
        """
        Finalize every entry and stop every container.

        Every step runs even if an earlier one fails.

        Returns:
            URLs that still had attached instances

        Raises:
            HarnessError: If a finalizer or a container stop failed
        """
        with self._lock:
            entries = list(self._entries.values())
            servers = list(self._servers.values())
            self._entries.clear()
            self._servers.clear()

        leaked = [entry.url for entry in entries if entry.refcount]
        for url in leaked:
            self.logger.warning(f"Shared database {_display(url)} still attached at teardown")

        errors: list[str] = []
        for entry in entries:
            if entry.finalizer is None:
                continue
            try:
                entry.finalizer()
            except Exception as exc:
                errors.append(f"{_display(entry.url)}: {exc}")
        for server in servers:
            try:
                server.stop()
            except Exception as exc:
                errors.append(f"{server.image}: {exc}")

        if errors:
            for error in errors:
                self.logger.warning(f"Store pool teardown: {error}")
            raise HarnessError(
                "Store pool teardown finished with errors",
                code="TEARDOWN_FAILURE",
                details={"errors": errors},
            )
        return leaked

    def get(self, url: str) -> Optional[PooledDatabase]:
        return self._entries.get(url)

    def __contains__(self, url: object) -> bool:
        return url in self._entries

    def __len__(self) -> int:
        return len(self._entries)

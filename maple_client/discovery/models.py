"""Host records and the registry that discovery fills.

Servers advertise themselves with UTF-8 datagrams of the form
``<name>::<address>``. Each accepted advertisement becomes a HostRecord
in a Registry, keyed by address, in first-seen order.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Iterator, Optional

from ..exceptions import DiscoveryInProgressError, MalformedPayloadError

logger = logging.getLogger(__name__)

# Separator between server name and address in an advertisement
ADVERTISEMENT_DELIMITER = "::"

HostCallback = Callable[["HostRecord"], None]


@dataclass(frozen=True)
class HostRecord:
    """A server found on the local network."""
    name: str
    address: str

    @classmethod
    def from_payload(cls, data: bytes) -> "HostRecord":
        """Decode an advertisement datagram.

        Only the first two ``::``-separated segments are used; anything
        after the address is ignored.

        Raises:
            MalformedPayloadError: If the payload is not UTF-8, has no
                delimiter, or has an empty name or address.
        """
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedPayloadError(data, f"not UTF-8 ({e.reason})") from e

        segments = text.split(ADVERTISEMENT_DELIMITER)
        if len(segments) < 2:
            raise MalformedPayloadError(data, "missing '::' delimiter")

        name, address = segments[0], segments[1]
        if not name or not address:
            raise MalformedPayloadError(data, "empty name or address")

        return cls(name=name, address=address)

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "address": self.address}

    def __str__(self) -> str:
        return f"{self.name} at {self.address}"


class Registry:
    """Ordered, address-unique collection of discovered hosts.

    One discovery session writes to a registry at a time. Reads are safe
    from any task or thread while that session runs: iteration walks a
    snapshot taken under the lock.
    """

    def __init__(self) -> None:
        self._records: list[HostRecord] = []
        self._by_address: dict[str, HostRecord] = {}
        self._callbacks: list[HostCallback] = []
        self._lock = threading.Lock()
        self._writer_attached = False

    # Writer ownership

    @property
    def has_writer(self) -> bool:
        return self._writer_attached

    def claim_writer(self) -> None:
        """Attach a discovery session as the registry's only writer.

        Raises:
            DiscoveryInProgressError: If another session is attached.
        """
        with self._lock:
            if self._writer_attached:
                raise DiscoveryInProgressError(
                    "Registry is already being filled by another discovery session"
                )
            self._writer_attached = True

    def release_writer(self) -> None:
        with self._lock:
            self._writer_attached = False

    # Mutation

    def on_added(self, callback: HostCallback) -> None:
        """Register a callback fired for every newly accepted host."""
        self._callbacks.append(callback)

    def add(self, record: HostRecord) -> bool:
        """Append a record unless its address is already known.

        Returns:
            True if the record was added, False for a repeat advertisement.
        """
        with self._lock:
            if record.address in self._by_address:
                return False
            self._by_address[record.address] = record
            self._records.append(record)

        for cb in list(self._callbacks):
            try:
                cb(record)
            except Exception:
                logger.exception("Error in registry callback for %s", record)
        return True

    def clear(self) -> None:
        """Discard all records between sessions.

        Raises:
            DiscoveryInProgressError: If a session is still writing.
        """
        with self._lock:
            if self._writer_attached:
                raise DiscoveryInProgressError(
                    "Cannot clear a registry while discovery is running"
                )
            self._records.clear()
            self._by_address.clear()

    # Reads

    def snapshot(self) -> list[HostRecord]:
        with self._lock:
            return list(self._records)

    def addresses(self) -> list[str]:
        return [r.address for r in self.snapshot()]

    def get(self, address: str) -> Optional[HostRecord]:
        with self._lock:
            return self._by_address.get(address)

    def __iter__(self) -> Iterator[HostRecord]:
        return iter(self.snapshot())

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, address: object) -> bool:
        with self._lock:
            return address in self._by_address

    def __getitem__(self, index: int) -> HostRecord:
        with self._lock:
            return self._records[index]

    def __repr__(self) -> str:
        return f"Registry({self.snapshot()!r})"

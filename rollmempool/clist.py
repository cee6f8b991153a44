"""A thread-safe doubly linked list whose elements can be traversed while it changes.

Any number of threads may walk the list concurrently. Removed elements cannot
be added back; after removal, callers should detach the element's links so
that removed chains can be reclaimed.
"""

from __future__ import annotations

import sys
import threading
from typing import Any, Iterator, Optional

MAX_LENGTH = sys.maxsize


class CElement:
    """An element of a CList. Traversal from an element is thread-safe."""

    def __init__(self, value: Any) -> None:
        self.value = value
        self._lock = threading.Lock()
        self._prev: Optional[CElement] = None
        self._prev_event = threading.Event()
        self._next: Optional[CElement] = None
        self._next_event = threading.Event()
        self._removed = False

    def __repr__(self) -> str:
        return f"CElement({self.value!r})"

    def next_wait(self) -> Optional[CElement]:
        """Block until there is a next element or this one is removed.

        Returns None only if this element was the tail and got removed.
        """
        while True:
            with self._lock:
                nxt, event, removed = self._next, self._next_event, self._removed
            if nxt is not None or removed:
                return nxt
            event.wait()

    def prev_wait(self) -> Optional[CElement]:
        """Block until there is a previous element or this one is removed.

        Returns None only if this element was the head and got removed.
        """
        while True:
            with self._lock:
                prev, event, removed = self._prev, self._prev_event, self._removed
            if prev is not None or removed:
                return prev
            event.wait()

    def next_wait_chan(self) -> threading.Event:
        """Return an event that is set once a next element exists or this one is removed."""
        with self._lock:
            return self._next_event

    def prev_wait_chan(self) -> threading.Event:
        """Return an event that is set once a previous element exists or this one is removed."""
        with self._lock:
            return self._prev_event

    def next(self) -> Optional[CElement]:
        """Return the next element without blocking, None at the end."""
        with self._lock:
            return self._next

    def prev(self) -> Optional[CElement]:
        """Return the previous element without blocking, None at the start."""
        with self._lock:
            return self._prev

    def removed(self) -> bool:
        """Report whether this element has been removed from its list."""
        with self._lock:
            return self._removed

    def detach_next(self) -> None:
        """Drop the link to the next element; only allowed after removal."""
        with self._lock:
            if not self._removed:
                raise RuntimeError("detach_next() must be called after remove(e)")
            self._next = None

    def detach_prev(self) -> None:
        """Drop the link to the previous element; only allowed after removal."""
        with self._lock:
            if not self._removed:
                raise RuntimeError("detach_prev() must be called after remove(e)")
            self._prev = None

    def set_next(self, new_next: Optional[CElement]) -> None:
        """Link the next element, waking anyone waiting for one."""
        with self._lock:
            old_next = self._next
            self._next = new_next
            if old_next is not None and new_next is None:
                self._next_event = threading.Event()
            if old_next is None and new_next is not None:
                self._next_event.set()

    def set_prev(self, new_prev: Optional[CElement]) -> None:
        """Link the previous element, waking anyone waiting for one."""
        with self._lock:
            old_prev = self._prev
            self._prev = new_prev
            if old_prev is not None and new_prev is None:
                self._prev_event = threading.Event()
            if old_prev is None and new_prev is not None:
                self._prev_event.set()

    def set_removed(self) -> None:
        """Mark the element removed and wake waiters in either direction."""
        with self._lock:
            self._removed = True
            if self._prev is None:
                self._prev_event.set()
            if self._next is None:
                self._next_event.set()


class CList:
    """A thread-safe linked list bounded by a maximum length."""

    def __init__(self, max_length: int = MAX_LENGTH) -> None:
        self.max_length = max_length
        self._lock = threading.Lock()
        self._event = threading.Event()
        self._head: Optional[CElement] = None
        self._tail: Optional[CElement] = None
        self._len = 0

    def __len__(self) -> int:
        with self._lock:
            return self._len

    def __iter__(self) -> Iterator[CElement]:
        """Walk the elements from front to back; removing the current one is safe."""
        cur = self.front()
        while cur is not None:
            following = cur.next()
            yield cur
            after = cur.next()
            if after is not None:
                cur = after
            elif cur.removed():
                cur = following
            else:
                cur = None

    def front(self) -> Optional[CElement]:
        """Return the first element, or None if the list is empty."""
        with self._lock:
            return self._head

    def front_wait(self) -> CElement:
        """Block until the list has a first element and return it."""
        while True:
            with self._lock:
                head, event = self._head, self._event
            if head is not None:
                return head
            event.wait()

    def back(self) -> Optional[CElement]:
        """Return the last element, or None if the list is empty."""
        with self._lock:
            return self._tail

    def back_wait(self) -> CElement:
        """Block until the list has a last element and return it."""
        while True:
            with self._lock:
                tail, event = self._tail, self._event
            if tail is not None:
                return tail
            event.wait()

    def wait_chan(self) -> threading.Event:
        """Return an event that is set once the list becomes non-empty."""
        with self._lock:
            return self._event

    def push_back(self, value: Any) -> CElement:
        """Append value and return its element.

        Raises OverflowError if the list is already at its maximum length.
        """
        element = CElement(value)
        with self._lock:
            if self._len >= self.max_length:
                raise OverflowError(f"clist: maximum length list reached {self.max_length}")
            if self._len == 0:
                self._event.set()
            self._len += 1
            if self._tail is None:
                self._head = element
                self._tail = element
            else:
                element.set_prev(self._tail)
                self._tail.set_next(element)
                self._tail = element
        return element

    def remove(self, element: CElement) -> Any:
        """Remove element from the list and return its value.

        Callers should then call detach_prev() and detach_next() on it.
        """
        with self._lock:
            if element.removed():
                raise ValueError("remove(e) of an element already removed")
            prev = element.prev()
            nxt = element.next()
            if self._head is None or self._tail is None:
                raise ValueError("remove(e) on empty CList")
            if prev is None and self._head is not element:
                raise ValueError("remove(e) with false head")
            if nxt is None and self._tail is not element:
                raise ValueError("remove(e) with false tail")

            if self._len == 1:
                self._event = threading.Event()
            self._len -= 1

            if prev is None:
                self._head = nxt
            else:
                prev.set_next(nxt)
            if nxt is None:
                self._tail = prev
            else:
                nxt.set_prev(prev)

            element.set_removed()
        return element.value
import contextlib
from typing import Any


# a commit/rollback scheme for contract storage. every external call runs
# inside a frame; if the call raises, all storage writes made during the
# call are rolled back.
# this is implemented as a stack of changesets, because we need to
# handle nested rollbacks in the case of reentrant calls
class StorageJournal:
    _NOT_FOUND = object()

    def __init__(self):
        self._updates: list[dict[tuple[int, Any], tuple["Storage", Any]]] = []

    @property
    def depth(self) -> int:
        return len(self._updates)

    def register_update(self, storage, k):
        KEY = (id(storage), k)
        if KEY in self._updates[-1]:
            return
        prev = dict.get(storage, k, self._NOT_FOUND)
        self._updates[-1][KEY] = (storage, prev)

    @contextlib.contextmanager
    def enter(self):
        self._updates.append({})
        try:
            yield
        except Exception:
            self._rollback_inner()
            raise
        else:
            self._commit_inner()

    @contextlib.contextmanager
    def speculate(self):
        # like enter(), but never commits
        self._updates.append({})
        try:
            yield
        finally:
            self._rollback_inner()

    def _rollback_inner(self):
        for (_, k), (storage, prev) in self._updates[-1].items():
            if prev is self._NOT_FOUND:
                dict.pop(storage, k, None)
            else:
                dict.__setitem__(storage, k, prev)
        self._pop_inner()

    def _commit_inner(self):
        inner = self._pop_inner()

        if len(self._updates) == 0:
            return

        outer = self._updates[-1]

        # register with previous frame in case inner gets committed
        # but outer needs to be rolled back
        for (_, k), (storage, prev) in inner.items():
            if (id(storage), k) not in outer:
                outer[(id(storage), k)] = (storage, prev)

    def _pop_inner(self):
        return self._updates.pop()


class Storage(dict):
    """
    A mapping which allows for journaling.

    Missing keys read as `default`, so a key that was never written is
    indistinguishable from one holding the default value. Values should be
    immutable; update an entry by assigning a new value.
    """

    def __init__(self, journal: StorageJournal, default=None, initial=None):
        super().__init__()
        self._journal = journal
        self._default = default
        if initial is not None:
            for k, v in initial.items():
                self[k] = v

    @property
    def default(self):
        return self._default

    def __missing__(self, k):
        return self._default

    def __setitem__(self, k, v):
        # if we are in a context where we need to journal, add
        # this to the changeset.
        if self._journal.depth != 0:
            self._journal.register_update(self, k)

        super().__setitem__(k, v)

    def __delitem__(self, k):
        if self._journal.depth != 0:
            self._journal.register_update(self, k)

        super().__delitem__(k)

    def reset(self, k):
        # back to the default value
        if k in self:
            del self[k]

    def _unsupported(self, *args, **kwargs):
        raise TypeError("Storage only supports item assignment and deletion")

    pop = popitem = clear = update = setdefault = _unsupported

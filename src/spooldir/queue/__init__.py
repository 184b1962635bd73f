"""File-based job queue driven by status suffixes.

Why not a broker?
~~~~~~~~~~~~~~~~~
Producers already speak the filesystem: they drop ``<stem>.PENDING`` files
into a shared directory and later pick up ``<stem>.RESPONSE``.  The queue
state lives entirely in file names, so the whole protocol is a handful of
atomic renames:

- ``.PENDING`` -> ``.DOING`` claims a job (a failed rename means another
  claimer won).
- ``.DOING`` -> ``.DONE`` plus a new ``.RESPONSE`` commits it.
- Anything left in ``.DOING`` is an orphan and waits for an operator.

One process per directory is enforced by :mod:`spooldir.queue.guard`; the
scan/dispatch cycle and the retention sweep share one cooperative loop in
:mod:`spooldir.queue.scheduler`.
"""

"""Per-order locks.

Every read-validate-write of an order (operator transitions, payment outcomes,
the auto-cancellation sweep) runs while holding the order's lock, so two
writers never validate against the same stale status. A payment outcome that
confirms an order re-enters the lock through the transition.

This serializes writers within one process. Multiple API/worker processes
additionally rely on the repository's version check when the Unit of Work
commits.
"""

from shared.locking import KeyedLockRegistry

order_locks = KeyedLockRegistry()

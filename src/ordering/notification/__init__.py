"""Notification dispatcher registry.

Event handlers are instantiated by Protean, so the dispatcher they use is
looked up here. Defaults to the fake dispatcher; the composition root or a
test installs another with ``set_dispatcher``.
"""

from ordering.notification.port import NotificationDispatcher

_dispatcher: NotificationDispatcher | None = None


def get_dispatcher() -> NotificationDispatcher:
    global _dispatcher
    if _dispatcher is None:
        from ordering.notification.fake import FakeNotificationDispatcher

        _dispatcher = FakeNotificationDispatcher()
    return _dispatcher


def set_dispatcher(dispatcher: NotificationDispatcher) -> None:
    global _dispatcher
    _dispatcher = dispatcher


def reset_dispatcher() -> None:
    global _dispatcher
    _dispatcher = None

"""Session domain services: registry, clock, chat, move authority and
reconnection, orchestrated by the lifecycle controller.

Nothing in this package knows about Flask or Socket.IO; the transport,
scheduler and event queue are injected by the app factory.
"""

from .controller import SessionController
from .scheduler import BackgroundScheduler, EventQueue, ManualScheduler

__all__ = ['SessionController', 'EventQueue', 'BackgroundScheduler', 'ManualScheduler']

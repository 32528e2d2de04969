from __future__ import annotations

from dataclasses import dataclass

from hr_chat.application.ports.auth import TokenVerifier
from hr_chat.application.ports.clock import Clock, SystemClock
from hr_chat.application.ports.gateway import Directory, MessageGateway
from hr_chat.application.ports.unread import UnreadStore
from hr_chat.config import Settings, settings
from hr_chat.realtime.delivery import DeliveryRouter
from hr_chat.realtime.membership import RoomMembership
from hr_chat.realtime.presence import PresenceSupervisor
from hr_chat.realtime.registry import ConnectionRegistry
from hr_chat.realtime.unread import InMemoryUnreadStore


@dataclass(slots=True)
class ChatHub:
    """The realtime core of one process, wired together."""

    registry: ConnectionRegistry
    membership: RoomMembership
    router: DeliveryRouter
    supervisor: PresenceSupervisor
    unread: UnreadStore


def build_hub(
    gateway: MessageGateway,
    directory: Directory,
    verifier: TokenVerifier,
    *,
    unread: UnreadStore | None = None,
    clock: Clock | None = None,
    config: Settings = settings,
) -> ChatHub:
    clock = clock or SystemClock()
    unread = unread if unread is not None else InMemoryUnreadStore()
    registry = ConnectionRegistry(clock, send_queue_size=config.WS_SEND_QUEUE_SIZE)
    membership = RoomMembership(registry, directory)
    router = DeliveryRouter(
        registry,
        membership,
        gateway,
        unread,
        persist_timeout=config.PERSIST_TIMEOUT_SECONDS,
        max_length=config.MESSAGE_MAX_LENGTH,
    )
    supervisor = PresenceSupervisor(
        registry,
        membership,
        verifier,
        clock=clock,
        heartbeat_interval=config.WS_HEARTBEAT_SECONDS,
        heartbeat_timeout=config.WS_HEARTBEAT_TIMEOUT_SECONDS,
    )
    return ChatHub(
        registry=registry,
        membership=membership,
        router=router,
        supervisor=supervisor,
        unread=unread,
    )

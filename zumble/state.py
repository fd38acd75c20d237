"""Shared server state: connected clients, channels and the negotiated codec."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field, replace
from itertools import count

from .client import Channel, Client

ROOT_CHANNEL_ID = 0

Address = tuple[str, int]


@dataclass
class CodecState:
    """CELT versions offered to clients and which of the two is preferred."""

    opus: bool = True
    alpha: int = 0
    beta: int = 0
    prefer_alpha: bool = False

    def get_version(self) -> int:
        """Return the preferred CELT version."""
        return self.alpha if self.prefer_alpha else self.beta


def _root_channel() -> Channel:
    return Channel(ROOT_CHANNEL_ID, ROOT_CHANNEL_ID, "Root", "Root channel", False)


@dataclass
class ServerState:
    """Clients by session and by UDP address, channels by id, and the codec state."""

    clients: dict[int, Client] = field(default_factory=dict)
    clients_by_socket: dict[Address, Client] = field(default_factory=dict)
    channels: dict[int, Channel] = field(
        default_factory=lambda: {ROOT_CHANNEL_ID: _root_channel()}
    )
    codec_state: CodecState = field(default_factory=CodecState)

    def __init__(self) -> None:
        self.clients = {}
        self.clients_by_socket = {}
        self.channels = {ROOT_CHANNEL_ID: _root_channel()}
        self.codec_state = CodecState()

    @staticmethod
    def _free_id(taken: dict[int, object]) -> int:
        return next(candidate for candidate in count(1) if candidate not in taken)

    def add_client(self, username: str, tokens=(), codecs=()) -> Client:
        """Register a new client in the root channel under the lowest free session id."""
        session_id = self._free_id(self.clients)
        client = Client(
            session_id=session_id,
            username=username,
            tokens=list(tokens),
            codecs=list(codecs),
            channel_id=ROOT_CHANNEL_ID,
        )
        self.clients[session_id] = client
        return client

    def add_channel(self, parent_id: int, name: str, description: str = "") -> Channel:
        """Create a channel under the lowest free channel id."""
        channel_id = self._free_id(self.channels)
        channel = Channel(channel_id, parent_id, name, description, False)
        self.channels[channel_id] = channel
        return channel

    def get_client_by_name(self, name: str) -> Client | None:
        """Return the client with this username, if any."""
        return next((c for c in self.clients.values() if c.username == name), None)

    def get_channel_by_name(self, name: str) -> Channel | None:
        """Return the channel with this name, if any."""
        return next((c for c in self.channels.values() if c.name == name), None)

    def set_client_socket(self, client: Client, addr: Address) -> None:
        """Bind a client to the UDP address its voice packets come from."""
        if client.udp_socket_addr is not None:
            self.clients_by_socket.pop(client.udp_socket_addr, None)
        client.udp_socket_addr = addr
        self.clients_by_socket[addr] = client

    def get_client_by_socket(self, addr: Address) -> Client | None:
        """Return the client bound to a UDP address, if any."""
        return self.clients_by_socket.get(addr)

    def remove_client_by_socket(self, addr: Address) -> None:
        """Forget the client bound to a UDP address."""
        self.clients_by_socket.pop(addr, None)

    def get_listeners(self, channel_id: int) -> dict[int, Client]:
        """Return the clients hearing a channel: its members and its remote listeners."""
        listening = {
            session_id: client
            for session_id, client in self.clients.items()
            if client.channel_id == channel_id
        }
        channel = self.channels.get(channel_id)
        if channel is not None:
            for session_id in channel.listeners:
                client = self.clients.get(session_id)
                if client is not None:
                    listening[session_id] = client
        return listening

    def check_leave_channel(self, channel_id: int) -> int | None:
        """Return the channel id if the channel should now be removed, else None.

        A channel is kept while it has members or sub-channels; otherwise it is
        removed if it is temporary or no longer known.
        """
        if any(client.channel_id == channel_id for client in self.clients.values()):
            return None
        if any(channel.parent_id == channel_id for channel in self.channels.values()):
            return None
        channel = self.channels.get(channel_id)
        if channel is not None:
            return channel_id if channel.temporary else None
        return channel_id

    def check_codec(self) -> CodecState | None:
        """Pick the CELT version most clients support.

        Returns a copy of the codec state when it is unchanged; when it changes,
        the state is updated and None is returned so the caller announces it.
        """
        current = self.codec_state.get_version()
        new_version = current
        best = 0
        votes = Counter(version for client in self.clients.values() for version in client.codecs)
        for version, votes_for in votes.items():
            if votes_for > best:
                new_version = version
                best = votes_for

        if new_version == current:
            return replace(self.codec_state)

        codec = self.codec_state
        codec.prefer_alpha = not codec.prefer_alpha
        if codec.prefer_alpha:
            codec.alpha = new_version
        else:
            codec.beta = new_version
        return None

    def disconnect(self, client: Client) -> tuple[int, int]:
        """Remove a client and return its session id and the channel it was in."""
        self.clients.pop(client.session_id, None)
        if client.udp_socket_addr is not None:
            self.clients_by_socket.pop(client.udp_socket_addr, None)
        return client.session_id, client.channel_id
import pytest

from zumble.state import CodecState, ServerState


@pytest.fixture
def state():
    return ServerState()


def test_root_channel_exists(state):
    root = state.channels[0]
    assert root.name == "Root"
    assert root.description == "Root channel"
    assert root.parent_id == 0


def test_session_ids_start_at_one_and_reuse_gaps(state):
    first = state.add_client("alice")
    second = state.add_client("bob")
    assert first.session_id == 1
    assert second.session_id == first.session_id + 1
    state.disconnect(first)
    third = state.add_client("carol")
    assert third.session_id == first.session_id


def test_new_client_is_in_root_and_keeps_tokens(state):
    client = state.add_client("alice", ["t1", "t2"], [5])
    assert client.channel_id == 0
    assert client.tokens == ["t1", "t2"]
    assert client.codecs == [5]
    assert state.clients[client.session_id] is client


def test_channel_ids_skip_root(state):
    channel = state.add_channel(0, "Lobby", "desc")
    assert channel.id == 1
    assert channel.parent_id == 0
    assert state.channels[channel.id] is channel
    assert state.add_channel(0, "Other").id == channel.id + 1


def test_lookup_by_name(state):
    client = state.add_client("alice")
    channel = state.add_channel(0, "Lobby")
    assert state.get_client_by_name("alice") is client
    assert state.get_client_by_name("nobody") is None
    assert state.get_channel_by_name("Lobby") is channel
    assert state.get_channel_by_name("Missing") is None


def test_socket_binding_replaces_previous_address(state):
    client = state.add_client("alice")
    first = ("127.0.0.1", 1000)
    second = ("127.0.0.1", 2000)
    state.set_client_socket(client, first)
    assert state.get_client_by_socket(first) is client
    state.set_client_socket(client, second)
    assert state.get_client_by_socket(first) is None
    assert state.get_client_by_socket(second) is client
    assert client.udp_socket_addr == second
    state.remove_client_by_socket(second)
    assert state.get_client_by_socket(second) is None


def test_listeners_include_members_and_remote_listeners(state):
    channel = state.add_channel(0, "Lobby")
    member = state.add_client("alice")
    member.join_channel(channel.id)
    remote = state.add_client("bob")
    state.add_client("carol")
    channel.listeners.update({remote.session_id, 999})
    listeners = state.get_listeners(channel.id)
    assert set(listeners) == {member.session_id, remote.session_id}
    assert listeners[remote.session_id] is remote


def test_leave_channel_kept_while_occupied(state):
    channel = state.add_channel(0, "Lobby")
    channel.temporary = True
    client = state.add_client("alice")
    client.join_channel(channel.id)
    assert state.check_leave_channel(channel.id) is None
    client.join_channel(0)
    assert state.check_leave_channel(channel.id) == channel.id


def test_leave_channel_kept_with_children(state):
    parent = state.add_channel(0, "Parent")
    parent.temporary = True
    state.add_channel(parent.id, "Child")
    assert state.check_leave_channel(parent.id) is None


def test_leave_permanent_channel_is_kept(state):
    channel = state.add_channel(0, "Lobby")
    assert state.check_leave_channel(channel.id) is None


def test_leave_unknown_channel_is_reported(state):
    assert state.check_leave_channel(42) == 42


def test_leave_root_channel_is_kept(state):
    assert state.check_leave_channel(0) is None


def test_codec_defaults():
    codec = CodecState()
    assert codec.opus is True
    assert codec.get_version() == 0


def test_codec_unchanged_returns_snapshot(state):
    snapshot = state.check_codec()
    assert snapshot == CodecState()
    assert snapshot is not state.codec_state


def test_codec_switches_to_majority_version(state):
    state.add_client("alice", codecs=[7, 3])
    state.add_client("bob", codecs=[7])
    assert state.check_codec() is None
    assert state.codec_state.prefer_alpha is True
    assert state.codec_state.alpha == 7
    assert state.codec_state.get_version() == 7
    snapshot = state.check_codec()
    assert snapshot == state.codec_state


def test_disconnect_removes_client_and_socket(state):
    client = state.add_client("alice")
    channel = state.add_channel(0, "Lobby")
    client.join_channel(channel.id)
    addr = ("127.0.0.1", 1000)
    state.set_client_socket(client, addr)
    assert state.disconnect(client) == (client.session_id, channel.id)
    assert client.session_id not in state.clients
    assert state.get_client_by_socket(addr) is None
    assert state.get_client_by_name("alice") is None
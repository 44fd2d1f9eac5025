"""
Tests for OcTreeClient's two-stage decode/install pipeline.

Decoding is driven through InlineExecutor or a hand-stepped executor, and
installs are drained explicitly, so every interleaving is deterministic.
"""

import struct
import threading
from concurrent.futures import Executor, Future

import pytest

from scene_sync.common.scheduling import DeferredCallQueue, InlineExecutor
from scene_sync.navigation.octree import OcTree, OcTreeDecodeError
from scene_sync.navigation.octree_client import OcTreeClient
from scene_sync.scene.scene_node import SceneNode

TOPIC = "/octomap"

# root with child 0 occupied
BINARY_ONE_VOXEL = bytes([0b10, 0])
# root with children 0 and 1 occupied
BINARY_TWO_VOXELS = bytes([0b1010, 0])
FULL_ONE_VOXEL = struct.pack("<fB", 0.0, 0b1) + struct.pack("<fB", 2.0, 0)


class SteppedExecutor(Executor):
    """Holds submitted tasks until run() is called for them."""

    def __init__(self):
        self.tasks = []

    def submit(self, fn, /, *args, **kwargs):
        future = Future()
        self.tasks.append((future, fn, args, kwargs))
        return future

    def run(self, index):
        future, fn, args, kwargs = self.tasks[index]
        future.set_running_or_notify_cancel()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as exc:
            future.set_exception(exc)


@pytest.fixture
def make_client(transport, root):
    clients = []

    def _make(**options):
        options.setdefault("executor", InlineExecutor())
        client = OcTreeClient(ros=transport, root_object=root, continuous=True, **options)
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.close()


def voxel_count(obj):
    return obj.geometry.positions.shape[0]


class TestTwoStageInstall:
    def test_install_waits_for_drain(self, make_client, transport, root, make_octomap, change_counter):
        client = make_client()
        counter = change_counter(client)

        transport.publish(TOPIC, make_octomap(BINARY_ONE_VOXEL))

        assert root.children == []
        assert counter["count"] == 0
        assert len(client.pending) == 1

        assert client.process_pending() == 1
        assert len(root.children) == 1
        assert voxel_count(client.current_object) == 1
        assert counter["count"] == 1

    def test_process_message_returns_decode_future(self, make_client, make_octomap):
        client = make_client()
        future = client.process_message(make_octomap(FULL_ONE_VOXEL, binary=False, id="OcTree"))

        assert future.done()
        assert voxel_count(future.result()) == 1

    def test_replacement_disposes_previous(self, make_client, transport, root, make_octomap):
        client = make_client()
        transport.publish(TOPIC, make_octomap(BINARY_ONE_VOXEL))
        client.process_pending()
        first = client.current_object

        transport.publish(TOPIC, make_octomap(BINARY_TWO_VOXELS))
        client.process_pending()

        assert root.children == [client.current_object]
        assert first.disposed
        assert first.parent is None
        assert voxel_count(client.current_object) == 2

    def test_frame_tracking_wraps_in_scene_node(self, make_client, transport, root, tf_tracker, make_octomap):
        client = make_client(tf_client=tf_tracker)

        transport.publish(TOPIC, make_octomap(BINARY_ONE_VOXEL, frame_id="map"))
        client.process_pending()
        node = root.children[0]
        assert isinstance(node, SceneNode)
        assert node.children == [client.current_object]

        transport.publish(TOPIC, make_octomap(BINARY_ONE_VOXEL, frame_id="odom"))
        client.process_pending()

        assert len(root.children) == 1
        assert root.children[0] is not node
        assert tf_tracker.subscriber_count("map") == 0
        assert tf_tracker.subscriber_count("odom") == 1

    def test_custom_call_soon(self, make_client, transport, root, make_octomap):
        scheduled = []
        client = make_client(call_soon=scheduled.append)

        transport.publish(TOPIC, make_octomap(BINARY_ONE_VOXEL))
        assert len(scheduled) == 1
        assert len(client.pending) == 0

        scheduled[0]()
        assert len(root.children) == 1

    def test_thread_pool_decode(self, transport, root, make_octomap):
        queue = DeferredCallQueue()
        posted = threading.Event()

        def call_soon(fn):
            queue.post(fn)
            posted.set()

        client = OcTreeClient(ros=transport, root_object=root, call_soon=call_soon)
        try:
            transport.publish(TOPIC, make_octomap(BINARY_ONE_VOXEL))
            assert posted.wait(timeout=5.0)
            assert queue.drain() == 1
            assert len(root.children) == 1
        finally:
            client.close()


class TestDecodeFailures:
    def test_unknown_tree_id(self, make_client, transport, root, make_octomap, change_counter):
        client = make_client()
        counter = change_counter(client)

        future = client.process_message(make_octomap(FULL_ONE_VOXEL, binary=False, id="CountingOcTree"))

        assert isinstance(future.exception(), OcTreeDecodeError)
        assert client.process_pending() == 0
        assert root.children == []
        assert client.current_object is None
        assert counter["count"] == 0

    def test_failure_keeps_current_octree(self, make_client, transport, root, make_octomap):
        client = make_client()
        transport.publish(TOPIC, make_octomap(BINARY_ONE_VOXEL))
        client.process_pending()
        current = client.current_object

        future = client.process_message(make_octomap(bytes([0b11, 0]), binary=True))

        assert isinstance(future.exception(), OcTreeDecodeError)
        client.process_pending()
        assert client.current_object is current
        assert root.children == [current]
        assert not current.disposed

    def test_failure_is_logged(self, make_client, make_octomap, caplog):
        client = make_client()
        client.process_message(make_octomap(b"", binary=False, id="Nope"))
        assert "Failed to decode octomap" in caplog.text

    def test_decoders_override(self, make_client, root, make_octomap):
        client = make_client(decoders={"MyTree": OcTree})

        client.process_message(make_octomap(FULL_ONE_VOXEL, binary=False, id="MyTree"))
        client.process_pending()
        assert len(root.children) == 1

        future = client.process_message(make_octomap(FULL_ONE_VOXEL, binary=False, id="OcTree"))
        assert isinstance(future.exception(), OcTreeDecodeError)


class TestOrdering:
    def test_installs_follow_completion_order(self, make_client, transport, root, make_octomap):
        executor = SteppedExecutor()
        client = make_client(executor=executor)

        transport.publish(TOPIC, make_octomap(BINARY_ONE_VOXEL))
        transport.publish(TOPIC, make_octomap(BINARY_TWO_VOXELS))

        # later delivery finishes first; the earlier one overwrites it
        executor.run(1)
        executor.run(0)
        client.process_pending()

        assert len(root.children) == 1
        assert voxel_count(client.current_object) == 1


class TestSingleShot:
    def test_unsubscribes_on_receipt(self, transport, root, make_octomap):
        executor = SteppedExecutor()
        client = OcTreeClient(ros=transport, root_object=root, executor=executor)

        transport.publish(TOPIC, make_octomap(BINARY_ONE_VOXEL))

        assert transport.subscription_count(TOPIC) == 0
        assert transport.publish(TOPIC, make_octomap(BINARY_TWO_VOXELS)) == 0

        executor.run(0)
        client.process_pending()
        assert voxel_count(client.current_object) == 1
        client.close()


class TestOcTreeOptions:
    def test_only_set_hints_are_forwarded(self, make_client):
        client = make_client(opacity=0.5)
        assert client.options == {"opacity": 0.5}

    def test_hints_reach_builder(self, make_client, make_octomap):
        client = make_client(color=(10, 20, 30), opacity=0.0)
        obj = client.process_message(make_octomap(BINARY_ONE_VOXEL)).result()
        assert list(obj.geometry.colors[0]) == [10, 20, 30, 0]

    def test_close_disposes_and_drops_late_installs(self, make_client, transport, root, make_octomap):
        executor = SteppedExecutor()
        client = make_client(executor=executor)
        transport.publish(TOPIC, make_octomap(BINARY_ONE_VOXEL))
        executor.run(0)
        client.process_pending()
        installed = client.current_object

        transport.publish(TOPIC, make_octomap(BINARY_TWO_VOXELS))
        executor.run(1)
        client.close()
        late = executor.tasks[1][0].result()
        client.process_pending()

        assert root.children == []
        assert installed.disposed
        assert late.disposed
        assert transport.subscription_count(TOPIC) == 0

    def test_defaults(self, transport):
        client = OcTreeClient(ros=transport)
        try:
            assert client.topic_name == "/octomap"
            assert client.ros_topic.message_type == "octomap_msgs/Octomap"
            assert client.ros_topic.compression == "cbor"
            assert client.continuous is False
        finally:
            client.close()

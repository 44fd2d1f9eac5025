"""
=============================================================================
SCENE SYNC NODE - ROS 2 host for the scene reconciliation clients
=============================================================================

Subscribes to marker arrays, an occupancy grid and an octomap, keeps one
scene graph in sync with them and mirrors it to Rerun.

Parameters come from a YAML file (``config_path``), validated by
``SceneSyncParams``; individual ROS parameters of the same name override it.

Topic Flow:
    /visualization_marker_array ─┐
    /map                        ─┼─> [this node] ─> scene graph ─> Rerun
    /octomap                    ─┘
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional

import rclpy
from rclpy.node import Node
from rclpy.parameter import Parameter

from scene_sync.common.param_models import SceneSyncParams, load_params_file
from scene_sync.common.scheduling import DeferredCallQueue
from scene_sync.markers.marker_array_client import MarkerArrayClient
from scene_sync.navigation.occupancy_grid_client import OccupancyGridClient
from scene_sync.navigation.octree_client import OcTreeClient
from scene_sync.ros.tf_tracker import TfFrameTracker
from scene_sync.ros.transport import RclpyTransport
from scene_sync.scene.graph import SceneObject
from scene_sync.visualization.rerun_scene import RerunSceneSink


class SceneSyncNode(Node):
    def __init__(self, parameter_overrides: Optional[Dict[str, Any]] = None) -> None:
        overrides = None
        if parameter_overrides:
            overrides = [Parameter(k, value=v) for k, v in parameter_overrides.items()]
        super().__init__(
            "scene_sync",
            parameter_overrides=overrides,
            automatically_declare_parameters_from_overrides=True,
        )

        if not self.has_parameter("config_path"):
            self.declare_parameter("config_path", "")
        self.params = self._load_params()

        self.root = SceneObject(name="root")
        self.transport = RclpyTransport(self)
        self.tf_tracker: Optional[TfFrameTracker] = None
        if self.params.use_tf:
            self.tf_tracker = TfFrameTracker(
                self,
                fixed_frame=self.params.fixed_frame,
                poll_rate_hz=self.params.tf_poll_rate_hz,
                timeout_sec=self.params.tf_timeout_sec,
            )

        # Octree installs are queued by decode workers and drained here
        self.install_queue = DeferredCallQueue()
        self.decode_executor = ThreadPoolExecutor(
            max_workers=self.params.octomap_decode_workers,
            thread_name_prefix="octree-decode",
        )
        self.install_timer = self.create_timer(self.params.install_drain_period_sec, self._drain_installs)

        self.clients: List[Any] = []
        self._init_clients()

        self.sink: Optional[RerunSceneSink] = None
        if self.params.use_rerun:
            self.sink = RerunSceneSink(
                self.root,
                spawn=self.params.rerun_spawn,
                recording_path=self.params.rerun_recording_path,
            )
            if self.sink.init():
                for client in self.clients:
                    self.sink.attach(client)
            else:
                self.get_logger().warn("use_rerun is set but rerun is not available")

        self._log_banner()

    def _load_params(self) -> SceneSyncParams:
        config_path = str(self.get_parameter("config_path").value)
        values: Dict[str, Any] = load_params_file(config_path) if config_path else {}
        values.pop("config_path", None)

        # Explicit ROS parameters override the file
        for name in SceneSyncParams.model_fields:
            if self.has_parameter(name):
                values[name] = self.get_parameter(name).value
        return SceneSyncParams(**values)

    def _init_clients(self) -> None:
        p = self.params
        common = dict(ros=self.transport, tf_client=self.tf_tracker, root_object=self.root)

        for topic in p.marker_array_topics:
            self.clients.append(MarkerArrayClient(topic=topic, path=p.marker_resource_path, **common))

        if p.occupancy_grid_topic:
            self.clients.append(
                OccupancyGridClient(
                    topic=p.occupancy_grid_topic,
                    continuous=p.occupancy_grid_continuous,
                    opacity=p.occupancy_grid_opacity,
                    **common,
                )
            )

        if p.octomap_topic:
            self.clients.append(
                OcTreeClient(
                    topic=p.octomap_topic,
                    continuous=p.octomap_continuous,
                    color_mode=p.octomap_color_mode,
                    voxel_render_mode=p.octomap_voxel_render_mode,
                    executor=self.decode_executor,
                    call_soon=self.install_queue.post,
                    **common,
                )
            )

    def _log_banner(self) -> None:
        p = self.params
        self.get_logger().info("=" * 60)
        self.get_logger().info("SCENE SYNC")
        self.get_logger().info("=" * 60)
        self.get_logger().info(f"  Fixed frame: {p.fixed_frame} (tf={'on' if p.use_tf else 'off'})")
        for topic in p.marker_array_topics:
            self.get_logger().info(f"  Markers:   {topic}")
        if p.occupancy_grid_topic:
            self.get_logger().info(f"  Grid:      {p.occupancy_grid_topic} (continuous={p.occupancy_grid_continuous})")
        if p.octomap_topic:
            self.get_logger().info(
                f"  Octomap:   {p.octomap_topic} (continuous={p.octomap_continuous}, "
                f"workers={p.octomap_decode_workers})"
            )
        self.get_logger().info(f"  Rerun:     {'on' if self.sink is not None else 'off'}")
        self.get_logger().info("=" * 60)

    def _drain_installs(self) -> None:
        self.install_queue.drain()

    def destroy_node(self):
        """Clean up."""
        for client in self.clients:
            client.close()
        self.decode_executor.shutdown(wait=False, cancel_futures=True)
        if self.tf_tracker is not None:
            self.tf_tracker.destroy()
        if self.sink is not None:
            self.sink.detach_all()
            self.sink.flush()
        super().destroy_node()


def main() -> None:
    """Standalone entry point for scene_sync_node."""
    rclpy.init()
    node = SceneSyncNode()

    try:
        rclpy.spin(node)
    except KeyboardInterrupt:
        pass
    finally:
        node.destroy_node()
        rclpy.shutdown()


if __name__ == "__main__":
    main()

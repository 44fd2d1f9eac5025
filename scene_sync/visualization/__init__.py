"""Visualization sinks for the synchronized scene."""

from scene_sync.visualization.rerun_scene import RerunSceneSink

__all__ = ["RerunSceneSink"]

import numpy as np
import pytest
from scipy.spatial.transform import Rotation

from grasphub.errors import TransformLookupError
from grasphub.schema import Pose
from grasphub.transforms.buffer import StaticTransformBuffer, TransformProvider


@pytest.fixture
def buffer():
    """base_link -> torso -> camera, and base_link -> table."""
    quarter_turn = Rotation.from_euler("z", 90, degrees=True).as_quat()
    return StaticTransformBuffer.from_config(
        [
            {"parent": "base_link", "child": "torso", "translation": [0.0, 0.0, 1.0]},
            {
                "parent": "torso",
                "child": "camera",
                "translation": [0.5, 0.0, 0.0],
                "rotation": quarter_turn.tolist(),
            },
            {"parent": "base_link", "child": "table", "translation": [2.0, 0.0, 0.0]},
        ]
    )


class TestStaticTransformBuffer:
    """Test frame graph lookups."""

    def test_is_transform_provider(self, buffer):
        assert isinstance(buffer, TransformProvider)

    def test_frames(self, buffer):
        assert buffer.frames == ["base_link", "camera", "table", "torso"]

    def test_same_frame_is_identity(self, buffer):
        assert buffer.lookup_transform("camera", "camera") == Pose.identity()

    def test_direct_edge(self, buffer):
        pose = buffer.lookup_transform("base_link", "torso")
        np.testing.assert_allclose(pose.position, [0.0, 0.0, 1.0])

    def test_chained_edges(self, buffer):
        pose = buffer.lookup_transform("base_link", "camera")

        np.testing.assert_allclose(pose.position, [0.5, 0.0, 1.0], atol=1e-12)
        point_in_camera = np.array([1.0, 0.0, 0.0, 1.0])
        np.testing.assert_allclose(
            pose.as_matrix() @ point_in_camera, [0.5, 1.0, 1.0, 1.0], atol=1e-12
        )

    def test_inverse_direction(self, buffer):
        forward = buffer.lookup_transform("base_link", "camera").as_matrix()
        backward = buffer.lookup_transform("camera", "base_link").as_matrix()

        np.testing.assert_allclose(forward @ backward, np.eye(4), atol=1e-12)

    def test_across_branches(self, buffer):
        pose = buffer.lookup_transform("table", "torso")
        np.testing.assert_allclose(pose.position, [-2.0, 0.0, 1.0], atol=1e-12)

    def test_stamp_is_ignored(self, buffer):
        latest = buffer.lookup_transform("base_link", "camera")
        stamped = buffer.lookup_transform("base_link", "camera", stamp=12.5)
        assert latest == stamped

    def test_unknown_frame(self, buffer):
        with pytest.raises(TransformLookupError, match="map"):
            buffer.lookup_transform("map", "camera")

    def test_disconnected_trees(self, buffer):
        buffer.set_transform("map", "odom", Pose())

        with pytest.raises(TransformLookupError, match="same tree"):
            buffer.lookup_transform("map", "camera")
        assert not buffer.can_transform("map", "camera")
        assert buffer.can_transform("odom", "map")

    def test_set_transform_replaces_edge(self, buffer):
        buffer.set_transform("base_link", "table", Pose(position=[3.0, 0.0, 0.0]))

        pose = buffer.lookup_transform("base_link", "table")
        np.testing.assert_allclose(pose.position, [3.0, 0.0, 0.0])

    def test_self_edge_rejected(self, buffer):
        with pytest.raises(ValueError, match="itself"):
            buffer.set_transform("torso", "torso", Pose())

    def test_from_config_missing_key(self):
        with pytest.raises(ValueError, match="missing"):
            StaticTransformBuffer.from_config([{"parent": "base_link"}])

    def test_from_config_empty(self):
        assert StaticTransformBuffer.from_config(None).frames == []

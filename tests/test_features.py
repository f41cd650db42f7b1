"""
Test cases for feature vector construction.
"""
import math
import unittest
import sys
from pathlib import Path

import numpy as np

sys.path.insert(0, str(Path(__file__).parent.parent))

from signstream.features import FeatureVectorBuilder, FEATURE_LENGTH, GROUP_LAYOUT, check_length
from signstream.errors import FeatureLengthError
from signstream.types import DetectionResult, Landmark, MirrorFlags
from tests.fakes import make_hand

POSE, FACE, LEFT, RIGHT = GROUP_LAYOUT


class TestLayout(unittest.TestCase):
    """Test the fixed vector layout."""

    def test_feature_length(self):
        """Layout adds up to 33*4 + 468*3 + 21*3 + 21*3."""
        self.assertEqual(FEATURE_LENGTH, 1662)
        self.assertEqual((POSE.offset, FACE.offset, LEFT.offset, RIGHT.offset), (0, 132, 1536, 1599))

    def test_check_length(self):
        check_length(np.zeros(FEATURE_LENGTH))
        with self.assertRaises(FeatureLengthError):
            check_length(np.zeros(FEATURE_LENGTH - 1))
        with self.assertRaises(FeatureLengthError):
            check_length(np.zeros((2, FEATURE_LENGTH)))


class TestFeatureVectorBuilder(unittest.TestCase):
    """Test encoding of detection results."""

    def setUp(self):
        self.builder = FeatureVectorBuilder()

    def test_no_detection_is_all_zero(self):
        vector = self.builder.build(None)
        self.assertEqual(vector.shape, (FEATURE_LENGTH,))
        self.assertEqual(vector.dtype, np.float32)
        self.assertFalse(vector.any())

    def test_pose_passthrough_with_visibility(self):
        """Pose points keep raw coordinates and carry visibility in the 4th slot."""
        pose = [Landmark(0.1, 0.2, 0.3, 0.9)] + [Landmark(0.5, 0.5, 0.0, 1.0)] * 32
        vector = self.builder.build(DetectionResult(pose=pose))

        np.testing.assert_allclose(vector[0:4], [0.1, 0.2, 0.3, 0.9], rtol=1e-6)
        np.testing.assert_allclose(vector[4:8], [0.5, 0.5, 0.0, 1.0], rtol=1e-6)
        self.assertFalse(vector[FACE.offset:].any())

    def test_missing_visibility_becomes_zero(self):
        pose = [Landmark(0.1, 0.2, 0.3)] * 33
        vector = self.builder.build(DetectionResult(pose=pose))
        self.assertEqual(vector[3], 0.0)

    def test_absent_group_keeps_offsets(self):
        """A missing left hand leaves zeros and the right hand stays at its own offset."""
        detection = DetectionResult(right_hand=make_hand())
        vector = self.builder.build(detection)

        self.assertFalse(vector[LEFT.offset:LEFT.end].any())
        self.assertTrue(vector[RIGHT.offset:RIGHT.end].any())
        # Normalized wrist sits at the re-centered origin
        np.testing.assert_allclose(vector[RIGHT.offset:RIGHT.offset + 3], [0.5, 0.5, 0.0])

    def test_missing_point_zero_filled(self):
        """A None point zeroes its slot without shifting the following points."""
        face = [Landmark(0.3, 0.4, 0.01)] * 468
        face[1] = None
        vector = self.builder.build(DetectionResult(face=face))

        np.testing.assert_allclose(vector[FACE.offset:FACE.offset + 3], [0.3, 0.4, 0.01], rtol=1e-6)
        self.assertFalse(vector[FACE.offset + 3:FACE.offset + 6].any())
        np.testing.assert_allclose(vector[FACE.offset + 6:FACE.offset + 9], [0.3, 0.4, 0.01], rtol=1e-6)

    def test_short_group_zero_fills_tail(self):
        face = [Landmark(0.3, 0.4, 0.01)] * 10
        vector = self.builder.build(DetectionResult(face=face))
        self.assertTrue(vector[FACE.offset:FACE.offset + 30].all())
        self.assertFalse(vector[FACE.offset + 30:FACE.end].any())

    def test_hand_normalization(self):
        """Wrist becomes (0.5, 0.5) and the reference point lands at the target distance."""
        hand = [Landmark(0.3, 0.7, 0.05)] * 21
        hand[9] = Landmark(0.3, 0.5, 0.15)  # 0.2 above the wrist -> scale 0.5
        vector = self.builder.build(DetectionResult(left_hand=hand))

        wrist = vector[LEFT.offset:LEFT.offset + 3]
        ref = vector[LEFT.offset + 27:LEFT.offset + 30]
        np.testing.assert_allclose(wrist, [0.5, 0.5, 0.0], atol=1e-6)
        np.testing.assert_allclose(ref, [0.5, 0.4, 0.05], atol=1e-6)

    def test_normalization_is_translation_invariant(self):
        a = self.builder.build(DetectionResult(right_hand=make_hand()))
        b = self.builder.build(DetectionResult(right_hand=make_hand(dx=0.2)))
        np.testing.assert_allclose(a, b, atol=1e-6)

    def test_degenerate_hand_left_unnormalized(self):
        hand = [Landmark(0.3, 0.7, 0.0)] * 21
        vector = self.builder.build(DetectionResult(left_hand=hand))
        np.testing.assert_allclose(vector[LEFT.offset:LEFT.offset + 2], [0.3, 0.7], rtol=1e-6)

    def test_normalization_disabled(self):
        builder = FeatureVectorBuilder(normalize_hands=False)
        hand = make_hand()
        vector = builder.build(DetectionResult(right_hand=hand))
        np.testing.assert_allclose(vector[RIGHT.offset:RIGHT.offset + 2], [hand[0].x, hand[0].y], rtol=1e-6)

    def test_mirroring_flips_present_points_only(self):
        face = [Landmark(0.2, 0.4, 0.0)] * 468
        face[5] = None
        vector = self.builder.build(DetectionResult(face=face), MirrorFlags(face=True))

        self.assertAlmostEqual(float(vector[FACE.offset]), 0.8, places=6)
        self.assertAlmostEqual(float(vector[FACE.offset + 1]), 0.4, places=6)
        self.assertFalse(vector[FACE.offset + 15:FACE.offset + 18].any())

    def test_mirroring_applies_after_normalization(self):
        hand = [Landmark(0.3, 0.7, 0.0)] * 21
        hand[9] = Landmark(0.3, 0.5, 0.0)
        hand[8] = Landmark(0.4, 0.5, 0.0)  # 0.1 right of the wrist -> +0.05 after scaling
        plain = self.builder.build(DetectionResult(left_hand=hand))
        mirrored = self.builder.build(DetectionResult(left_hand=hand), MirrorFlags(left_hand=True))

        x = LEFT.offset + 8 * 3
        self.assertAlmostEqual(float(plain[x]), 0.55, places=6)
        self.assertAlmostEqual(float(mirrored[x]), 0.45, places=6)

    def test_nan_inputs_sanitized(self):
        pose = [Landmark(float("nan"), float("inf"), 0.3, float("nan"))] * 33
        vector = self.builder.build(DetectionResult(pose=pose))
        self.assertTrue(np.all(np.isfinite(vector)))
        np.testing.assert_allclose(vector[0:4], [0.0, 0.0, 0.3, 0.0], rtol=1e-6)

    def test_nan_in_hand_never_propagates(self):
        hand = make_hand()
        hand[0] = Landmark(math.nan, 0.8, 0.0)
        vector = self.builder.build(DetectionResult(left_hand=hand))
        self.assertTrue(np.all(np.isfinite(vector)))

    def test_deterministic(self):
        detection = DetectionResult(left_hand=make_hand(), right_hand=make_hand(("index",)))
        np.testing.assert_array_equal(self.builder.build(detection), self.builder.build(detection))


if __name__ == '__main__':
    unittest.main()

"""
Test cases for the assembled gesture pipeline, including the end-to-end
debounce scenario.
"""
import unittest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from signstream.classifier import ClassificationAdapter
from signstream.config import load_config
from signstream.errors import ClassifierError
from signstream.features import FEATURE_LENGTH, FeatureVectorBuilder
from signstream.filters import FilterBank
from signstream.pipeline import GesturePipeline
from signstream.stability import StabilityGate
from signstream.types import DetectionResult, GateState, Landmark, MirrorFlags
from signstream.window import TemporalWindow
from tests.fakes import LABELS, ScriptedClassifier, hand_detection, make_pipeline

FRAME = 1 / 30.0


class TestGesturePipeline(unittest.TestCase):

    def setUp(self):
        self.classifier = ScriptedClassifier()
        self.pipeline = make_pipeline(self.classifier)
        self.detection = hand_detection()

    def run_frames(self, n, start):
        """Process n frames of the open-hand detection; returns events and next timestamp."""
        events = []
        t = start
        for _ in range(n):
            event = self.pipeline.process_detection(self.detection, t)
            if event is not None:
                events.append(event)
            t += FRAME
        return events, t

    def test_no_prediction_until_window_full(self):
        events, _ = self.run_frames(29, start=0.0)
        self.assertEqual(events, [])
        self.assertEqual(self.classifier.calls, [])
        self.assertEqual(len(self.pipeline.window), 29)
        self.assertIs(self.pipeline.gate.state, GateState.IDLE)

    def test_hello_scenario(self):
        """
        Confidence 0.9 "hello" on 8 frames with K=3, threshold 0.85 and a
        2000 ms cooldown yields exactly one event; 8 more frames inside the
        cooldown yield nothing; after the cooldown a fresh run yields one more.
        """
        _, t = self.run_frames(29, start=0.0)
        self.classifier.label = "hello"
        self.classifier.confidence = 0.9

        first, t = self.run_frames(8, start=t)
        self.assertEqual([e.label for e in first], ["hello"])

        second, t = self.run_frames(8, start=t)
        self.assertEqual(second, [])
        self.assertLess((t - first[0].timestamp) * 1000, 2000)

        third, _ = self.run_frames(3, start=first[0].timestamp + 2.5)
        self.assertEqual([e.label for e in third], ["hello"])
        # The buffer stayed full through the cooldown, so the first frame after it fires
        self.assertEqual(third[0].timestamp, first[0].timestamp + 2.5)

    def test_held_sign_refires_on_first_frame_after_cooldown(self):
        """
        A continuously held sign keeps the consistency buffer full through the
        cooldown, so the repeat fires on the first frame past 2000 ms rather
        than after a fresh run of K frames.
        """
        step = 0.03
        for i in range(29):
            self.pipeline.process_detection(self.detection, i * step)

        self.classifier.label = "hello"
        fired = []
        for i in range(90):
            event = self.pipeline.process_detection(self.detection, (29 + i) * step)
            if event is not None:
                fired.append(i)

        # First event on held frame 2 (t=0.93); cooldown ends at t>=2.93 -> held frame 69 (t=2.94)
        self.assertEqual(fired, [2, 69])

    def test_low_confidence_emits_nothing(self):
        self.classifier.confidence = 0.6
        events, _ = self.run_frames(40, start=0.0)
        self.assertEqual(events, [])

    def test_frames_without_hands_skipped(self):
        face_only = DetectionResult(face=[Landmark(0.5, 0.5, 0.0)] * 468)
        self.assertIsNone(self.pipeline.process_detection(face_only, 0.0))
        self.assertIsNone(self.pipeline.process_detection(None, 0.1))
        self.assertEqual(len(self.pipeline.window), 0)

    def test_frames_without_hands_kept_when_not_required(self):
        pipeline = make_pipeline(self.classifier, require_hands=False)
        pipeline.process_detection(None, 0.0)
        self.assertEqual(len(pipeline.window), 1)
        self.assertFalse(pipeline.window.snapshot()[0].any())

    def test_window_holds_smoothed_vectors(self):
        self.pipeline.process_detection(self.detection, 0.0)
        moved = hand_detection(dx=0.1)
        moved.pose = [Landmark(0.2, 0.3, 0.0, 1.0)] * 33
        self.pipeline.process_detection(moved, FRAME)
        self.pipeline.process_detection(DetectionResult(right_hand=self.detection.right_hand,
                                                        pose=[Landmark(0.4, 0.3, 0.0, 1.0)] * 33), 2 * FRAME)
        latest = self.pipeline.window.snapshot()[-1]
        # Pose x jumped 0.2 -> 0.4: the filtered value lags behind the raw one
        self.assertGreater(latest[0], 0.2)
        self.assertLess(latest[0], 0.4)

    def test_classifier_failure_propagates_and_pipeline_recovers(self):
        self.run_frames(29, start=0.0)
        self.classifier.error = RuntimeError("inference crashed")
        with self.assertRaises(ClassifierError):
            self.pipeline.process_detection(self.detection, 1.0)

        self.classifier.error = None
        events, _ = self.run_frames(3, start=1.1)
        self.assertEqual(len(events), 1)

    def test_classifier_not_ready(self):
        pipeline = make_pipeline(ScriptedClassifier(ready=False))
        for i in range(35):
            self.assertIsNone(pipeline.process_detection(self.detection, i * FRAME))
        self.assertEqual(pipeline.gate.recent_labels(), [])

    def test_push_frame_and_predict(self):
        pipeline = make_pipeline(self.classifier, capacity=3)
        vector = FeatureVectorBuilder().build(self.detection)
        events = []
        for i in range(5):
            pipeline.push_frame(vector, i * FRAME)
            event = pipeline.predict(i * FRAME)
            if event:
                events.append(event)
        self.assertEqual(len(events), 1)
        self.assertEqual(len(pipeline.window), 3)

    def test_clear_buffer(self):
        """Clearing wipes window, filter memory and gate so nothing stale carries over."""
        pipeline = make_pipeline(self.classifier, capacity=3)
        for i in range(3):
            pipeline.process_detection(self.detection, i * FRAME)
        pipeline.clear_buffer()

        self.assertEqual(len(pipeline.window), 0)
        self.assertIs(pipeline.gate.state, GateState.IDLE)
        self.assertEqual(pipeline.gate.recent_labels(), [])
        self.assertIsNone(pipeline.filters.channel(FEATURE_LENGTH - 1).value)

    def test_clear_buffer_allows_immediate_repeat(self):
        pipeline = make_pipeline(self.classifier, capacity=1)
        events = [pipeline.process_detection(self.detection, i * FRAME) for i in range(3)]
        self.assertIsNotNone(events[-1])
        pipeline.clear_buffer()
        events = [pipeline.process_detection(self.detection, (i + 3) * FRAME) for i in range(3)]
        self.assertIsNotNone(events[-1])

    def test_reset_updates_mirror(self):
        flags = MirrorFlags.for_facing("user")
        self.pipeline.reset(flags)
        self.assertEqual(self.pipeline.mirror, flags)
        self.pipeline.reset()
        self.assertEqual(self.pipeline.mirror, flags)

    def test_from_config(self):
        cfg = load_config()
        pipeline = GesturePipeline.from_config(cfg, self.classifier)
        self.assertEqual(pipeline.window.capacity, cfg.classifier.sequence_length)
        self.assertEqual(pipeline.adapter.labels, cfg.classifier.labels)
        self.assertEqual(pipeline.gate.confidence_threshold, cfg.stability.confidence_threshold)
        self.assertTrue(pipeline.mirror.pose)

    def test_mismatched_components_rejected(self):
        builder = FeatureVectorBuilder()
        with self.assertRaises(ValueError):
            GesturePipeline(
                builder=builder,
                filters=FilterBank(size=10),
                window=TemporalWindow(30, builder.length),
                adapter=ClassificationAdapter(self.classifier, LABELS),
                gate=StabilityGate(),
            )


if __name__ == '__main__':
    unittest.main()

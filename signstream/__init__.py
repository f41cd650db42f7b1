"""
Sign Gesture Recognition Pipeline

Turns per-frame body and hand keypoints into debounced gesture events:
feature normalization, One Euro smoothing, a sliding window for the
sequence classifier, and a stability gate with cooldowns.
"""

__version__ = "0.1.0"
__author__ = "signstream contributors"

from .types import (
    NONE_LABEL,
    Landmark,
    DetectionResult,
    MirrorFlags,
    ClassificationResult,
    GestureEvent,
    GateState,
    DetectorProto,
    ClassifierProto,
    GestureSinkProto,
)
from .errors import (
    SignstreamError,
    DetectorError,
    DetectorTimeout,
    ClassifierError,
    ModelLoadError,
    FeatureLengthError,
)
from .config import load_config, Cfg
from .features import FeatureVectorBuilder, FEATURE_LENGTH, GROUP_LAYOUT
from .filters import OneEuroFilter, FilterBank, FilterChannelState
from .window import TemporalWindow
from .classifier import ClassificationAdapter, KerasSequenceClassifier
from .stability import StabilityGate, FingerSanityCheck
from .pipeline import GesturePipeline
from .detector import BoundedDetector
from .session import RecognitionSession
from .transcript import SignTranscript

__all__ = [
    "NONE_LABEL",
    "Landmark",
    "DetectionResult",
    "MirrorFlags",
    "ClassificationResult",
    "GestureEvent",
    "GateState",
    "DetectorProto",
    "ClassifierProto",
    "GestureSinkProto",
    "SignstreamError",
    "DetectorError",
    "DetectorTimeout",
    "ClassifierError",
    "ModelLoadError",
    "FeatureLengthError",
    "load_config",
    "Cfg",
    "FeatureVectorBuilder",
    "FEATURE_LENGTH",
    "GROUP_LAYOUT",
    "OneEuroFilter",
    "FilterBank",
    "FilterChannelState",
    "TemporalWindow",
    "ClassificationAdapter",
    "KerasSequenceClassifier",
    "StabilityGate",
    "FingerSanityCheck",
    "GesturePipeline",
    "BoundedDetector",
    "RecognitionSession",
    "SignTranscript",
]

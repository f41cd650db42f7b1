"""
Configuration management for the gesture recognition pipeline.
"""
import yaml
from pathlib import Path
from typing import Optional, Dict, Any, List
from dataclasses import dataclass, field


@dataclass
class CameraConfig:
    """Camera configuration settings."""
    index: int
    width: int
    height: int
    fps: int
    facing: str  # "user" (front) or "environment" (rear)


@dataclass
class DetectorConfig:
    """MediaPipe Holistic configuration settings."""
    model_complexity: int
    min_detection_confidence: float
    min_tracking_confidence: float
    timeout_ms: int


@dataclass
class FeaturesConfig:
    """Feature vector normalization settings."""
    normalize_hands: bool
    hand_scale_ref: int  # landmark index used with the wrist to measure hand size
    hand_target_distance: float
    mirror_hands: bool


@dataclass
class FilterConfig:
    """One Euro filter parameters shared by every feature channel."""
    freq: float
    min_cutoff: float
    beta: float
    d_cutoff: float


@dataclass
class ClassifierConfig:
    """Sequence classifier settings."""
    model_path: str
    labels: List[str]
    sequence_length: int


@dataclass
class SanityCheckConfig:
    """Fingers that must be extended for a label to be accepted."""
    label: str
    fingers: List[str]


@dataclass
class StabilityConfig:
    """Stability gate configuration."""
    confidence_threshold: float
    consistency_frames: int
    cooldown_ms: int
    sanity_checks: List[SanityCheckConfig] = field(default_factory=list)


@dataclass
class PipelineConfig:
    """Frame pipeline behaviour."""
    require_hands: bool


@dataclass
class TranscriptConfig:
    """Word composition settings."""
    pause_after_commit_ms: int


@dataclass
class DisplayConfig:
    """Display configuration settings."""
    show_landmarks: bool
    window_name: str


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str


@dataclass
class Cfg:
    """Main configuration class."""
    camera: CameraConfig
    detector: DetectorConfig
    features: FeaturesConfig
    filter: FilterConfig
    classifier: ClassifierConfig
    stability: StabilityConfig
    pipeline: PipelineConfig
    transcript: TranscriptConfig
    display: DisplayConfig
    logging: LoggingConfig


def load_config(path: Optional[str] = None) -> Cfg:
    """
    Load configuration from YAML file.

    Args:
        path: Path to config file. If None, uses the packaged config.default.yaml

    Returns:
        Configuration object with all settings
    """
    if path is None:
        path = Path(__file__).parent / "config.default.yaml"

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        data = yaml.safe_load(f)

    return _dict_to_config(data)


def _dict_to_config(data: Dict[str, Any]) -> Cfg:
    """Convert dictionary to configuration object."""
    camera_data = data['camera']
    camera = CameraConfig(
        index=camera_data['index'],
        width=camera_data['width'],
        height=camera_data['height'],
        fps=camera_data['fps'],
        facing=camera_data.get('facing', 'user')
    )
    if camera.facing not in ("user", "environment"):
        raise ValueError(f"camera.facing must be 'user' or 'environment', got {camera.facing!r}")

    det_data = data['detector']
    detector = DetectorConfig(
        model_complexity=det_data['model_complexity'],
        min_detection_confidence=det_data['min_detection_confidence'],
        min_tracking_confidence=det_data['min_tracking_confidence'],
        timeout_ms=det_data['timeout_ms']
    )

    feat_data = data['features']
    features = FeaturesConfig(
        normalize_hands=feat_data['normalize_hands'],
        hand_scale_ref=feat_data['hand_scale_ref'],
        hand_target_distance=feat_data['hand_target_distance'],
        mirror_hands=feat_data.get('mirror_hands', False)
    )

    filt_data = data['filter']
    filter_cfg = FilterConfig(
        freq=filt_data['freq'],
        min_cutoff=filt_data['min_cutoff'],
        beta=filt_data['beta'],
        d_cutoff=filt_data['d_cutoff']
    )

    clf_data = data['classifier']
    classifier = ClassifierConfig(
        model_path=clf_data['model_path'],
        labels=list(clf_data['labels']),
        sequence_length=clf_data['sequence_length']
    )
    if not classifier.labels:
        raise ValueError("classifier.labels must not be empty")

    stab_data = data['stability']
    sanity_checks = [
        SanityCheckConfig(label=item['label'], fingers=list(item['fingers']))
        for item in stab_data.get('sanity_checks') or []
    ]
    stability = StabilityConfig(
        confidence_threshold=stab_data['confidence_threshold'],
        consistency_frames=stab_data['consistency_frames'],
        cooldown_ms=stab_data['cooldown_ms'],
        sanity_checks=sanity_checks
    )
    if stability.consistency_frames < 1:
        raise ValueError("stability.consistency_frames must be at least 1")

    pipeline = PipelineConfig(
        require_hands=data['pipeline']['require_hands']
    )

    transcript = TranscriptConfig(
        pause_after_commit_ms=data['transcript']['pause_after_commit_ms']
    )

    display_data = data['display']
    display = DisplayConfig(
        show_landmarks=display_data['show_landmarks'],
        window_name=display_data['window_name']
    )

    logging_cfg = LoggingConfig(
        level=data.get('logging', {}).get('level', 'INFO')
    )

    return Cfg(
        camera=camera,
        detector=detector,
        features=features,
        filter=filter_cfg,
        classifier=classifier,
        stability=stability,
        pipeline=pipeline,
        transcript=transcript,
        display=display,
        logging=logging_cfg
    )

"""
Exceptions raised by the gesture recognition pipeline.
"""


class SignstreamError(Exception):
    """Base class for pipeline errors."""


class DetectorError(SignstreamError):
    """The keypoint detector failed to process a frame."""


class DetectorTimeout(DetectorError):
    """The keypoint detector did not answer within the bounded wait."""


class ClassifierError(SignstreamError):
    """The sequence classifier call failed (distinct from "no gesture")."""


class ModelLoadError(ClassifierError):
    """The classifier model could not be loaded."""


class FeatureLengthError(SignstreamError, ValueError):
    """A feature vector does not match the configured layout."""

    def __init__(self, expected: int, actual: int):
        super().__init__(f"Feature vector length {actual} != expected {expected}")
        self.expected = expected
        self.actual = actual

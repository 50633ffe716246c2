"""
Exception types raised by the detection pipeline.
"""


class YoloCamError(Exception):
    """Base class for all yolocam errors."""


class ModelLoadError(YoloCamError):
    """Pretrained weights could not be obtained or loaded."""


class PreprocessError(YoloCamError):
    """Input image could not be decoded, converted or resized."""


class InferenceError(YoloCamError):
    """Forward pass of the network failed."""


class UnknownClassError(YoloCamError):
    """Model output does not match the active label list."""


class TaskStateError(YoloCamError):
    """Lifecycle operation not allowed in the current task state."""

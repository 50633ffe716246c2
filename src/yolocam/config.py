"""
Configuration management using Pydantic for validation and type checking.
"""

import os
import yaml
from pathlib import Path
from typing import Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator


class ModelConfig(BaseModel):
    """Pretrained model configuration."""
    variant: Literal["tiny", "full"] = Field(
        default="tiny", description="tiny = YOLOv2-tiny VOC, full = YOLOv2 COCO"
    )
    cache_dir: str = Field(
        default="~/.cache/yolocam", description="Where cfg/weights are downloaded"
    )
    input_size: int = Field(default=416, ge=32, le=1280, description="Model input size")
    grid_size: int = Field(default=13, ge=1, description="Output grid cells per axis")
    use_cuda: bool = Field(default=False, description="Use the CUDA DNN backend if available")

    @field_validator("input_size")
    @classmethod
    def validate_input_size(cls, v: int) -> int:
        """YOLOv2 downsamples by 32."""
        if v % 32 != 0:
            raise ValueError("input_size must be a multiple of 32")
        return v


class DetectionConfig(BaseModel):
    """Detection loop configuration."""
    model_config = ConfigDict(validate_assignment=True)

    threshold: float = Field(
        default=0.5, ge=0.0, le=1.0, description="Confidence threshold"
    )
    filter_enabled: bool = Field(default=True, description="Apply NMS to candidates")
    iou_threshold: float = Field(
        default=0.5, ge=0.0, le=1.0, description="NMS IOU threshold"
    )
    on_error: Literal["retain", "clear"] = Field(
        default="retain", description="Keep or clear the last boxes when a cycle fails"
    )
    wait_timeout: float = Field(
        default=0.5, gt=0.0, description="Seconds the worker waits for new input"
    )


class SourceConfig(BaseModel):
    """Frame source used by the command line runner."""
    device: Union[int, str] = Field(default=0, description="Camera index, file path or URL")
    width: int = Field(default=1280, ge=320, le=3840, description="Capture width")
    height: int = Field(default=720, ge=240, le=2160, description="Capture height")


class StreamConfig(BaseModel):
    """Streaming server configuration."""
    enabled: bool = Field(default=True, description="Serve the annotated MJPEG stream")
    host: str = Field(default="0.0.0.0", description="Server bind address")
    port: int = Field(default=8080, ge=1024, le=65535, description="Server port")
    jpeg_quality: int = Field(
        default=80, ge=1, le=100, description="JPEG compression quality"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = Field(default="INFO", description="Logging level")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate logging level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"Invalid logging level. Must be one of {valid_levels}")
        return v


class Config(BaseModel):
    """Main configuration class."""
    model: ModelConfig = Field(default_factory=ModelConfig)
    detection: DetectionConfig = Field(default_factory=DetectionConfig)
    source: SourceConfig = Field(default_factory=SourceConfig)
    stream: StreamConfig = Field(default_factory=StreamConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


DEFAULT_CONFIG_PATH = "~/.config/yolocam/config.yaml"


def load_config(config_path: Optional[str] = None) -> Config:
    """
    Load configuration from YAML file with sensible defaults.

    Args:
        config_path: Path to configuration file. If None, uses default location.

    Returns:
        Config object with loaded settings.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH
    config_path = os.path.expanduser(config_path)

    # If config file doesn't exist, use defaults
    if not os.path.exists(config_path):
        return Config()

    try:
        with open(config_path, 'r') as f:
            config_dict = yaml.safe_load(f)

        # Handle empty file
        if config_dict is None:
            return Config()

        return Config(**config_dict)
    except Exception as e:
        raise RuntimeError(f"Failed to load configuration from {config_path}: {e}") from e


def save_example_config(output_path: str) -> None:
    """
    Save an example configuration file with comments.

    Args:
        output_path: Where to save the example config.
    """
    example_yaml = """# Pretrained model
model:
  variant: "tiny"                # tiny (20 VOC classes) or full (80 COCO classes)
  cache_dir: "~/.cache/yolocam"  # Downloaded cfg/weights
  input_size: 416                # Network input size in pixels
  grid_size: 13                  # Output grid cells per axis
  use_cuda: false                # Prefer the CUDA DNN backend

# Detection loop
detection:
  threshold: 0.5        # Minimum confidence for detections (0.0-1.0)
  filter_enabled: true  # Remove duplicate boxes with non-maximum suppression
  iou_threshold: 0.5    # Boxes overlapping more than this are suppressed
  on_error: "retain"    # retain or clear the last boxes when a frame fails
  wait_timeout: 0.5     # Seconds the worker waits for new input

# Frame source for the command line runner
source:
  device: 0      # Camera index, video file or stream URL
  width: 1280
  height: 720

# Streaming settings
stream:
  enabled: true
  host: "0.0.0.0"      # Bind to all interfaces
  port: 8080           # HTTP server port
  jpeg_quality: 80     # JPEG compression quality (1-100)

# Logging
logging:
  level: "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
"""

    Path(output_path).expanduser().parent.mkdir(parents=True, exist_ok=True)
    with open(Path(output_path).expanduser(), 'w') as f:
        f.write(example_yaml)

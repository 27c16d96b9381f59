"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


@dataclass
class CameraConfig:
    """Camera configuration."""
    backend: str = "opencv"
    device_id: Optional[Union[int, str]] = None
    facing_mode: str = "front"
    front_device_id: int = 0
    back_device_id: int = 1
    resolution: List[int] = field(default_factory=lambda: [640, 480])
    fps: int = 30
    mirror: bool = True
    open_timeout_ms: int = 5000
    read_timeout_ms: int = 1000

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CameraConfig":
        """Adapter: Create from config dictionary."""
        return cls(
            backend=d.get("backend", "opencv"),
            device_id=d.get("device_id"),
            facing_mode=d.get("facing_mode", "front"),
            front_device_id=d.get("front_device_id", 0),
            back_device_id=d.get("back_device_id", 1),
            resolution=d.get("resolution", [640, 480]),
            fps=d.get("fps", 30),
            mirror=d.get("mirror", True),
            open_timeout_ms=d.get("open_timeout_ms", 5000),
            read_timeout_ms=d.get("read_timeout_ms", 1000),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "backend": self.backend,
            "device_id": self.device_id,
            "facing_mode": self.facing_mode,
            "front_device_id": self.front_device_id,
            "back_device_id": self.back_device_id,
            "resolution": self.resolution,
            "fps": self.fps,
            "mirror": self.mirror,
            "open_timeout_ms": self.open_timeout_ms,
            "read_timeout_ms": self.read_timeout_ms,
        }


@dataclass
class DescriptorConfig:
    """ML descriptor detector configuration (YuNet + SFace models)."""
    detector_model: str = "models/face_detection_yunet_2023mar.onnx"
    recognizer_model: str = "models/face_recognition_sface_2021dec.onnx"
    input_size: int = 320
    score_threshold: float = 0.5
    nms_threshold: float = 0.3

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DescriptorConfig":
        return cls(
            detector_model=d.get("detector_model", "models/face_detection_yunet_2023mar.onnx"),
            recognizer_model=d.get("recognizer_model", "models/face_recognition_sface_2021dec.onnx"),
            input_size=d.get("input_size", 320),
            score_threshold=d.get("score_threshold", 0.5),
            nms_threshold=d.get("nms_threshold", 0.3),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "detector_model": self.detector_model,
            "recognizer_model": self.recognizer_model,
            "input_size": self.input_size,
            "score_threshold": self.score_threshold,
            "nms_threshold": self.nms_threshold,
        }


@dataclass
class DetectionConfig:
    """Detection configuration."""
    backend: str = "heuristic"
    sensitivity: int = 20
    descriptor: Optional[DescriptorConfig] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectionConfig":
        descriptor_dict = d.get("descriptor")
        descriptor = DescriptorConfig.from_dict(descriptor_dict) if descriptor_dict else None
        return cls(
            backend=d.get("backend", "heuristic"),
            sensitivity=d.get("sensitivity", 20),
            descriptor=descriptor,
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "backend": self.backend,
            "sensitivity": self.sensitivity,
        }
        if self.descriptor:
            d["descriptor"] = self.descriptor.to_dict()
        return d


@dataclass
class MatchingConfig:
    """
    Matcher policy.

    policy: "labeled" (per-label matcher, threshold 0.6), "nearest" (single
    closest signature, threshold 0.5), or "auto" to pick by detection backend.
    threshold: None keeps the policy default.
    """
    policy: str = "auto"
    threshold: Optional[float] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "MatchingConfig":
        return cls(
            policy=d.get("policy", "auto"),
            threshold=d.get("threshold"),
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"policy": self.policy}
        if self.threshold is not None:
            d["threshold"] = self.threshold
        return d


@dataclass
class LoopConfig:
    """Detection loop scheduling."""
    refresh_hz: float = 60.0
    max_consecutive_failures: int = 30
    stats_log_interval: float = 60.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "LoopConfig":
        return cls(
            refresh_hz=d.get("refresh_hz", 60.0),
            max_consecutive_failures=d.get("max_consecutive_failures", 30),
            stats_log_interval=d.get("stats_log_interval", 60.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "refresh_hz": self.refresh_hz,
            "max_consecutive_failures": self.max_consecutive_failures,
            "stats_log_interval": self.stats_log_interval,
        }


@dataclass
class RegistryConfig:
    """Signature import/export locations."""
    import_path: Optional[str] = None
    export_path: str = "data/face-signatures.json"
    export_on_exit: bool = False

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "RegistryConfig":
        return cls(
            import_path=d.get("import_path"),
            export_path=d.get("export_path", "data/face-signatures.json"),
            export_on_exit=d.get("export_on_exit", False),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "import_path": self.import_path,
            "export_path": self.export_path,
            "export_on_exit": self.export_on_exit,
        }


@dataclass
class WebConfig:
    """HTTP control surface."""
    enabled: bool = True
    host: str = "0.0.0.0"
    port: int = 5000

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WebConfig":
        return cls(
            enabled=d.get("enabled", True),
            host=d.get("host", "0.0.0.0"),
            port=d.get("port", 5000),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"enabled": self.enabled, "host": self.host, "port": self.port}


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    camera: CameraConfig = field(default_factory=CameraConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    matching: MatchingConfig = field(default_factory=MatchingConfig)
    loop: LoopConfig = field(default_factory=LoopConfig)
    registry: RegistryConfig = field(default_factory=RegistryConfig)
    web: WebConfig = field(default_factory=WebConfig)
    log_path: str = "logs/face_watch.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            camera=CameraConfig.from_dict(d.get("camera", {}) or {}),
            detection=DetectionConfig.from_dict(d.get("detection", {}) or {}),
            matching=MatchingConfig.from_dict(d.get("matching", {}) or {}),
            loop=LoopConfig.from_dict(d.get("loop", {}) or {}),
            registry=RegistryConfig.from_dict(d.get("registry", {}) or {}),
            web=WebConfig.from_dict(d.get("web", {}) or {}),
            log_path=d.get("log_path", "logs/face_watch.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary (for saving or passing to existing code)."""
        return {
            "camera": self.camera.to_dict(),
            "detection": self.detection.to_dict(),
            "matching": self.matching.to_dict(),
            "loop": self.loop.to_dict(),
            "registry": self.registry.to_dict(),
            "web": self.web.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }

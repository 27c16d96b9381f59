"""
Face Watch: camera-based face presence, motion detection and signature matching.

Opens the camera, runs the configured detector on every frame, matches face
descriptors against the enrolled signatures, and serves a small control API.

Usage:
    python src/main.py --config config/config.yaml --display

Arguments:
    --config: Path to configuration file
    --backend: Override detection.backend (descriptor, heuristic, motion)
    --import: Signatures file to load at startup
    --export: Write signatures to this file on exit
    --no-web: Do not start the HTTP control API
    --port: HTTP port (overrides web.port)
    --display: Show an annotated preview window
"""

import os
import sys
import argparse
import logging
import yaml
from typing import Dict, Any, Tuple, Optional

# Import local modules
from detection.factory import BACKENDS, create_detector
from errors import DeviceError
from matching.matcher import POLICIES, create_matcher, default_policy_for
from models.config import Config
from observation.base import FACING_MODES
from observation.opencv_source import create_source_from_config
from ops.logging import setup_logging
from pipeline.engine import create_loop_from_config
from registry.codec import export_to_file, import_from_file
from registry.registry import SignatureRegistry
from web.app import create_app
from web.state import state as web_state
import threading
import uvicorn

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    try:
        base_path = os.path.join(os.path.dirname(config_path), "default.yaml")
        base_cfg: Dict[str, Any] = {}
        if os.path.exists(base_path):
            with open(base_path, "r") as f:
                base_cfg = yaml.safe_load(f) or {}

        local_overrides_path = os.path.join(os.path.dirname(config_path), "config.yaml")
        local_cfg: Dict[str, Any] = {}
        if os.path.exists(local_overrides_path):
            with open(local_overrides_path, "r") as f:
                local_cfg = yaml.safe_load(f) or {}

        merged = _deep_merge(base_cfg, local_cfg)

        # Finally apply explicit config_path if it's not the local override file itself
        if os.path.exists(config_path) and os.path.abspath(config_path) != os.path.abspath(local_overrides_path):
            with open(config_path, "r") as f:
                explicit_cfg = yaml.safe_load(f) or {}
            merged = _deep_merge(merged, explicit_cfg)

        return merged
    except Exception as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    # Required top-level sections
    required_sections = ['camera', 'detection', 'matching', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    # Validate camera settings
    camera = config.get('camera') or {}
    backend = camera.get('backend', 'opencv')
    if backend != 'opencv':
        return False, "camera.backend must be: opencv"

    device_id = camera.get('device_id')
    if device_id is not None:
        if isinstance(device_id, bool) or not isinstance(device_id, (int, str)):
            return False, "camera.device_id must be an integer (index) or string (URL/path)"
        if isinstance(device_id, int) and device_id < 0:
            return False, "camera.device_id integer must be non-negative"

    if camera.get('facing_mode', 'front') not in FACING_MODES:
        return False, f"camera.facing_mode must be one of: {', '.join(FACING_MODES)}"

    if 'resolution' in camera:
        if not isinstance(camera['resolution'], list) or len(camera['resolution']) != 2:
            return False, "camera.resolution must be a list of [width, height]"
        if not all(isinstance(x, int) and x > 0 for x in camera['resolution']):
            return False, "camera.resolution values must be positive integers"

    if 'fps' in camera:
        if not isinstance(camera['fps'], int) or camera['fps'] <= 0:
            return False, "camera.fps must be a positive integer"

    # Validate detection settings
    detection = config.get('detection') or {}
    backend = detection.get('backend', 'heuristic')
    if backend not in BACKENDS:
        return False, f"detection.backend must be one of: {', '.join(BACKENDS)}"

    if 'sensitivity' in detection:
        sensitivity = detection['sensitivity']
        if isinstance(sensitivity, bool) or not isinstance(sensitivity, int) or not (5 <= sensitivity <= 50):
            return False, "detection.sensitivity must be an integer between 5 and 50"

    if backend == 'descriptor':
        dcfg = detection.get('descriptor') or {}
        for key in ('detector_model', 'recognizer_model'):
            if key in dcfg and (not isinstance(dcfg[key], str) or not dcfg[key]):
                return False, f"detection.descriptor.{key} must be a non-empty string"
        if 'score_threshold' in dcfg:
            score = dcfg['score_threshold']
            if not isinstance(score, (int, float)) or not (0 <= score <= 1):
                return False, "detection.descriptor.score_threshold must be between 0 and 1"

    # Validate matching settings
    matching = config.get('matching') or {}
    policy = matching.get('policy', 'auto')
    if policy != 'auto' and policy not in POLICIES:
        return False, f"matching.policy must be one of: auto, {', '.join(POLICIES)}"
    threshold = matching.get('threshold')
    if threshold is not None:
        if isinstance(threshold, bool) or not isinstance(threshold, (int, float)) or threshold <= 0:
            return False, "matching.threshold must be a positive number"

    # Optional loop settings
    loop = config.get('loop') or {}
    if 'refresh_hz' in loop and not isinstance(loop['refresh_hz'], (int, float)):
        return False, "loop.refresh_hz must be a number"
    if 'max_consecutive_failures' in loop:
        mcf = loop['max_consecutive_failures']
        if not isinstance(mcf, int) or mcf <= 0:
            return False, "loop.max_consecutive_failures must be a positive integer"

    # Optional web settings
    web = config.get('web') or {}
    if 'port' in web:
        if not isinstance(web['port'], int) or not (0 < web['port'] < 65536):
            return False, "web.port must be an integer between 1 and 65535"

    # Validate log settings
    if config['log_level'] not in VALID_LOG_LEVELS:
        return False, f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}"

    return True, None


def apply_cli_overrides(config: Dict[str, Any], args: argparse.Namespace) -> Dict[str, Any]:
    """Fold command-line overrides into the loaded configuration."""
    if args.backend:
        config.setdefault('detection', {})['backend'] = args.backend
    if args.port is not None:
        config.setdefault('web', {})['port'] = args.port
    if args.no_web:
        config.setdefault('web', {})['enabled'] = False
    if args.import_path:
        config.setdefault('registry', {})['import_path'] = args.import_path
    if args.export_path:
        config.setdefault('registry', {})['export_path'] = args.export_path
        config['registry']['export_on_exit'] = True
    return config


def resolve_matcher_policy(settings: Config) -> str:
    """'auto' picks the matcher that pairs with the detection backend."""
    if settings.matching.policy == 'auto':
        return default_policy_for(settings.detection.backend)
    return settings.matching.policy


def main():
    """Main application function."""
    # Parse command-line arguments
    parser = argparse.ArgumentParser(description='Face Watch - face presence and signature matching')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--backend', choices=BACKENDS,
                        help='Detection backend (overrides detection.backend)')
    parser.add_argument('--import', dest='import_path', type=str,
                        help='Signatures file to import at startup')
    parser.add_argument('--export', dest='export_path', type=str,
                        help='Export signatures to this file on exit')
    parser.add_argument('--no-web', action='store_true',
                        help='Do not start the HTTP control API')
    parser.add_argument('--port', type=int,
                        help='HTTP port (overrides web.port)')
    parser.add_argument('--display', action='store_true',
                        help='Enable visual display')
    args = parser.parse_args()

    # Load configuration
    config = apply_cli_overrides(load_config(args.config), args)

    # Validate configuration
    is_valid, error_msg = validate_config(config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    settings = Config.from_dict(config)

    # Setup logging
    setup_logging(settings.log_path, settings.log_level)

    logging.info(f"Starting Face Watch (detector={settings.detection.backend})")

    try:
        registry = SignatureRegistry()
        if settings.registry.import_path:
            import_from_file(registry, settings.registry.import_path)

        detector = create_detector(settings.detection)
        matcher = create_matcher(resolve_matcher_policy(settings), settings.matching.threshold)
        source = create_source_from_config(settings.camera)
        loop = create_loop_from_config(settings.loop, source, detector, registry, matcher, display=args.display)
    except (ValueError, OSError) as e:
        logging.error(f"Startup failed: {e}")
        sys.exit(1)

    # Initialize Web Interface
    web_state.set_loop(loop)

    if settings.web.enabled:
        def run_web_app():
            uvicorn.run(
                create_app(),
                host=settings.web.host,
                port=settings.web.port,
                log_level="info",
            )

        web_thread = threading.Thread(target=run_web_app, daemon=True)
        web_thread.start()
        logging.info(f"Web interface started on port {settings.web.port}")

    exit_code = 0
    try:
        loop.run()
    except DeviceError as e:
        logging.error(f"Camera unavailable: {e}")
        exit_code = 1
    finally:
        if settings.registry.export_on_exit:
            try:
                export_to_file(registry, settings.registry.export_path)
            except OSError as e:
                logging.error(f"Failed to export signatures: {e}")

    logging.info("Face Watch stopped")
    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()

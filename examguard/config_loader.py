"""
Configuration loader for exam session tuning.

Handles loading and validating session configuration files.
"""

import json
import sys
from pathlib import Path
from typing import Optional

from .models import SessionConfig


def default_config_path() -> Path:
    """config.json next to the executable, or at the project root when run as a script."""
    if getattr(sys, 'frozen', False):
        exe_dir = Path(sys.executable).parent
    else:
        exe_dir = Path(__file__).parent.parent
    return exe_dir / "config.json"


def load_config(config_path: Optional[Path] = None) -> SessionConfig:
    """
    Load session configuration from a JSON file.

    Args:
        config_path: Path to the configuration file. If None, looks for
                    'config.json' next to the executable/script.

    Returns:
        SessionConfig object with validated configuration

    Raises:
        ValueError: If config is invalid
    """
    if config_path is None:
        config_path = default_config_path()
    config_path = Path(config_path)

    if not config_path.exists():
        print(f"Warning: Config file '{config_path}' not found. Using default configuration.")
        return SessionConfig.default()

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in config file: {e}")
    except OSError as e:
        raise ValueError(f"Error reading config file: {e}")

    if not isinstance(data, dict):
        raise ValueError("Invalid configuration: expected a JSON object")

    try:
        config = SessionConfig.from_dict(data)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid configuration: {e}")

    is_valid, error_message = config.validate()
    if not is_valid:
        raise ValueError(f"Invalid configuration: {error_message}")

    return config


def create_sample_config(output_path: Path):
    """
    Create a sample configuration file for exam administrators.

    Args:
        output_path: Path where to save the sample config
    """
    sample_config = {
        "detention_seconds": 120,
        "detention_reduction_seconds": 30,
        "exam_tick_seconds": 1,
        "detention_tick_seconds": 1,
        "poll_interval_seconds": 3,
        "push_enabled": True,
        "poll_enabled": True,
        "language": "en",
        "_comment": "This is a sample session configuration. Adjust values as needed.",
        "_instructions": {
            "detention_seconds": "Lockout length after the student hides the page or leaves the window",
            "detention_reduction_seconds": "Seconds removed from the lockout per solved math challenge",
            "exam_tick_seconds": "How often the exam countdown is checked",
            "detention_tick_seconds": "How often the lockout countdown is checked",
            "poll_interval_seconds": "How often the full exam and student state is fetched",
            "push_enabled": "Listen for live updates from the exam server",
            "poll_enabled": "Also fetch state periodically (for networks that drop live updates)",
            "language": "Interface language: en or fr"
        },
        "_examples": [
            {
                "description": "Strict lockout, no challenge credit",
                "detention_seconds": 300,
                "detention_reduction_seconds": 0
            },
            {
                "description": "Poll-only for restrictive networks",
                "push_enabled": False,
                "poll_enabled": True,
                "poll_interval_seconds": 5
            }
        ]
    }

    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(sample_config, f, indent=2)

    print(f"Sample configuration created at: {output_path}")

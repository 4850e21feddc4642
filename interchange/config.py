"""
Environment-driven settings.

Values come from INTERCHANGE_* environment variables, after a .env file in
the working directory (or the nearest parent that has one) is loaded.
"""

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from interchange.convert import AUTO_DIAGRAM_TYPE
from interchange.taxonomy import DiagramType, Direction


@dataclass
class Settings:
    host: str = '0.0.0.0'
    port: int = 8000
    direction: str = Direction.TD.value
    diagram_type: str = DiagramType.FLOWCHART.value


def find_env_file(start: Optional[Path] = None) -> Optional[Path]:
    """Return the first .env found in start (default cwd) or its parents."""
    start = start or Path.cwd()
    for directory in [start, *start.parents]:
        candidate = directory / '.env'
        if candidate.exists():
            return candidate
    return None


def _warn(name: str, value: str, default) -> None:
    print(f"  Warning: invalid {name}={value!r}, using {default}", file=sys.stderr)


def load_settings(env_file: Optional[Path] = None) -> Settings:
    """Build Settings from the environment; invalid values fall back to defaults."""
    env_path = env_file or find_env_file()
    if env_path is not None:
        load_dotenv(env_path)

    defaults = Settings()
    settings = Settings(host=os.environ.get('INTERCHANGE_HOST', defaults.host))

    port = os.environ.get('INTERCHANGE_PORT')
    if port:
        try:
            settings.port = int(port)
        except ValueError:
            _warn('INTERCHANGE_PORT', port, defaults.port)

    direction = os.environ.get('INTERCHANGE_DIRECTION')
    if direction:
        if direction.upper() in {d.value for d in Direction}:
            settings.direction = direction.upper()
        else:
            _warn('INTERCHANGE_DIRECTION', direction, defaults.direction)

    diagram_type = os.environ.get('INTERCHANGE_DIAGRAM_TYPE')
    if diagram_type:
        allowed = {t.value for t in DiagramType} | {AUTO_DIAGRAM_TYPE}
        if diagram_type.lower() in allowed:
            settings.diagram_type = diagram_type.lower()
        else:
            _warn('INTERCHANGE_DIAGRAM_TYPE', diagram_type, defaults.diagram_type)

    return settings

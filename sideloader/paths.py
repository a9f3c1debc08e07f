"""
Well-known filesystem locations.

Everything lives under a single config directory so user data survives
reinstalls of the package itself.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


def get_config_dir() -> Path:
    """Get the per-user config directory for the current platform."""
    override = os.environ.get('SIDELOADER_HOME')
    if override:
        return Path(override)

    if os.name == 'nt':
        base = Path(os.environ.get('APPDATA', Path.home() / 'AppData' / 'Roaming'))
    elif 'darwin' in os.uname().sysname.lower():
        base = Path.home() / 'Library' / 'Application Support'
    else:
        base = Path(os.environ.get('XDG_CONFIG_HOME', Path.home() / '.config'))
    return base / 'sideloader'


@dataclass
class Paths:
    name_ns: str = 'sideloader'
    config: Path = field(default_factory=get_config_dir)

    @property
    def plugins(self) -> Path:
        return self.config / 'plugins'

    @property
    def state(self) -> Path:
        return self.config / 'state.json'


paths = Paths()

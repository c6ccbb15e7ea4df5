import sys
from pathlib import Path

def get_resource_path(relative_path: str) -> Path:
    """
    Get absolute path to a bundled resource, for dev checkouts, installed
    packages and PyInstaller builds alike.

    Args:
        relative_path: Relative path inside the package (e.g., "resources/templates")

    Returns:
        Absolute Path object
    """
    if hasattr(sys, '_MEIPASS'):
        # PyInstaller creates a temp folder and stores path in _MEIPASS
        base_path = Path(sys._MEIPASS) / "shovel_tracker"
    else:
        # This file is shovel_tracker/utils.py, so the package root is its parent
        base_path = Path(__file__).parent.absolute()

    return base_path / relative_path

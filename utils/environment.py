"""
Locate the external player (ffplay, shipped with FFmpeg).
"""

import logging
import os
import shutil
from pathlib import Path
from typing import List

from core.errors import MissingDependency

INSTALL_GUIDANCE = """\
FFmpeg (which provides ffplay) is required for audio playback. Please download and install it:
  Download from: https://ffmpeg.org/download.html

  Windows:
    1. Download the latest release from https://github.com/BtbN/FFmpeg-Builds/releases
    2. Extract the zip file
    3. Add the 'bin' folder to your system PATH
    4. Restart your terminal
    Or use a package manager: choco install ffmpeg | scoop install ffmpeg | winget install FFmpeg

  macOS:  brew install ffmpeg
  Linux:  sudo apt install ffmpeg  (or your distribution's equivalent)"""


def candidate_paths(name: str) -> List[Path]:
    """Well-known install locations checked when the player is not on PATH."""
    exe = name if name.lower().endswith(".exe") or os.name != "nt" else f"{name}.exe"
    candidates = []

    if os.name == "nt":
        for env in ("ProgramFiles", "ProgramFiles(x86)"):
            root = os.environ.get(env)
            if root:
                candidates.append(Path(root) / "ffmpeg" / "bin" / exe)
        local = os.environ.get("LOCALAPPDATA")
        if local:
            winget = Path(local) / "Microsoft" / "WinGet" / "Packages"
            if winget.is_dir():
                candidates.extend(sorted(winget.glob(f"Gyan.FFmpeg*/*/bin/{exe}")))
    else:
        for prefix in ("/opt/homebrew/bin", "/usr/local/bin", "/usr/bin", "/snap/bin"):
            candidates.append(Path(prefix) / exe)

    return candidates


def find_player(name: str = "ffplay") -> str:
    """Return the path of the player binary or raise MissingDependency."""
    logging.debug(f"[ENV] Checking for {name}")

    if os.path.dirname(name):
        if os.path.isfile(name) and os.access(name, os.X_OK):
            return name
    else:
        found = shutil.which(name)
        if found:
            logging.debug(f"[ENV] {name} found on PATH: {found}")
            return found

        for path in candidate_paths(name):
            if path.is_file():
                logging.debug(f"[ENV] {name} found at {path}")
                return str(path)

    raise MissingDependency(f"{name} not found!\n\n{INSTALL_GUIDANCE}")

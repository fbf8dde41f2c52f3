"""Hand-off of ranked video IDs to browsers, files and the download script"""

import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence

from ..core.exceptions import ConfigurationError, InvalidInputError
from ..models.video_models import WATCH_URL, WATCH_VIDEOS_URL

logger = logging.getLogger(__name__)


def _require_ids(video_ids: Sequence[str]) -> List[str]:
    ids = [video_id for video_id in video_ids if video_id]
    if not ids:
        raise InvalidInputError("No video IDs to export")
    return ids


def build_playlist_url(video_ids: Sequence[str]) -> str:
    """Anonymous ``watch_videos`` playlist URL for the given IDs, in order."""
    return WATCH_VIDEOS_URL.format(video_ids=",".join(_require_ids(video_ids)))


def build_watch_url(video_id: str) -> str:
    return WATCH_URL.format(video_id=video_id)


def build_download_command(
    video_ids: Sequence[str],
    script_path: str,
    channel_title: Optional[str] = None
) -> List[str]:
    """
    Build the argv for the audio download script.

    IDs come after ``--`` because some video IDs start with ``-``.
    """
    command = [str(script_path)]
    if channel_title and channel_title.strip():
        command += ["--channel", channel_title.strip()]
    command.append("--")
    command += _require_ids(video_ids)
    return command


def run_download(
    video_ids: Sequence[str],
    script_path: Optional[str],
    channel_title: Optional[str] = None
) -> int:
    """
    Run the download script in its own directory and wait for it.

    Returns:
        The script's exit code
    """
    if not script_path:
        raise ConfigurationError("DOWNLOAD_SCRIPT_PATH is not configured")

    script = Path(script_path).expanduser().resolve()
    if not script.is_file():
        raise ConfigurationError(f"Download script not found: {script}")

    command = build_download_command(video_ids, str(script), channel_title)
    logger.info(f"Starting download of {len(command) - command.index('--') - 1} videos via {script.name}")

    completed = subprocess.run(command, cwd=script.parent, check=False)
    if completed.returncode != 0:
        logger.warning(f"Download script exited with code {completed.returncode}")
    return completed.returncode


def write_id_file(video_ids: Sequence[str], path: str) -> Path:
    """Write one video ID per line, the format the script's ``--file`` option reads."""
    output = Path(path)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text("\n".join(_require_ids(video_ids)) + "\n", encoding="utf-8")
    return output

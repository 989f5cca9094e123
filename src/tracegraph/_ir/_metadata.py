"""Source metadata captured on IR nodes."""

import traceback
from dataclasses import dataclass, field
from pathlib import Path

_PACKAGE_DIR = Path(__file__).resolve().parent.parent


@dataclass(frozen=True, slots=True)
class SourceLocation:
    """A single frame of the call site that created a node."""

    file: str
    line: int
    function: str

    def __str__(self) -> str:
        return f"{self.function} ({self.file}:{self.line})"


@dataclass(frozen=True, slots=True)
class MetaData:
    """Metadata attached to a node at construction time.

    Attributes:
        scope: The scope path active when the node was created ("" if none).
        frame_info: Call-site chain, innermost frame first. Empty unless
            frame capture is enabled in the tracing options.

    """

    scope: str = ""
    frame_info: tuple[SourceLocation, ...] = field(default_factory=tuple)


def _is_internal(filename: str) -> bool:
    try:
        return Path(filename).resolve().is_relative_to(_PACKAGE_DIR)
    except OSError:
        return False


def capture_frames(limit: int) -> tuple[SourceLocation, ...]:
    """Capture the caller's stack, skipping frames that belong to tracegraph."""
    frames: list[SourceLocation] = []
    for frame in reversed(traceback.extract_stack()):
        if _is_internal(frame.filename):
            continue
        frames.append(SourceLocation(file=frame.filename, line=frame.lineno or 0, function=frame.name))
        if len(frames) >= limit:
            break
    return tuple(frames)

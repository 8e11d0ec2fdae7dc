"""
WebVTT / SRT text utilities.

Timestamps are treated as opaque strings throughout: the only rewrite
performed on them is the sub-second separator swap in ``vtt_to_srt``.
"""

import io
import re
import zipfile
from dataclasses import dataclass, field
from typing import Iterable, List, Tuple

from utils.exceptions import ProcessingError

VTT_HEADER = "WEBVTT"
TIME_SEPARATOR = "-->"

_HEADER_RE = re.compile(r"^WEBVTT[^\S\n]*(?:\n|$)(?:[^\S\n]*\n)*")
_BLOCK_SPLIT_RE = re.compile(r"\n(?:[^\S\n]*\n)+")
_FENCE_LANG_RE = re.compile(r"```vtt", re.IGNORECASE)


@dataclass
class Cue:
    """One time range plus its text lines, for read-only display."""
    start: str
    end: str
    lines: List[str] = field(default_factory=list)

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


def _normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def _split_blocks(text: str) -> List[str]:
    return _BLOCK_SPLIT_RE.split(text)


def vtt_to_srt(vtt: str) -> str:
    """
    Convert WebVTT text to the minimal SRT variant used for downloads.

    The header is dropped, blocks without a time line are discarded and
    the time line's dots become commas. Cue index numbers are NOT added.
    Never raises; returns an empty string for empty or unusable input.
    """
    if not vtt:
        return ""

    body = _HEADER_RE.sub("", _normalize_newlines(vtt), count=1)

    converted = []
    for block in _split_blocks(body):
        lines = block.strip("\n").split("\n")
        time_idx = next(
            (i for i, line in enumerate(lines) if TIME_SEPARATOR in line), None
        )
        if time_idx is None:
            continue

        lines[time_idx] = lines[time_idx].replace(".", ",")
        srt_block = "\n".join(lines)
        if srt_block.strip():
            converted.append(srt_block)

    return "\n\n".join(converted)


def clean_vtt(raw: str) -> str:
    """
    Sanitize model output into WebVTT.

    Strips markdown code fences the model sometimes adds despite the prompt,
    and guarantees the text starts with the WEBVTT header.

    Raises:
        ProcessingError: If nothing is left after cleanup
    """
    text = _FENCE_LANG_RE.sub("", raw or "").replace("```", "").strip()
    if not text:
        raise ProcessingError("No text generated from the model.")

    if not text.startswith(VTT_HEADER):
        text = f"{VTT_HEADER}\n\n{text}"
    return text


def parse_cues(vtt: str) -> List[Cue]:
    """Parse WebVTT text into cues for the read-only viewer."""
    cues = []
    for block in _split_blocks(_normalize_newlines(vtt or "")):
        lines = block.split("\n")
        time_idx = next(
            (i for i, line in enumerate(lines) if TIME_SEPARATOR in line), None
        )
        if time_idx is None:
            continue

        start, _, end = lines[time_idx].partition(TIME_SEPARATOR)
        # cue identifiers precede the time line, text follows it
        text_lines = [line for line in lines[time_idx + 1:] if line.strip()]
        cues.append(Cue(start=start.strip(), end=end.strip(), lines=text_lines))
    return cues


def export_basename(filename: str) -> str:
    """Filename without its last extension ("talk.part1.mp3" -> "talk.part1")."""
    stem, dot, _ = filename.rpartition(".")
    return stem if dot and stem else filename


def format_file_size(size: int) -> str:
    """Human readable size, e.g. 1536 -> '1.5 KB'."""
    if size <= 0:
        return "0 Bytes"

    units = ["Bytes", "KB", "MB", "GB"]
    value = float(size)
    i = 0
    while value >= 1024 and i < len(units) - 1:
        value /= 1024
        i += 1
    return f"{round(value, 2):g} {units[i]}"


def build_zip_archive(files: Iterable[Tuple[str, str]]) -> bytes:
    """Pack (name, content) pairs into an in-memory ZIP archive."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, content in files:
            archive.writestr(name, content)
    return buffer.getvalue()

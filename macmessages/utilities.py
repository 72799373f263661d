"""Shared helpers: osascript runner, vCard photos, hex dumps and durations."""

from __future__ import annotations

import base64
import math
import os
import subprocess
from datetime import datetime, timedelta, timezone
from pathlib import Path

FITNESS_RECEIVER = "$(kIMTranscriptPluginBreadcrumbTextReceiverIdentifier)"

APPLE_EPOCH = datetime(2001, 1, 1, tzinfo=timezone.utc)
APPLE_EPOCH_UNIX = int(APPLE_EPOCH.timestamp())
APPLE_EPOCH_UNIX_NANO = APPLE_EPOCH_UNIX * 1_000_000_000


class OsascriptError(RuntimeError):
    """Raised when an osascript invocation fails."""

    def __init__(self, message: str, stdout: str = "", stderr: str = "") -> None:
        super().__init__(message)
        self.stdout = stdout
        self.stderr = stderr


def make_messages_portal_id(user_login_id: str, chat_guid: str) -> str:
    """Build the portal identifier for a chat owned by a login."""
    return f"MessagesID:{user_login_id}:{chat_guid}"


def run_osascript(script: str, *args: str) -> tuple[str, str]:
    """Run an AppleScript through osascript and return (stdout, stderr).

    Raises OsascriptError if the process cannot be started or exits non-zero.
    """
    command = ["osascript", "-", *args]
    try:
        completed = subprocess.run(
            command,
            input=script,
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as exc:
        raise OsascriptError(f"failed to run osascript: {exc}") from exc
    stdout = completed.stdout or ""
    stderr = completed.stderr or ""
    if completed.returncode != 0:
        raise OsascriptError(
            f"failed to wait for osascript: exit code {completed.returncode} "
            f"(stderr: {stderr.strip()})",
            stdout=stdout,
            stderr=stderr,
        )
    return stdout, stderr


def get_image_from_vcard(vcard: str) -> bytes:
    """Extract and decode the base64 PHOTO property of a vCard."""
    collecting = False
    collected: list[str] = []
    for line in vcard.split("\n"):
        if collecting:
            if not line.startswith(" "):
                break
            collected.append(line.strip())
            continue
        if line.startswith("PHOTO;"):
            collecting = True
            parts = line.split(":")
            if len(parts) < 2:
                raise ValueError("malformed PHOTO line in vcard")
            collected.append(parts[1])
    encoded = "".join(collected)
    if not encoded:
        raise ValueError("did not find a photo in vcard")
    return base64.b64decode(encoded, validate=True)


def full_name(first_name: str, last_name: str) -> str:
    """Join a first and last name with a single space."""
    return f"{first_name} {last_name}"


def replace_home_directory(path: str) -> str:
    """Expand a leading "~/" to the current user's home directory."""
    if path.startswith("~/"):
        return os.path.join(str(Path.home()), path[2:])
    return path


def dump(data: bytes) -> list[str]:
    """Render bytes as xxd-style lines of 16 bytes each."""
    lines: list[str] = []
    for base in range(0, len(data), 16):
        chunk = data[base:base + 16]
        hex_parts = [f"{byte:02x}" for byte in chunk]
        hex_parts.extend(["  "] * (16 - len(chunk)))
        text = "".join(chr(byte) if 32 <= byte < 127 else "." for byte in chunk)
        lines.append(" ".join([f"{base:08x}:", *hex_parts, " " + text]))
    return lines


def _round_seconds(seconds: float) -> int:
    if seconds < 0:
        return -math.floor(-seconds + 0.5)
    return math.floor(seconds + 0.5)


def date_time_diff(start: datetime, end: datetime) -> str:
    """Describe the time from start to end, or "" if end precedes start."""
    rounded = _round_seconds((end - start).total_seconds())
    if rounded < 0:
        return ""
    return humanize_duration(timedelta(seconds=rounded))


def humanize_duration(duration: timedelta) -> str:
    """Describe a duration in days, hours, minutes and seconds."""
    total = duration.total_seconds()
    hours_total = total / 3600
    chunks = (
        ("day", int(hours_total / 24)),
        ("hour", int(math.fmod(hours_total, 24))),
        ("minute", int(math.fmod(total / 60, 60))),
        ("second", int(math.fmod(total, 60))),
    )
    parts = []
    for name, amount in chunks:
        if amount == 0:
            continue
        parts.append(f"{amount} {name}" if amount == 1 else f"{amount} {name}s")
    return " ".join(parts)


def get_mention_text(username: str, server: str, name: str) -> str:
    """Build the HTML link that mentions a Matrix user."""
    return f'<a href="https://matrix.to/#/@{username}:{server}">@{name}</a>'
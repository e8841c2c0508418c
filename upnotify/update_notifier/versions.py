from __future__ import annotations

import re

from packaging.version import InvalidVersion, Version

_SEMVER = re.compile(
    r"^v?(?P<release>\d+(?:\.\d+)*)"
    r"(?:-(?P<pre>[0-9A-Za-z][0-9A-Za-z.-]*))?"
    r"(?:\+[0-9A-Za-z.-]+)?$"
)
_PRE_LABEL = re.compile(r"^(?P<label>[A-Za-z]*)(?P<number>\d*)$")
_PEP440_PRE_TAGS = {
    "a": "a",
    "alpha": "a",
    "b": "b",
    "beta": "b",
    "c": "rc",
    "rc": "rc",
    "pre": "rc",
    "preview": "rc",
}


def _pep440_prerelease(pre: str) -> str:
    # semver ranks "1.0.0-rc.1" below "1.0.0"; PEP 440 only does so for pre/dev
    # segments, so labels without a PEP 440 tag (canary, next, nightly) become .devN
    head, *rest = re.split(r"[.-]", pre)
    label, number = "", ""
    if match := _PRE_LABEL.match(head):
        label, number = match["label"].lower(), match["number"]
    if not number:
        number = next((part for part in rest if part.isdigit()), "0")
    if tag := _PEP440_PRE_TAGS.get(label):
        return f"{tag}{int(number)}"
    return f".dev{int(number)}"


def parse_version(raw: str) -> Version | None:
    """Parse a semver or PEP 440 version string.

    Semver build metadata (``+build``) does not take part in ordering and is
    dropped.
    """
    candidate = raw.strip()
    if match := _SEMVER.match(candidate):
        candidate = match["release"]
        if pre := match["pre"]:
            candidate += _pep440_prerelease(pre)
    try:
        return Version(candidate)
    except InvalidVersion:
        return None


def is_newer(candidate: str, current: str) -> bool:
    candidate_version = parse_version(candidate)
    current_version = parse_version(current)
    if candidate_version is None or current_version is None:
        return False
    return candidate_version > current_version

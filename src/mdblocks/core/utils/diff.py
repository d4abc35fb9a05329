"""Line diffs between two conversion passes of the same document"""

import difflib


def drift_counts(before: str, after: str) -> dict[str, int]:
    """Count lines added, removed and kept when going from before to after."""
    ops = difflib.SequenceMatcher(None, before.splitlines(), after.splitlines()).get_opcodes()
    counts = {"added": 0, "deleted": 0, "unchanged": 0}
    for tag, i1, i2, j1, j2 in ops:
        if tag == "equal":
            counts["unchanged"] += i2 - i1
            continue
        if tag in ("replace", "delete"):
            counts["deleted"] += i2 - i1
        if tag in ("replace", "insert"):
            counts["added"] += j2 - j1
    return counts


def unified_diff(before: str, after: str, from_label: str = "before", to_label: str = "after") -> list[str]:
    """Unified diff lines (newline-terminated); empty when the texts match."""
    lines = difflib.unified_diff(
        before.splitlines(keepends=True),
        after.splitlines(keepends=True),
        fromfile=from_label,
        tofile=to_label,
    )
    return [line if line.endswith("\n") else line + "\n" for line in lines]

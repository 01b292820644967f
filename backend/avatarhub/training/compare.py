"""Side-by-side comparison of two prompt versions."""
from __future__ import annotations

import difflib
from typing import Any, Dict, List


def _set_diff(old: List[str], new: List[str]) -> Dict[str, List[str]]:
    old_set, new_set = set(old or []), set(new or [])
    return {
        "added": [x for x in new or [] if x not in old_set],
        "removed": [x for x in old or [] if x not in new_set],
        "unchanged": [x for x in new or [] if x in old_set],
    }


def compare_versions(base: Dict[str, Any], other: Dict[str, Any]) -> Dict[str, Any]:
    base_lines = (base.get("system_prompt") or "").splitlines()
    other_lines = (other.get("system_prompt") or "").splitlines()
    diff = list(
        difflib.unified_diff(
            base_lines,
            other_lines,
            fromfile=base.get("version_number") or "base",
            tofile=other.get("version_number") or "other",
            lineterm="",
        )
    )
    added = sum(1 for line in diff if line.startswith("+") and not line.startswith("+++"))
    removed = sum(1 for line in diff if line.startswith("-") and not line.startswith("---"))

    return {
        "base": {"id": base["id"], "version_number": base.get("version_number")},
        "other": {"id": other["id"], "version_number": other.get("version_number")},
        "system_prompt": {
            "diff": diff,
            "lines_added": added,
            "lines_removed": removed,
            "identical": not diff,
        },
        "personality_traits": _set_diff(base.get("personality_traits"), other.get("personality_traits")),
        "behavior_rules": _set_diff(base.get("behavior_rules"), other.get("behavior_rules")),
    }

from __future__ import annotations

import fnmatch
from typing import Iterable


def vm_matches(vm_name: str, pattern: str) -> bool:
    vm_name = (vm_name or "").strip()
    pattern = (pattern or "").strip()
    if not vm_name or not pattern:
        return False
    return fnmatch.fnmatchcase(vm_name, pattern)


def is_vm_selected(vm_name: str, include: Iterable[str], exclude: Iterable[str]) -> bool:
    """Exclude wins over include; an empty include list selects everything."""
    if any(vm_matches(vm_name, p) for p in exclude or []):
        return False
    include = list(include or [])
    if include:
        return any(vm_matches(vm_name, p) for p in include)
    return True

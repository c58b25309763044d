"""
Diff Engine - Structural diff between two normalized artifacts.

Sequences are aligned on whole references first (longest matching blocks),
so one missing reference shows up as a single removal instead of a cascade
of field changes. References that differ at the same aligned position are
then compared field by field.
"""

import json
from difflib import SequenceMatcher
from typing import Any, List, Sequence, Tuple

from packs_parity.domain.reference import NormalizedArtifact, Reference
from packs_parity.domain.result import Added, Changed, DiffEntry, PathSegment, Removed


def _identity_key(reference: Reference) -> str:
    return json.dumps(reference.to_dict(), sort_keys=True, ensure_ascii=False, default=repr)


def _leaf_differs(old: Any, new: Any) -> bool:
    # JSON keeps true, 1 and 1.0 apart; Python equality does not
    return type(old) is not type(new) or old != new


class DiffEngine:
    """Compute ordered DiffEntry sequences. Stateless and thread-safe."""

    def diff(
        self, baseline: NormalizedArtifact, experimental: NormalizedArtifact
    ) -> Tuple[DiffEntry, ...]:
        """
        Diff two normalized artifacts.

        Paths of removals and changes index into the baseline references,
        paths of additions into the experimental references.

        Args:
            baseline: Normalized baseline artifact
            experimental: Normalized experimental artifact

        Returns:
            Tuple of diff entries in position order; empty when identical
        """
        return tuple(self.diff_references(baseline.references, experimental.references))

    def diff_references(
        self, old_refs: Sequence[Reference], new_refs: Sequence[Reference]
    ) -> List[DiffEntry]:
        entries: List[DiffEntry] = []

        matcher = SequenceMatcher(
            None,
            [_identity_key(ref) for ref in old_refs],
            [_identity_key(ref) for ref in new_refs],
            autojunk=False,
        )

        for tag, i1, i2, j1, j2 in matcher.get_opcodes():
            if tag == "equal":
                continue

            paired = min(i2 - i1, j2 - j1) if tag == "replace" else 0
            for offset in range(paired):
                entries.extend(
                    self.diff_values(
                        (i1 + offset,),
                        old_refs[i1 + offset].to_dict(),
                        new_refs[j1 + offset].to_dict(),
                    )
                )
            for index in range(i1 + paired, i2):
                entries.append(Removed(path=(index,), old_value=old_refs[index].to_dict()))
            for index in range(j1 + paired, j2):
                entries.append(Added(path=(index,), new_value=new_refs[index].to_dict()))

        return entries

    def diff_values(
        self, path: Tuple[PathSegment, ...], old: Any, new: Any
    ) -> List[DiffEntry]:
        """Recursively diff two JSON-like values found at ``path``."""
        if isinstance(old, dict) and isinstance(new, dict):
            entries: List[DiffEntry] = []
            for key, old_value in old.items():
                if key not in new:
                    entries.append(Removed(path=path + (key,), old_value=old_value))
                else:
                    entries.extend(self.diff_values(path + (key,), old_value, new[key]))
            for key, new_value in new.items():
                if key not in old:
                    entries.append(Added(path=path + (key,), new_value=new_value))
            return entries

        if isinstance(old, list) and isinstance(new, list):
            entries = []
            for index, (old_item, new_item) in enumerate(zip(old, new)):
                entries.extend(self.diff_values(path + (index,), old_item, new_item))
            for index in range(len(new), len(old)):
                entries.append(Removed(path=path + (index,), old_value=old[index]))
            for index in range(len(old), len(new)):
                entries.append(Added(path=path + (index,), new_value=new[index]))
            return entries

        if _leaf_differs(old, new):
            return [Changed(path=path, old_value=old, new_value=new)]
        return []

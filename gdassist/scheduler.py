"""Orders dependency entries, fills gaps with placeholders and drives the writes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from .analyzers import extract_references
from .logging import get_logger
from .materializer import Materializer
from .models import DependencyEntry, DependencyTable, EntryKind, MaterializationReport
from .paths import SCRIPT_EXTENSION, kind_for_path, with_extension
from .placeholders import PlaceholderFactory
from .storage import Storage
from .upgrade import LegacyFormatUpgrader, is_legacy

_KIND_RANK: Dict[EntryKind, int] = {
    EntryKind.RESOURCE: 0,
    EntryKind.SCRIPT: 1,
    EntryKind.SCENE: 2,
}


@dataclass
class ScheduleResult:
    """Processing order, one report per attempted write and any cycles seen."""

    order: List[str] = field(default_factory=list)
    reports: List[MaterializationReport] = field(default_factory=list)
    cycles: List[List[str]] = field(default_factory=list)


class DependencyGraphScheduler:
    """Resources first, then scripts, then scenes by ascending in-degree.

    Missing references get placeholders spliced into their own kind's group
    so the ordering invariant survives insertion. Cycles are reported, never
    broken.
    """

    def __init__(
        self,
        storage: Storage,
        *,
        materializer: Optional[Materializer] = None,
        upgrader: Optional[LegacyFormatUpgrader] = None,
        placeholders: Optional[PlaceholderFactory] = None,
        mark_failed_as_materialized: bool = False,
        upgrade_legacy: bool = True,
    ) -> None:
        self.storage = storage
        self.materializer = materializer or Materializer(storage)
        self.upgrader = upgrader or LegacyFormatUpgrader()
        self.placeholders = placeholders or PlaceholderFactory()
        self.mark_failed_as_materialized = mark_failed_as_materialized
        self.upgrade_legacy = upgrade_legacy
        self.logger = get_logger("scheduler")

    def process(self, table: DependencyTable) -> ScheduleResult:
        if self.upgrade_legacy:
            self.upgrade_legacy_scenes(table)
        self._reclassify(table)
        counts = self.reference_counts(table)
        order = self.build_order(table, counts)
        cycles = self.find_cycles(table)
        reports = self._walk(table, order)
        self.logger.info("Processed %d entries (%d reports)", len(order), len(reports))
        return ScheduleResult(order=order, reports=reports, cycles=cycles)

    def upgrade_legacy_scenes(self, table: DependencyTable) -> List[str]:
        """Upgrade legacy scene text in place; return the upgraded paths."""
        upgraded: List[str] = []
        for entry in table.entries():
            if entry.kind is not EntryKind.SCENE or not entry.content or not is_legacy(entry.content):
                continue
            entry.content = self.upgrader.upgrade(entry.content)
            entry.references = extract_references(EntryKind.SCENE, entry.content)
            upgraded.append(entry.path)
            self.logger.info("Upgraded legacy scene %s", entry.path)
        return upgraded

    @staticmethod
    def reference_counts(table: DependencyTable) -> Dict[str, int]:
        counts: Dict[str, int] = {path: 0 for path in table}
        for entry in table.entries():
            for reference in entry.references:
                if reference in counts:
                    counts[reference] += 1
        return counts

    @staticmethod
    def build_order(table: DependencyTable, counts: Dict[str, int]) -> List[str]:
        entries = table.entries()
        resources = [entry.path for entry in entries if entry.kind is EntryKind.RESOURCE]
        scripts = [entry.path for entry in entries if entry.kind is EntryKind.SCRIPT]
        # sorted() is stable, so equal counts keep table order.
        scenes = sorted(
            (entry.path for entry in entries if entry.kind is EntryKind.SCENE),
            key=lambda path: counts.get(path, 0),
        )
        return resources + scripts + scenes

    def find_cycles(self, table: DependencyTable) -> List[List[str]]:
        """Depth-first search over in-table references; each cycle is logged once."""
        cycles: List[List[str]] = []
        seen_cycles: Set[frozenset] = set()
        state: Dict[str, int] = {}
        stack: List[str] = []

        def visit(path: str) -> None:
            state[path] = 1
            stack.append(path)
            for reference in sorted(table[path].references):
                if reference not in table:
                    continue
                if state.get(reference) == 1:
                    cycle = stack[stack.index(reference):] + [reference]
                    key = frozenset(cycle)
                    if key not in seen_cycles:
                        seen_cycles.add(key)
                        cycles.append(cycle)
                        self.logger.warning("Dependency cycle detected: %s", " -> ".join(cycle))
                elif reference not in state:
                    visit(reference)
            stack.pop()
            state[path] = 2

        for path in table:
            if path not in state:
                visit(path)
        return cycles

    def _walk(self, table: DependencyTable, order: List[str]) -> List[MaterializationReport]:
        reports: List[MaterializationReport] = []
        attempted: Set[str] = set()
        index = 0
        while index < len(order):
            entry = table[order[index]]
            earliest = self._splice_placeholders(entry, table, order, index, attempted)
            if earliest is not None and earliest <= index:
                # Process the freshly spliced placeholder before coming back.
                index = earliest
                continue
            if entry.path not in attempted:
                attempted.add(entry.path)
                report = self._materialize(entry, table)
                if report is not None:
                    reports.append(report)
            index += 1
        return reports

    def _splice_placeholders(
        self,
        entry: DependencyEntry,
        table: DependencyTable,
        order: List[str],
        index: int,
        attempted: Set[str],
    ) -> Optional[int]:
        earliest: Optional[int] = None
        current = index
        for reference in sorted(entry.references):
            if reference in table or reference in attempted or self._exists(reference):
                continue
            kind = kind_for_path(reference)
            if not self.placeholders.supports(reference, kind):
                attempted.add(reference)
                self.logger.info("No placeholder for %s referenced by %s; skipping", reference, entry.path)
                continue
            placeholder = DependencyEntry(path=reference, kind=kind)
            table.add(placeholder)
            position = self._insert_position(placeholder.kind, order, table, current)
            order.insert(position, reference)
            if position <= current:
                current += 1
            earliest = position if earliest is None else min(earliest, position)
            self.logger.debug("Placeholder %s spliced at %d for %s", reference, position, entry.path)
        return earliest

    @staticmethod
    def _insert_position(kind: EntryKind, order: List[str], table: DependencyTable, current: int) -> int:
        rank = _KIND_RANK[kind]
        lower = sum(1 for path in order if _KIND_RANK[table[path].kind] < rank)
        upper = sum(1 for path in order if _KIND_RANK[table[path].kind] <= rank)
        return min(max(current, lower), upper)

    def _materialize(self, entry: DependencyEntry, table: DependencyTable) -> Optional[MaterializationReport]:
        if entry.materialized:
            return None
        content = entry.content
        if not content:
            if not self.placeholders.supports(entry.path, entry.kind):
                self.logger.info("No placeholder for %s; skipping", entry.path)
                return None
            content = self.placeholders.render(
                entry.path, entry.kind, script_path=self._companion_script(entry, table)
            )
            entry.content = content
        report = self.materializer.write(entry.path, content)
        if report.ok or self.mark_failed_as_materialized:
            entry.mark_materialized()
        return report

    def _companion_script(self, entry: DependencyEntry, table: DependencyTable) -> Optional[str]:
        if entry.kind is not EntryKind.SCENE:
            return None
        script_path = with_extension(entry.path, SCRIPT_EXTENSION)
        if script_path in table or self._exists(script_path):
            return script_path
        return None

    def _exists(self, path: str) -> bool:
        try:
            return self.storage.exists(path)
        except OSError as exc:
            self.logger.warning("Cannot check %s: %s", path, exc)
            return False

    @staticmethod
    def _reclassify(table: DependencyTable) -> None:
        # Resource entries carrying a script or scene extension are ordered by that extension.
        for entry in table.entries():
            if entry.kind is EntryKind.RESOURCE and kind_for_path(entry.path) is not EntryKind.RESOURCE:
                entry.kind = kind_for_path(entry.path)


__all__ = ["DependencyGraphScheduler", "ScheduleResult"]

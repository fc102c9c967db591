"""End-to-end materialisation of one assistant response."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from .analyzers import extract_references
from .config import STRATEGY_FAST, MaterializeConfig
from .extractors import FastBlockExtractor, get_extractor
from .logging import get_logger
from .materializer import Materializer
from .models import (
    CodeBlock,
    DependencyEntry,
    DependencyTable,
    EntryKind,
    MaterializationReport,
    WriteOutcome,
)
from .paths import file_name
from .placeholders import PlaceholderFactory
from .scanner import DependencyScanner
from .scheduler import DependencyGraphScheduler
from .storage import Storage
from .uid import UidGenerator
from .upgrade import LegacyFormatUpgrader
from .validators import SceneValidator, ValidationError


@dataclass
class PipelineResult:
    """Everything one run produced, in processing order."""

    blocks: List[CodeBlock] = field(default_factory=list)
    order: List[str] = field(default_factory=list)
    reports: List[MaterializationReport] = field(default_factory=list)
    implied: List[str] = field(default_factory=list)
    cycles: List[List[str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(report.ok for report in self.reports)

    @property
    def errors(self) -> List[MaterializationReport]:
        return [report for report in self.reports if not report.ok]

    def modified_files(self) -> List[str]:
        return [report.path for report in self.reports if report.ok]

    def status_lines(self) -> List[str]:
        return [report.describe() for report in self.reports]

    def summary(self) -> str:
        """Human-readable outcome: the modified files, or the errors when any write failed."""
        if not self.reports:
            return "No files were written."
        if self.ok:
            lines = ["Code applied successfully.", "", "Modified files:"]
            lines.extend(f"- {file_name(path)}" for path in self.modified_files())
            return "\n".join(lines)
        lines = [f"{len(self.errors)} of {len(self.reports)} files could not be written:"]
        lines.extend(f"- {report.describe()}" for report in self.errors)
        return "\n".join(lines)


class MaterializationPipeline:
    """Turns a response into files using either the dependency-aware or the fast strategy.

    A fresh dependency table is built for every call, so nothing leaks between
    responses.
    """

    def __init__(
        self,
        storage: Storage,
        *,
        config: Optional[MaterializeConfig] = None,
        uid_generator: Optional[UidGenerator] = None,
        clock: Optional[Callable[[], float]] = None,
        templates_dir: Optional[Path] = None,
    ) -> None:
        self.storage = storage
        self.config = config or MaterializeConfig()
        self.clock = clock
        uid_generator = uid_generator or UidGenerator()
        self.materializer = Materializer(storage)
        self.scanner = DependencyScanner(storage)
        self.scheduler = DependencyGraphScheduler(
            storage,
            materializer=self.materializer,
            upgrader=LegacyFormatUpgrader(uid_generator),
            placeholders=PlaceholderFactory(uid_generator, templates_dir),
            mark_failed_as_materialized=self.config.mark_failed_as_materialized,
            upgrade_legacy=self.config.upgrade_legacy,
        )
        self.validator = SceneValidator()
        self.logger = get_logger("pipeline")

    def run(self, response: str) -> PipelineResult:
        """Dispatch on the configured strategy."""
        if self.config.strategy == STRATEGY_FAST:
            return self.apply_fast(response)
        return self.apply(response)

    def apply(self, response: str) -> PipelineResult:
        extractor = get_extractor(self.config.extractor, clock=self.clock)
        blocks = extractor.extract(response)
        if not blocks:
            self.logger.info("No code blocks found in response")
            return PipelineResult()

        table = DependencyTable()
        # Scan first so code blocks overwrite any scanned placeholder for the same path.
        implied = self.scanner.scan(response, table)
        for block in blocks:
            table.add(self._entry_for_block(block))

        schedule = self.scheduler.process(table)
        return PipelineResult(
            blocks=blocks,
            order=schedule.order,
            reports=schedule.reports,
            implied=implied,
            cycles=schedule.cycles,
        )

    def apply_fast(self, response: str) -> PipelineResult:
        """Write blocks in response order; scenes must pass validation first."""
        blocks = FastBlockExtractor(clock=self.clock).extract(response)
        reports: List[MaterializationReport] = []
        for block in blocks:
            if block.inferred_type is EntryKind.SCENE:
                try:
                    self.validator.check(block.inferred_path, block.raw_content)
                except ValidationError as exc:
                    self.logger.warning("%s", exc)
                    reports.append(
                        MaterializationReport(
                            path=block.inferred_path, outcome=WriteOutcome.ERROR, message=str(exc)
                        )
                    )
                    continue
            reports.append(self.materializer.write(block.inferred_path, block.raw_content))
        return PipelineResult(
            blocks=blocks,
            order=[block.inferred_path for block in blocks],
            reports=reports,
        )

    @staticmethod
    def _entry_for_block(block: CodeBlock) -> DependencyEntry:
        return DependencyEntry(
            path=block.inferred_path,
            content=block.raw_content,
            kind=block.inferred_type,
            references=extract_references(block.inferred_type, block.raw_content),
        )


__all__ = ["MaterializationPipeline", "PipelineResult"]

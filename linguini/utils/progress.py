# -*- coding: utf-8 -*-
"""
Progress bar for annotation runs.

Turns the pipeline's ProgressSnapshot stream into a rich progress bar in a
terminal, or into log lines when stdout is not a TTY.
"""

import sys
from typing import Optional

from rich.console import Console
from rich.progress import (
    Progress,
    SpinnerColumn,
    TextColumn,
    BarColumn,
    TaskProgressColumn,
    TimeElapsedColumn,
)

from linguini.core.models import ProgressSnapshot
from linguini.utils.logger import get_logger

logger = get_logger(__name__)


class SnapshotReporter:
    """
    Progress reporter fed by pipeline snapshots.

    Usage:
        with SnapshotReporter() as reporter:
            result = await pipeline.annotate(extracted, "fr-FR", on_progress=reporter.update)

        # or with a stream
        with SnapshotReporter() as reporter:
            async for snapshot in pipeline.stream(extracted, "fr-FR"):
                reporter.update(snapshot)
    """

    def __init__(
        self,
        description: str = "Annotating",
        console: Optional[Console] = None,
        use_rich: bool = True
    ):
        self.description = description
        self.use_rich = use_rich and sys.stdout.isatty()
        self._console = console or Console()
        self._progress: Optional[Progress] = None
        self._task_id = None
        self.last_snapshot: Optional[ProgressSnapshot] = None

    def start(self):
        """Start progress tracking."""
        if not self.use_rich:
            return

        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(bar_width=40),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            console=self._console,
        )
        self._progress.start()
        self._task_id = self._progress.add_task(self.description, total=None)

    def update(self, snapshot: ProgressSnapshot):
        """Reflect one snapshot; the total stays open until prechunking reports it."""
        self.last_snapshot = snapshot
        description = f"{self.description} [{snapshot.phase.value}]"

        if self._progress is None:
            logger.info(f"{description}: {snapshot.chunk_count}/{snapshot.total_expected_chunks or '?'} chunks")
            return

        total = snapshot.total_expected_chunks
        if snapshot.is_complete:
            total = snapshot.chunk_count
        elif total is not None:
            total = max(total, snapshot.chunk_count)

        self._progress.update(
            self._task_id,
            completed=snapshot.chunk_count,
            total=total,
            description=description,
        )

    def finish(self, final_message: Optional[str] = None):
        """Finish progress tracking."""
        if self._progress:
            self._progress.stop()
            self._progress = None
        if final_message:
            self._console.print(f"[green]✓[/green] {final_message}")

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.finish()
        return False

from __future__ import annotations

import dataclasses as dc
import enum

from docx_stream.partition.utils.constants import Stage


class StageStatus(enum.Enum):
    OK = "ok"
    PARTIAL = "partial"
    FAILED = "failed"


@dc.dataclass
class StageResult:
    """Outcome of one extraction stage, filled in while the stage runs.

    `element_count` counts elements already handed to the consumer. A stage that recorded
    warnings but still produced something is `PARTIAL`; one whose failure cost it all output is
    `FAILED`. A multi-part stage (headers, footers) that lost one part but produced others is
    `PARTIAL`.
    """

    stage: Stage
    element_count: int = 0
    warnings: list[str] = dc.field(default_factory=list)
    failed: bool = False

    @property
    def status(self) -> StageStatus:
        if self.failed:
            return StageStatus.FAILED
        if self.warnings:
            return StageStatus.PARTIAL
        return StageStatus.OK

    def fail(self, message: str) -> None:
        """Record a failure that ended the stage."""
        self.warnings.append(message)
        self.failed = True

    def warn(self, message: str) -> None:
        """Record a failure the stage recovered from."""
        self.warnings.append(message)

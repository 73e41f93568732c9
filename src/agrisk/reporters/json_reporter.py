"""JSON reporter for machine-readable assessment output."""

from __future__ import annotations

import json
from pathlib import Path

from agrisk.scoring.models import Assessment, LevelStatistics


class JsonReporter:
    """Serializes assessments and statistics as indented JSON.

    The payload is the model dump, so it can be fed back into
    ``Assessment.model_validate`` by downstream consumers.
    """

    def render(self, assessment: Assessment) -> str:
        return json.dumps(assessment.model_dump(mode="json"), indent=2)

    def render_many(self, assessments: list[Assessment]) -> str:
        return json.dumps([a.model_dump(mode="json") for a in assessments], indent=2)

    def render_statistics(self, rows: list[LevelStatistics]) -> str:
        return json.dumps([row.model_dump(mode="json") for row in rows], indent=2)

    def write(self, assessment: Assessment, output_path: str | Path) -> None:
        """Write one assessment to a file."""
        Path(output_path).write_text(self.render(assessment), encoding="utf-8")

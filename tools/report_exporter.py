"""
Report Exporter
Writes finished daily reports to the reports directory
"""

import json
import logging
from pathlib import Path
from typing import Dict, Optional

from config import settings, report_config
from services.report_service import DayReport, report_to_dict, render_table


logger = logging.getLogger(__name__)


class ReportExporter:
    """
    Persists a DayReport as JSON (for display) and as a fixed-column text
    table (for printing). Exporting the same day twice overwrites the files.
    """

    def __init__(self, reports_dir: Optional[str] = None):
        self.reports_dir = Path(reports_dir or settings.REPORTS_DIR)

    def paths_for(self, report: DayReport) -> Dict[str, Path]:
        stem = f"{report_config.FILE_PREFIX}{report.date.isoformat()}"
        return {
            "json": self.reports_dir / f"{stem}.json",
            "text": self.reports_dir / f"{stem}.txt",
        }

    def export(self, report: DayReport) -> Dict[str, Path]:
        self.reports_dir.mkdir(parents=True, exist_ok=True)
        paths = self.paths_for(report)

        paths["json"].write_text(
            json.dumps(report_to_dict(report), indent=2),
            encoding="utf-8"
        )
        paths["text"].write_text(
            render_table(report, app_name=settings.APP_NAME),
            encoding="utf-8"
        )

        logger.info(f"Report for {report.date} exported to {paths['json']}")
        return paths


# Singleton instance
report_exporter = ReportExporter()

"""Export of scraped profiles to CSV, JSON and a plain-text summary.

Outputs:
- ``<name>.csv``: one row per profile with summarised sections
- ``<name>_detailed.csv``: one row per experience/education index
- ``<name>.json``: ``{"profiles": [...], "count": n, "exported_at": ...}``
- ``<name>_summary.txt``: aggregate statistics

Design Rationale:
    pandas handles quoting of multi-line About sections and embedded
    commas, so the CSV writers only shape records. Timestamps are written
    as "YYYY-MM-DD HH:MM:SS" in every tabular output.
"""

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Literal

import pandas as pd

from config.settings import GlobalConfig, get_config
from talenttrace.exceptions import ExportError
from talenttrace.logger import get_logger
from talenttrace.models import Profile

log = get_logger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

CSV_COLUMNS = [
    "Name",
    "Headline",
    "Location",
    "About",
    "Experience",
    "Education",
    "Skills",
    "Profile URL",
    "Scraped At",
]

DETAILED_CSV_COLUMNS = [
    "Name",
    "Headline",
    "Location",
    "About",
    "Experience Title",
    "Experience Company",
    "Experience Duration",
    "Experience Location",
    "Education School",
    "Education Degree",
    "Education Duration",
    "Skills",
    "Profile URL",
    "Scraped At",
]

ExportFormat = Literal["csv", "json", "both"]


class ProfileExporter:
    """Writes Profile records to the configured output directory.

    Attributes:
        config: GlobalConfig instance for output paths.
        _timestamp: Export timestamp used in default file names.

    Example:
        exporter = ProfileExporter(config)
        paths = exporter.export([profile], fmt="both")
    """

    def __init__(self, config: GlobalConfig | None = None) -> None:
        self.config = config or get_config()
        self._timestamp = datetime.now(UTC).strftime("%Y%m%d_%H%M%S")

    def _ensure_output_dir(self) -> Path:
        try:
            self.config.output_dir.mkdir(parents=True, exist_ok=True)
            return self.config.output_dir
        except OSError as exc:
            raise ExportError(
                export_type="output_directory",
                reason=f"Cannot create output directory: {exc}",
                output_path=str(self.config.output_dir),
            ) from exc

    def _resolve(self, filename: str | None, suffix: str) -> Path:
        output_dir = self._ensure_output_dir()
        filename = filename or f"linkedin_profiles_{self._timestamp}"
        return output_dir / f"{filename}{suffix}"

    @staticmethod
    def _summary_record(profile: Profile) -> dict[str, str]:
        return {
            "Name": profile.name,
            "Headline": profile.headline,
            "Location": profile.location,
            "About": profile.about,
            "Experience": profile.experience_summary(),
            "Education": profile.education_summary(),
            "Skills": profile.skills_summary(),
            "Profile URL": profile.profile_url,
            "Scraped At": profile.scraped_at.strftime(TIMESTAMP_FORMAT),
        }

    @staticmethod
    def _detailed_records(profile: Profile) -> list[dict[str, str]]:
        """Expand a profile into rows pairing the i-th experience and education.

        Skills, URL and timestamp appear on the first row only.
        """
        rows = []
        for index in range(max(len(profile.experience), len(profile.education), 1)):
            row = {
                "Name": profile.name,
                "Headline": profile.headline,
                "Location": profile.location,
                "About": profile.about,
                "Experience Title": "",
                "Experience Company": "",
                "Experience Duration": "",
                "Experience Location": "",
                "Education School": "",
                "Education Degree": "",
                "Education Duration": "",
                "Skills": "",
                "Profile URL": "",
                "Scraped At": "",
            }

            if index < len(profile.experience):
                exp = profile.experience[index]
                row["Experience Title"] = exp.title
                row["Experience Company"] = exp.company
                row["Experience Duration"] = exp.duration
                row["Experience Location"] = exp.location

            if index < len(profile.education):
                edu = profile.education[index]
                row["Education School"] = edu.school
                row["Education Degree"] = edu.degree
                row["Education Duration"] = edu.duration

            if index == 0:
                row["Skills"] = profile.skills_summary()
                row["Profile URL"] = profile.profile_url
                row["Scraped At"] = profile.scraped_at.strftime(TIMESTAMP_FORMAT)

            rows.append(row)
        return rows

    def _write_frame(self, df: pd.DataFrame, output_path: Path, export_type: str) -> Path:
        try:
            df.to_csv(output_path, index=False, encoding="utf-8")
        except Exception as exc:
            raise ExportError(
                export_type=export_type,
                reason=str(exc),
                output_path=str(output_path),
            ) from exc

        log.info(f"{export_type} export written", output_path=str(output_path), rows=len(df))
        return output_path

    def to_csv(self, profiles: list[Profile], filename: str | None = None) -> Path:
        """Write one row per profile.

        Raises:
            ExportError: If the file cannot be written.
        """
        output_path = self._resolve(filename, ".csv")
        df = pd.DataFrame([self._summary_record(p) for p in profiles], columns=CSV_COLUMNS)
        return self._write_frame(df, output_path, "CSV")

    def to_csv_detailed(self, profiles: list[Profile], filename: str | None = None) -> Path:
        """Write one row per experience/education pair of every profile.

        Raises:
            ExportError: If the file cannot be written.
        """
        output_path = self._resolve(filename, "_detailed.csv")
        records = [row for p in profiles for row in self._detailed_records(p)]
        df = pd.DataFrame(records, columns=DETAILED_CSV_COLUMNS)
        return self._write_frame(df, output_path, "Detailed CSV")

    def to_json(self, profiles: list[Profile], filename: str | None = None) -> Path:
        """Write all profiles wrapped in a container object.

        Raises:
            ExportError: If there is nothing to export or writing fails.
        """
        output_path = self._resolve(filename, ".json")

        if not profiles:
            raise ExportError(
                export_type="JSON",
                reason="No profiles to export",
                output_path=str(output_path),
            )

        payload: dict[str, Any] = {
            "profiles": [p.model_dump(mode="json") for p in profiles],
            "count": len(profiles),
            "exported_at": datetime.now(UTC).strftime(TIMESTAMP_FORMAT),
        }

        try:
            output_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        except OSError as exc:
            raise ExportError(
                export_type="JSON",
                reason=str(exc),
                output_path=str(output_path),
            ) from exc

        log.info("JSON export written", output_path=str(output_path), count=len(profiles))
        return output_path

    def summary_stats(self, profiles: list[Profile]) -> dict[str, float]:
        """Totals and per-profile averages for each section."""
        df = pd.DataFrame(
            {
                "experience": [len(p.experience) for p in profiles],
                "education": [len(p.education) for p in profiles],
                "skills": [len(p.skills) for p in profiles],
            }
        )
        stats: dict[str, float] = {"profiles": len(df)}
        for column in ("experience", "education", "skills"):
            stats[f"total_{column}"] = int(df[column].sum())
            stats[f"avg_{column}"] = float(df[column].mean()) if len(df) > 0 else 0.0
        return stats

    def write_summary(self, profiles: list[Profile], filename: str | None = None) -> Path:
        """Write a human-readable statistics report.

        Raises:
            ExportError: If there is nothing to summarise or writing fails.
        """
        output_path = self._resolve(filename, "_summary.txt")

        if not profiles:
            raise ExportError(
                export_type="Summary",
                reason="No profiles to summarise",
                output_path=str(output_path),
            )

        stats = self.summary_stats(profiles)
        lines = [
            "LinkedIn Profile Scraping Summary",
            "=====================================",
            "",
            f"Total Profiles: {stats['profiles']}",
            f"Total Experience Entries: {stats['total_experience']}",
            f"Total Education Entries: {stats['total_education']}",
            f"Total Skills: {stats['total_skills']}",
            "",
            f"Average Experience per Profile: {stats['avg_experience']:.2f}",
            f"Average Education per Profile: {stats['avg_education']:.2f}",
            f"Average Skills per Profile: {stats['avg_skills']:.2f}",
            "",
            "Profiles:",
        ]
        lines.extend(f"{i}. {p.name} ({p.profile_url})" for i, p in enumerate(profiles, start=1))
        lines.append("")
        lines.append(f"Generated at: {profiles[0].scraped_at.strftime(TIMESTAMP_FORMAT)}")

        try:
            output_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        except OSError as exc:
            raise ExportError(
                export_type="Summary",
                reason=str(exc),
                output_path=str(output_path),
            ) from exc

        log.info("Summary written", output_path=str(output_path))
        return output_path

    def export(
        self,
        profiles: list[Profile],
        fmt: ExportFormat | None = None,
        filename: str | None = None,
    ) -> dict[str, Path]:
        """Write every output for ``fmt`` plus the summary.

        Args:
            profiles: Profiles to export.
            fmt: "csv", "json" or "both"; defaults to config.export_format.
            filename: Base file name without extension.

        Returns:
            Mapping of output kind to written path.
        """
        fmt = fmt or self.config.export_format
        if fmt not in ("csv", "json", "both"):
            raise ExportError(export_type=str(fmt), reason="Unsupported export format")

        paths: dict[str, Path] = {}
        if fmt in ("csv", "both"):
            paths["csv"] = self.to_csv(profiles, filename)
            paths["csv_detailed"] = self.to_csv_detailed(profiles, filename)
        if fmt in ("json", "both"):
            paths["json"] = self.to_json(profiles, filename)
        paths["summary"] = self.write_summary(profiles, filename)
        return paths

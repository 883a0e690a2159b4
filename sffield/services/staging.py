"""Scratch directory holding the rendered field documents and package.xml."""
import logging
import time
from pathlib import Path

from sffield.config import settings

logger = logging.getLogger(__name__)


class StagingArea:
    """Layout: ``<root>/package.xml`` and ``<root>/objects/<Object>/fields/*.field-meta.xml``."""

    def __init__(self, root: Path, object_name: str):
        self.root = Path(root)
        self.object_name = object_name

    @property
    def fields_dir(self) -> Path:
        return self.root / "objects" / self.object_name / "fields"

    @property
    def manifest_path(self) -> Path:
        return self.root / "package.xml"

    def write_field(self, field_name: str, xml: str) -> Path:
        path = self.fields_dir / f"{field_name}.field-meta.xml"
        path.write_text(xml, encoding="utf-8")
        return path

    def write_manifest(self, xml: str) -> Path:
        self.manifest_path.write_text(xml, encoding="utf-8")
        logger.info("Created package.xml at %s", self.manifest_path)
        return self.manifest_path

    def __str__(self) -> str:
        return str(self.root)


def create_staging_directory(object_name: str, root: str = None) -> StagingArea:
    base = Path(root or settings.staging_root)
    staging = StagingArea(base / f"sf-metadata-{int(time.time() * 1000)}", object_name)
    staging.fields_dir.mkdir(parents=True, exist_ok=True)

    logger.info("Created directory structure at: %s", staging.fields_dir)
    logger.debug(
        "Metadata directory structure:\n- %s/\n  - package.xml\n  - objects/\n    - %s/\n      - fields/",
        staging.root, object_name,
    )
    return staging

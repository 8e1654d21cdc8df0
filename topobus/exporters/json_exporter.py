"""JSON Exporter Module

Writes the project graph aggregate to a JSON file.
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

from topobus.models import KnxProjectData
from topobus.models.graph import ProjectGraphs

logger = logging.getLogger(__name__)


class JsonExporter:
    """Exporter for JSON project files"""

    def __init__(self, output_dir: str = "output", indent: int = 2):
        """
        Initialize JSON Exporter.

        Args:
            output_dir: Directory to write output files
            indent: JSON indentation
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.indent = indent

    def export(self, data: Union[ProjectGraphs, KnxProjectData], filename: str = "project.json") -> Path:
        """
        Export a graph aggregate or a project model.

        Args:
            data: Object providing ``to_dict()``
            filename: Output filename

        Returns:
            Path to created file
        """
        output_path = self.output_dir / filename
        payload = data.to_dict()
        logger.info(f"Exporting {self._describe(payload)} to {output_path}")

        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(payload, f, indent=self.indent, ensure_ascii=False)
            f.write("\n")

        logger.info("Export finished successfully")
        return output_path

    def dumps(self, data: Union[ProjectGraphs, KnxProjectData]) -> str:
        return json.dumps(data.to_dict(), indent=self.indent, ensure_ascii=False)

    @staticmethod
    def _describe(payload: Dict[str, Any]) -> str:
        devices = len(payload.get('devices', []))
        group_addresses = len(payload.get('group_addresses', []))
        return f"{devices} devices, {group_addresses} group addresses"

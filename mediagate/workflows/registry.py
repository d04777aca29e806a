"""Built-in workflow templates.

Templates are ready-made ``WorkflowDefinition`` JSON files shipped in
``definitions/``. Clients fetch them from GET /api/ai/workflow/templates,
adjust the prompts and submit them as ordinary workflows.
"""

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from .schemas import WorkflowDefinition

logger = logging.getLogger(__name__)

DEFINITIONS_DIR = Path(__file__).parent / "definitions"


def _read_template(json_file: Path) -> WorkflowDefinition:
    with open(json_file, "r") as f:
        template = WorkflowDefinition.model_validate(json.load(f))
    if not template.steps:
        raise ValueError("template has no steps")
    return template


class TemplateRegistry:
    """Template definitions keyed by workflow id, read lazily on first access."""

    def __init__(self, definitions_dir: Optional[Path] = None):
        self.definitions_dir = definitions_dir or DEFINITIONS_DIR
        self._templates: Optional[dict[str, WorkflowDefinition]] = None

    def _ensure_loaded(self) -> dict[str, WorkflowDefinition]:
        if self._templates is not None:
            return self._templates

        templates: dict[str, WorkflowDefinition] = {}
        if self.definitions_dir.is_dir():
            for json_file in sorted(self.definitions_dir.glob("*.json")):
                try:
                    template = _read_template(json_file)
                except (OSError, json.JSONDecodeError, ValidationError, ValueError) as e:
                    logger.error(f"Skipping workflow template {json_file.name}: {e}")
                    continue
                if template.id in templates:
                    logger.warning(
                        f"Duplicate template id {template.id!r} in {json_file.name}, keeping the first"
                    )
                    continue
                templates[template.id] = template
        else:
            logger.warning(f"Template directory not found: {self.definitions_dir}")

        logger.info(f"Loaded {len(templates)} workflow templates from {self.definitions_dir}")
        self._templates = templates
        return templates

    def get(self, template_id: str) -> Optional[WorkflowDefinition]:
        template = self._ensure_loaded().get(template_id)
        return template.model_copy(deep=True) if template else None

    def list_all(self) -> list[WorkflowDefinition]:
        """Templates in file-name order (copies, safe to modify)."""
        return [t.model_copy(deep=True) for t in self._ensure_loaded().values()]

    def count(self) -> int:
        return len(self._ensure_loaded())


# Singleton instance
_registry: Optional[TemplateRegistry] = None


def get_template_registry() -> TemplateRegistry:
    """Get or create the global TemplateRegistry instance."""
    global _registry
    if _registry is None:
        _registry = TemplateRegistry()
    return _registry

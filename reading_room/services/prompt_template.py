"""Seven-part AI prompt templates."""

import json
import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from reading_room.core.constants import PROMPT_COMPONENTS, PROMPT_COMPONENT_HEADERS
from reading_room.schemas.templates import PromptTemplateOut

logger = logging.getLogger(__name__)


class PromptTemplate:
    """A prompt template row plus validation and assembly.

    The stored ``prompt_template`` object must carry every key in
    ``PROMPT_COMPONENTS`` (values may be empty) and at least one
    non-blank part.  It may arrive as a dict or as a JSON string.
    """

    def __init__(
        self,
        prompt_template: Any,
        template_id: Optional[UUID] = None,
        template_name: str = "",
        room_type: str = "",
        is_global: bool = False,
        template_order: int = 0,
    ) -> None:
        self.prompt_template = prompt_template
        self.template_id = template_id
        self.template_name = template_name
        self.room_type = room_type
        self.is_global = is_global
        self.template_order = template_order
        self._errors: List[str] = []

    @classmethod
    def from_model(cls, row: Any) -> "PromptTemplate":
        return cls(
            prompt_template=row.prompt_template,
            template_id=row.template_id,
            template_name=row.template_name or "",
            room_type=row.room_type,
            is_global=bool(row.is_global),
            template_order=row.template_order or 0,
        )

    @property
    def errors(self) -> List[str]:
        return list(self._errors)

    def _components(self) -> Optional[Dict[str, Any]]:
        data = self.prompt_template
        if isinstance(data, str):
            try:
                data = json.loads(data)
            except ValueError as exc:
                self._errors.append(f"Invalid JSON in prompt_template: {exc}")
                return None
        if not isinstance(data, dict):
            self._errors.append("prompt_template must be an object")
            return None
        return data

    def validate(self) -> bool:
        self._errors = []
        if not self.prompt_template:
            self._errors.append("prompt_template is required")
            return False

        data = self._components()
        if data is None:
            return False

        for component in PROMPT_COMPONENTS:
            if component not in data or data[component] is None:
                self._errors.append(f"Missing required component: {component}")

        if not any(str(data.get(c) or "").strip() for c in PROMPT_COMPONENTS):
            self._errors.append("At least one component must have content")

        return not self._errors

    def parts(self) -> Dict[str, str]:
        data = self._components() or {}
        return {c: str(data.get(c) or "") for c in PROMPT_COMPONENTS}

    def assemble_prompt(self) -> str:
        """Join the non-empty parts in fixed order, each under its header."""
        sections = []
        for component, content in self.parts().items():
            content = content.strip()
            if not content:
                continue
            sections.append(f"{PROMPT_COMPONENT_HEADERS[component]}\n{content}")

        assembled = "\n\n".join(sections)
        logger.debug(
            "Assembled prompt with %d components (%d chars)",
            len(sections),
            len(assembled),
        )
        return assembled

    def to_schema(self) -> PromptTemplateOut:
        return PromptTemplateOut(
            template_id=self.template_id,
            template_name=self.template_name,
            room_type=self.room_type,
            is_global=self.is_global,
            template_order=self.template_order,
            prompt_template=self.parts(),
        )

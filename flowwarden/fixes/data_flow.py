"""Advisory fixer for connections whose data does not arrive."""

from __future__ import annotations

from typing import List

from ..validators.base import Issue
from .base import FixResult, Fixer, Suggestion
from .source_not_writing import placeholder_for


class DataFlowFixer(Fixer):
    """Never edits files; returns the checklist a human should walk through."""

    key = "data-flow"

    def fix(self, issue: Issue) -> FixResult:
        source = issue.source or "the source component"
        target = issue.target or "the target component"
        fields = list(issue.fields) or ["<field>"]
        registry = self.context.registry()

        source_file = target_file = None
        if registry is not None:
            if issue.source and issue.source in registry:
                source_file = registry.nodes[issue.source].file_path
            if issue.target and issue.target in registry:
                target_file = registry.nodes[issue.target].file_path

        update_call = (self.context.config.dataflow.update_calls or ["setNodes"])[0]
        reactive_call = (self.context.config.dataflow.reactive_calls or ["useEffect"])[0]
        suggestions: List[Suggestion] = [
            Suggestion(
                description=f"Make {source} write {', '.join(fields)} in its {update_call} call",
                location=source_file or source,
                example=f"data: {{ ...node.data, "
                + ", ".join(f"{name}: {placeholder_for(name)}" for name in fields)
                + " }",
            ),
            Suggestion(
                description=f"Make {target} react to the incoming field(s)",
                location=target_file or target,
                example=f"{reactive_call}(() => {{ ... }}, [" + ", ".join(f"data.{name}" for name in fields) + "])",
            ),
            Suggestion(
                description="Check that the handle ids on both ends match the edge's sourceHandle/targetHandle",
                location=issue.file or "workflow definition",
            ),
            Suggestion(
                description="Check that the editor's edge-propagation effect copies source data onto the target",
                location="editor canvas component",
            ),
        ]
        return FixResult(
            success=False,
            error="connection needs manual review",
            suggestions=suggestions,
            requires_manual_fix=True,
        )


__all__ = ["DataFlowFixer"]

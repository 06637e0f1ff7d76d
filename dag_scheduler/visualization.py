"""Mermaid diagram generator for task dependency graphs."""

import logging
from collections import defaultdict
from typing import Dict, List

from .graph import TaskGraph
from .models import ROOT_KEY, TaskRecord, TaskStatus

logger = logging.getLogger(__name__)


class MermaidGenerator:
    """Generator for Mermaid flowcharts from a task graph."""

    def __init__(self, graph: TaskGraph, title: str = "scheduler"):
        """Initialize with the graph to render.

        Args:
            graph: TaskGraph instance
            title: Diagram title
        """
        self.graph = graph
        self.title = title

    def generate_flowchart(self, include_status: bool = True) -> str:
        """Generate a Mermaid flowchart showing task dependencies.

        Edges point from a dependency to the task that depends on it.

        Args:
            include_status: Whether to include task status in the diagram

        Returns:
            Mermaid flowchart diagram as string
        """
        tasks = self.graph.tasks()
        logger.debug(f"Generating flowchart for {len(tasks)} tasks")

        # Task names may contain any character, so nodes get positional ids
        node_ids = {rec.key: f"t{index}" for index, rec in enumerate(tasks)}

        mermaid_lines = ["---", f"title: {self._quote_title(self.title)}", "---", "flowchart TD"]

        for rec in tasks:
            mermaid_lines.append(f"    {self._create_task_node_definition(rec, node_ids, include_status)}")

        for rec in tasks:
            for dep in sorted(rec.depends_on):
                if dep == ROOT_KEY:
                    continue
                mermaid_lines.append(f"    {node_ids[dep]} --> {node_ids[rec.key]}")

        mermaid_lines.extend(self._generate_task_styling(tasks, node_ids, include_status))

        return "\n".join(mermaid_lines)

    @staticmethod
    def _quote_title(title: str) -> str:
        """Quote the title as a YAML double-quoted scalar for the frontmatter."""
        escaped = title.replace("\\", "\\\\").replace('"', '\\"')
        escaped = escaped.replace("\n", "\\n").replace("\r", "\\r")
        return f'"{escaped}"'

    @staticmethod
    def _escape_label(label: str) -> str:
        return label.replace('"', "#quot;")

    def _create_task_node_definition(
        self, rec: TaskRecord, node_ids: Dict[str, str], include_status: bool
    ) -> str:
        """Create a Mermaid node definition for a task."""
        node_id = node_ids[rec.key]
        name = self._escape_label(rec.key)
        status = rec.status

        label = f"{name}<br/>({status.value})" if include_status else name

        # Node shape follows status
        if status == TaskStatus.RUNNING:
            return f'{node_id}("{label}")'
        elif status == TaskStatus.FAILED:
            return f'{node_id}{{"{label}"}}'
        elif status == TaskStatus.PLACEHOLDER:
            return f'{node_id}[/"{label}"/]'
        return f'{node_id}["{label}"]'

    def _generate_task_styling(
        self, tasks: List[TaskRecord], node_ids: Dict[str, str], include_status: bool
    ) -> List[str]:
        """Generate styling for task nodes based on status."""
        styling_lines = []

        if include_status and tasks:
            status_groups = defaultdict(list)
            for rec in tasks:
                status_groups[rec.status.value].append(node_ids[rec.key])

            styling_lines.append("    classDef completed fill:#90EE90,stroke:#006400,stroke-width:2px")
            styling_lines.append("    classDef running fill:#FFD700,stroke:#FF8C00,stroke-width:2px")
            styling_lines.append("    classDef failed fill:#FFB6C1,stroke:#DC143C,stroke-width:2px")
            styling_lines.append("    classDef pending fill:#E6E6FA,stroke:#4B0082,stroke-width:2px")
            styling_lines.append("    classDef placeholder fill:#F5F5F5,stroke:#808080,stroke-dasharray:5 5")

            for status, ids in status_groups.items():
                styling_lines.append(f"    class {','.join(ids)} {status}")

        return styling_lines

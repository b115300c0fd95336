"""Render a workflow's routing graph as text."""

from collections.abc import Mapping
from typing import Protocol

from eventflow.events import Event, StartEvent, StopEvent
from eventflow.node import Node


class Exporter(Protocol):
    def export(self, routes: Mapping[type[Event], Node], start_event: type[Event]) -> str: ...


class ConsoleExporter:
    """Indented tree walk from the start event, marking cycles and orphaned nodes.

    Events and nodes are shown by class name; routing still follows type tags.

    Produced events are read from each node's ``produces`` declaration or the
    return annotation of its ``run`` method.
    """

    def export(
        self, routes: Mapping[type[Event], Node], start_event: type[Event] = StartEvent
    ) -> str:
        output = "Workflow Structure:\n" + "=" * 50 + "\n\n"

        by_tag = {et.event_type(): (et, node) for et, node in routes.items()}
        start_tag = start_event.event_type()
        if start_tag not in by_tag:
            return output + f"No {start_event.__name__} found in workflow.\n"

        visited: set[str] = set()
        output += self._render(start_tag, by_tag, visited, 0)

        for tag in by_tag:
            if tag not in visited:
                output += "\n" + "─" * 30 + "\n"
                output += "Orphaned Node:\n"
                output += self._render(tag, by_tag, visited, 0)
        return output

    def _render(
        self,
        tag: str,
        by_tag: dict[str, tuple[type[Event], Node]],
        visited: set[str],
        depth: int,
    ) -> str:
        indent = "  " * depth
        if tag in visited:
            return f"{indent}↻ [Cycle detected]\n"
        visited.add(tag)

        event_type, node = by_tag[tag]
        marker = "🏁" if depth == 0 else "🔗"
        lines = [
            f"{indent}{marker} {event_type.__name__}\n",
            f"{indent}   ↓\n",
            f"{indent}⚡ {type(node).__name__}\n",
        ]

        produced = node.declared_events()
        if not produced:
            lines.append(f"{indent}   ↓\n{indent}❓ (unknown output)\n")
        for produced_type in produced:
            produced_tag = produced_type.event_type()
            lines.append(f"{indent}   ↓\n")
            if issubclass(produced_type, StopEvent):
                lines.append(f"{indent}🏁 {produced_type.__name__}\n")
            elif produced_tag in by_tag:
                lines.append(self._render(produced_tag, by_tag, visited, depth + 1))
            else:
                lines.append(f"{indent}❓ {produced_type.__name__} (no handler)\n")
        return "".join(lines)


class MermaidExporter:
    """Mermaid flowchart: ``Event --> Node --> ProducedEvent`` edges, deduplicated."""

    def export(
        self, routes: Mapping[type[Event], Node], start_event: type[Event] = StartEvent
    ) -> str:
        edges: list[str] = []
        for event_type, node in routes.items():
            node_name = type(node).__name__
            candidates = [f"{event_type.__name__} --> {node_name}"]
            candidates += [f"{node_name} --> {e.__name__}" for e in node.declared_events()]
            edges.extend(edge for edge in candidates if edge not in edges)
        return "graph TD\n" + "".join(f"    {edge}\n" for edge in edges)

# dag.py
from __future__ import annotations

from collections import deque
from typing import Dict, List, Sequence, Tuple

from .errors import GraphError
from .model import ResolvedStep
from .schema import WorkflowDefinition


def build_dag(
    steps: Sequence[ResolvedStep], workflow: str = "<workflow>"
) -> Tuple[Dict[str, List[str]], Dict[str, int]]:
    """
    Build the step graph.

    Requires:
      - step.id: str (unique)
      - step.depends_on: ids of steps that must run BEFORE this step

    Returns:
      adj: dependency id -> dependents, in declaration order
      indeg: step id -> number of distinct dependencies
    """
    ids = [s.id for s in steps]
    if len(set(ids)) != len(ids):
        dupes = sorted({i for i in ids if ids.count(i) > 1})
        raise GraphError(f'Workflow "{workflow}" has duplicate step ids: {", ".join(dupes)}.')

    adj: Dict[str, List[str]] = {i: [] for i in ids}
    indeg: Dict[str, int] = {i: 0 for i in ids}

    for step in steps:
        for dep in step.depends_on:
            if dep not in adj:
                raise GraphError(
                    f'Workflow "{workflow}" step "{step.id}" references unknown dependency "{dep}".'
                )
            # Edge dep -> step.id (dep must run before step)
            if step.id not in adj[dep]:
                adj[dep].append(step.id)
                indeg[step.id] += 1

    return adj, indeg


def topo_order(
    steps: Sequence[ResolvedStep], workflow: str = "<workflow>"
) -> List[ResolvedStep]:
    """
    Kahn's algorithm with a FIFO queue.

    Ready steps leave the queue in declaration order, so the same document
    always yields the same order.
    """
    adj, indeg = build_dag(steps, workflow)
    by_id = {s.id: s for s in steps}
    indeg = dict(indeg)  # copy (we mutate it)

    q = deque(s.id for s in steps if indeg[s.id] == 0)
    ordered: List[ResolvedStep] = []

    while q:
        node = q.popleft()
        ordered.append(by_id[node])
        for child in adj[node]:
            indeg[child] -= 1
            if indeg[child] == 0:
                q.append(child)

    if len(ordered) != len(steps):
        stuck = [s.id for s in steps if indeg[s.id] > 0]
        raise GraphError(
            f'Workflow "{workflow}" has circular dependencies: {", ".join(stuck)}.'
        )

    return ordered


def resolve_workflow_steps(workflow: WorkflowDefinition) -> List[ResolvedStep]:
    """Execution order for a workflow's steps, or ``GraphError`` on a cycle."""
    return topo_order(workflow.resolved_steps(), workflow.name)

"""
Which DAGs take part in the duration comparison.

The selection is kept ordered and is always a subset of the known DAG
universe. The first non-empty universe pre-selects its first few DAGs; the
``default_applied`` flag makes sure that happens exactly once.
"""

from __future__ import annotations

import logging
from typing import Iterable

import config
from features.comparison.errors import UnknownPipelineError

log = logging.getLogger(__name__)


class SelectionState:

    def __init__(self, default_size: int = config.DEFAULT_SELECTION_SIZE):
        self.default_size = default_size
        self.default_applied = False
        self._universe: list[str] = []
        self._selected: list[str] = []

    @property
    def universe(self) -> list[str]:
        return list(self._universe)

    @property
    def selected(self) -> list[str]:
        return list(self._selected)

    @property
    def is_all_selected(self) -> bool:
        return bool(self._universe) and len(self._selected) == len(self._universe)

    @property
    def is_partially_selected(self) -> bool:
        return 0 < len(self._selected) < len(self._universe)

    def __contains__(self, pipeline_id: str) -> bool:
        return pipeline_id in self._selected

    def _require_known(self, pipeline_id: str) -> None:
        if pipeline_id not in self._universe:
            raise UnknownPipelineError(pipeline_id)

    def set_universe(self, pipeline_ids: Iterable[str]) -> bool:
        """Replace the known DAG ids. Returns True if the selection changed."""
        self._universe = list(dict.fromkeys(pipeline_ids))
        before = self._selected

        if not self.default_applied and self._universe:
            self._selected = self._universe[: self.default_size]
            self.default_applied = True
            log.info("Default selection applied: %s", ", ".join(self._selected))
        else:
            known = set(self._universe)
            pruned = [pid for pid in self._selected if pid in known]
            if len(pruned) != len(self._selected):
                log.info("Pruned %d stale DAG(s) from selection", len(self._selected) - len(pruned))
                self._selected = pruned

        return before != self._selected

    def toggle(self, pipeline_id: str) -> None:
        self._require_known(pipeline_id)
        if pipeline_id in self._selected:
            self._selected = [pid for pid in self._selected if pid != pipeline_id]
        else:
            self._selected = [*self._selected, pipeline_id]

    def select_only(self, pipeline_id: str) -> None:
        self._require_known(pipeline_id)
        self._selected = [pipeline_id]

    def select_all(self) -> None:
        self._selected = list(self._universe)

    def clear(self) -> None:
        self._selected = []

    def toggle_all(self) -> None:
        """The "select all" checkbox: clears when everything is selected."""
        if self.is_all_selected:
            self.clear()
        else:
            self.select_all()

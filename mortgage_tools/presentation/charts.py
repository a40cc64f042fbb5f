"""
Chart handle ownership.

The engine never holds chart objects. A caller that renders charts owns a
``ChartRegistry`` and keys handles by panel, so each panel's previous chart is
disposed before its replacement is created.
"""

import logging
from typing import Any, Callable, Dict, Iterator, Optional

logger = logging.getLogger(__name__)


class ChartRegistry:
    """Chart handles keyed by panel id."""

    def __init__(self):
        self._charts: Dict[str, Any] = {}

    def render(self, panel_id: str, factory: Callable[[Dict], Any], data: Dict) -> Any:
        """
        Replace the chart for ``panel_id``.

        Args:
            panel_id: Identity of the panel that displays the chart
            factory: Creates a chart handle from chart data
            data: Chart data, e.g. from ``presentation.series``

        Returns:
            The new handle
        """
        self.dispose(panel_id)
        handle = factory(data)
        self._charts[panel_id] = handle
        return handle

    def get(self, panel_id: str) -> Optional[Any]:
        return self._charts.get(panel_id)

    def dispose(self, panel_id: str) -> bool:
        """Destroy the chart for a panel. Returns False if there was none."""
        handle = self._charts.pop(panel_id, None)
        if handle is None:
            return False
        destroy = getattr(handle, "destroy", None)
        if callable(destroy):
            destroy()
        logger.debug("Disposed chart for panel %s", panel_id)
        return True

    def dispose_all(self) -> None:
        for panel_id in list(self._charts):
            self.dispose(panel_id)

    def __contains__(self, panel_id: str) -> bool:
        return panel_id in self._charts

    def __len__(self) -> int:
        return len(self._charts)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._charts))

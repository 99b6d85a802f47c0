"""Holds the latest preview and serves its documents by selector."""

from __future__ import annotations

from typing import List, Optional, Tuple, Union

from app.schemas import PreviewResult
from services.errors import PreviewNotFoundError

GLOBAL_SELECTOR = "global"
_INDIVIDUAL_PREFIX = "individual-"


class PreviewPresenter:
    """Selectors are ``"global"`` or a unit position (``3``, ``"3"``, ``"individual-3"``)."""

    def __init__(self) -> None:
        self._result: Optional[PreviewResult] = None

    @property
    def has_preview(self) -> bool:
        return self._result is not None

    def replace(self, result: PreviewResult) -> None:
        self._result = result

    def clear(self) -> None:
        self._result = None

    def tabs(self) -> List[Tuple[str, str]]:
        if self._result is None:
            return []
        tabs = [(GLOBAL_SELECTOR, "Global report")]
        tabs.extend(
            (str(position), f"Unit {individual.unit}")
            for position, individual in enumerate(self._result.individuals)
        )
        return tabs

    def content_for(self, selector: Union[str, int]) -> str:
        if self._result is None:
            raise PreviewNotFoundError("No preview has been generated yet.")

        if selector == GLOBAL_SELECTOR:
            content = self._result.global_html
        else:
            position = _parse_position(selector)
            individuals = self._result.individuals
            if position is None or not 0 <= position < len(individuals):
                raise PreviewNotFoundError(f"No preview document for {selector!r}.")
            content = individuals[position].html

        if not content:
            raise PreviewNotFoundError(f"Preview document for {selector!r} is empty.")
        return content


def _parse_position(selector: Union[str, int]) -> Optional[int]:
    if isinstance(selector, bool):
        return None
    if isinstance(selector, int):
        return selector
    candidate = selector.strip()
    if candidate.startswith(_INDIVIDUAL_PREFIX):
        candidate = candidate[len(_INDIVIDUAL_PREFIX):]
    if not candidate.isdecimal():
        return None
    return int(candidate)

"""
Extended event description reassembly

A long description is split over a run of extended event descriptors
numbered 0..last_descriptor_number. Each fragment holds (label, value)
item pairs followed by free text. The description only exists once the
whole run has been seen.

Fragments are buffered by descriptor_number and joined in ascending
order, so a run that arrives out of order still assembles. A number seen
twice before the run completes starts a new run (the earlier one was
never finished and is discarded).
"""

import logging
from typing import Callable, Dict, List, Optional

from .Programme import LangText


logger = logging.getLogger(__name__)


class DescriptionAssembler:
    """
    Per-event accumulator for extended event fragments.

    Args:
        normalize: Turns a raw DVB text field into escaped output text

    Attributes:
        completed: Descriptions finalised so far, in completion order

    Example:
        >>> asm = DescriptionAssembler(normalize)
        >>> asm.add(fragment0)    # number 0, last 1 -> None
        >>> asm.add(fragment1)    # number 1, last 1 -> LangText(...)
    """

    def __init__(self, normalize: Callable[[bytes], str]):
        self._normalize = normalize
        self.completed: List[LangText] = []
        self._reset()

    def _reset(self) -> None:
        self._parts: Dict[int, str] = {}
        self._last: Optional[int] = None
        self._language: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self._last is not None

    def render(self, fragment) -> str:
        """Render one fragment as 'label: value; ' pairs plus free text."""
        pieces = []
        for label, value in fragment.items:
            pieces.append(f"{self._normalize(label)}: {self._normalize(value)}; ")
        if fragment.text:
            pieces.append(self._normalize(fragment.text))
        return ''.join(pieces)

    def add(self, fragment) -> Optional[LangText]:
        """
        Offer one extended event fragment.

        Args:
            fragment: Object with number, last, language, items, text
                and non_empty attributes

        Returns:
            The finished description when this fragment completes a run,
            otherwise None
        """
        if not fragment.non_empty:
            return None

        if fragment.number > fragment.last:
            logger.debug("Ignoring extended event fragment %d beyond last %d",
                         fragment.number, fragment.last)
            return None

        if self.is_open and (fragment.number in self._parts or fragment.last != self._last):
            logger.debug("Extended event run restarted at fragment %d/%d",
                         fragment.number, fragment.last)
            self._reset()

        if self._last is None:
            self._last = fragment.last
        if fragment.number == 0:
            self._language = fragment.language

        self._parts[fragment.number] = self.render(fragment)

        if len(self._parts) < self._last + 1:
            return None

        description = LangText(
            self._language,
            ''.join(self._parts[n] for n in range(self._last + 1)),
        )
        self.completed.append(description)
        self._reset()
        return description

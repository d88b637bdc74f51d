"""Pluggy hook specifications for lenient decoding events."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from lenient.diagnostics import FallbackEvent

hookspec = pluggy.HookspecMarker("lenient")


class LenientHookSpec:
    """Hook specifications for the lenient plugin system."""

    @hookspec
    def lenient_fallback(self, event: FallbackEvent) -> None:
        """Called after a malformed value was replaced by its default."""

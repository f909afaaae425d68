"""Terminal user interface package for memberlink."""

from memberlink.ui.match_tui import MatchTUI

__all__ = ["MatchTUI"]

# -*- coding: utf-8 -*-
"""core.schemas：跨层共享的数据契约。"""

from .scene import DialogueEntry, Scene, Screenplay, Episode
from .segment import Segment, SegmentationResult
from .visual_state import VisualStateSnapshot
from .continuity import ContinuityIssue, ContinuityResult

__all__ = [
	"DialogueEntry",
	"Scene",
	"Screenplay",
	"Episode",
	"Segment",
	"SegmentationResult",
	"VisualStateSnapshot",
	"ContinuityIssue",
	"ContinuityResult",
]

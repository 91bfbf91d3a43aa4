"""
Horizontal slide resolver.

Shrinks a requested time delta until every moving clip stays clear of the
stationary clips on its own track, then applies it.
"""
from __future__ import annotations

from src.utils.logger import get_logger

from .shift_state import DragSessionState

logger = get_logger("slide")


def do_offset(state: DragSessionState, offset: float, excluded_clip=None) -> None:
    """Moves every captured clip and whole-track entry by offset seconds."""
    for entry in state.captured_clip_array:
        if entry.clip is not None:
            if entry.clip is not excluded_clip:
                entry.clip.offset_by(offset)
        else:
            entry.track.offset(offset)


def do_slide_horizontal(state: DragSessionState) -> float:
    """
    Resolves `state.h_slide_amount` to the largest legal delta and applies it.

    The result has the same sign as the request and no larger magnitude. Any
    reduction clears the snap guides. Returns the applied delta.
    """
    entries = state.clip_entries()
    if not entries:
        # Whole tracks only; they never collide
        do_offset(state, state.h_slide_amount)
        return state.h_slide_amount

    moving = set(state.moving_clips())
    requested = state.h_slide_amount

    # Each pass stops on a new obstacle edge or leaves the amount unchanged
    max_passes = sum(len(entry.track.clips) for entry in entries) + 1
    for _ in range(max_passes):
        initial = state.h_slide_amount
        for entry in entries:
            ok, allowed = entry.track.can_offset_clip(entry.clip, state.h_slide_amount, ignore=moving)
            if not ok:
                allowed = 0.0
            if allowed != state.h_slide_amount:
                state.h_slide_amount = allowed
                state.clear_snaps()
        if state.h_slide_amount == initial:
            break
    else:
        logger.warning("Slide did not settle after %d passes; not moving", max_passes)
        state.h_slide_amount = 0.0
        state.clear_snaps()

    if state.h_slide_amount != requested:
        logger.debug("Slide shrunk from %.6f to %.6f", requested, state.h_slide_amount)

    if state.h_slide_amount != 0.0:
        do_offset(state, state.h_slide_amount)
    return state.h_slide_amount

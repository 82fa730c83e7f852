"""Input collection: translate keyboard state into rover control flags only."""

from __future__ import annotations

from typing import Sequence

import pygame

from core.components import InputState


def input_from_pressed(ks: Sequence[bool]) -> InputState:
    """Map a pygame key-state sequence (W/S/A/D or arrows) to an InputState."""
    return InputState(
        forward=bool(ks[pygame.K_UP] or ks[pygame.K_w]),
        backward=bool(ks[pygame.K_DOWN] or ks[pygame.K_s]),
        turn_left=bool(ks[pygame.K_LEFT] or ks[pygame.K_a]),
        turn_right=bool(ks[pygame.K_RIGHT] or ks[pygame.K_d]),
    )


def read_keyboard() -> InputState:
    """Poll the current pygame keyboard state.

    Requires an initialized pygame display.
    """
    return input_from_pressed(pygame.key.get_pressed())

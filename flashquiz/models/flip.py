"""
Card flip state.

A card shows its word on the front and its definition on the back. The flip
is modelled as a continuous orientation in degrees, animated by the host UI
between 0 (front facing) and 180 (back facing). Which face to draw is derived
from the orientation on every frame, so the content swap happens exactly when
the card is edge-on.
"""

import math
from enum import Enum
from typing import Callable, List


class Face(Enum):
    """Side of the card facing the viewer."""
    FRONT = "front"
    BACK = "back"


class FlipController:
    """
    Orientation state for a two-sided card.

    toggle() only moves the target; the host animation layer walks the
    orientation toward it with set_orientation() and redraws using
    face_visible() and the opacity/scale helpers.

    Usage:
        flip = FlipController()
        flip.toggle()            # target is now 180
        flip.set_orientation(95)
        flip.face_visible()      # Face.BACK
    """

    MIN_ORIENTATION: float = 0.0
    MAX_ORIENTATION: float = 180.0
    MIDPOINT: float = 90.0

    # The back face is drawn pre-rotated so it reads upright once the card
    # has turned past the midpoint
    BACK_FACE_ROTATION: float = 180.0

    def __init__(self, flipped: bool = False) -> None:
        start = self.MAX_ORIENTATION if flipped else self.MIN_ORIENTATION
        self._orientation: float = start
        self._target: float = start
        self._face_callbacks: List[Callable[[Face], None]] = []

    @property
    def orientation(self) -> float:
        return self._orientation

    @property
    def target(self) -> float:
        return self._target

    @property
    def is_flipped(self) -> bool:
        """True when the card is heading to (or resting on) its back."""
        return self._target == self.MAX_ORIENTATION

    @property
    def is_animating(self) -> bool:
        return self._orientation != self._target

    @property
    def showing_front(self) -> bool:
        return self._orientation < self.MIDPOINT

    def face_visible(self) -> Face:
        return Face.FRONT if self.showing_front else Face.BACK

    def toggle(self) -> float:
        """
        Send the card toward the opposite face.

        The orientation is left where it is, so toggling mid-flight reverses
        from the current angle.

        Returns:
            The new target orientation
        """
        if self._target == self.MAX_ORIENTATION:
            self._target = self.MIN_ORIENTATION
        else:
            self._target = self.MAX_ORIENTATION
        return self._target

    def set_orientation(self, value: float) -> None:
        """Apply an animation frame. Values outside [0, 180] are clamped."""
        before = self.face_visible()
        self._orientation = min(self.MAX_ORIENTATION, max(self.MIN_ORIENTATION, float(value)))
        after = self.face_visible()
        if after != before:
            for callback in self._face_callbacks:
                callback(after)

    def on_face_change(self, callback: Callable[[Face], None]) -> None:
        """Register a callback fired when the visible face switches."""
        self._face_callbacks.append(callback)

    @property
    def front_opacity(self) -> float:
        return 1.0 if self.showing_front else 0.0

    @property
    def back_opacity(self) -> float:
        return 0.0 if self.showing_front else 1.0

    @property
    def horizontal_scale(self) -> float:
        """
        Projected width of the card for a 2D renderer.

        cos(orientation): 1 when facing front, 0 edge-on, -1 facing back.
        Combined with the back face's own 180 degree counter-rotation the
        definition reads upright.
        """
        return math.cos(math.radians(self._orientation))

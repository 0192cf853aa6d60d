"""
Gamepad intent source using a pygame joystick.
"""

import logging
from typing import Tuple

import pygame

from xdrive.math.constants import JOYSTICK_FULL_SCALE

logger = logging.getLogger(__name__)


class GamepadIntentSource:
    """
    Read (forward, strafe, rotate) from the first connected joystick.

    Axis layout follows a standard dual-stick pad: left stick Y forward,
    left stick X strafe, right stick X rotate. Pygame reports stick-up as
    negative, so the forward axis is inverted.
    """

    def __init__(self, joystick_index: int = 0, forward_axis: int = 1,
                 strafe_axis: int = 0, rotate_axis: int = 3):
        pygame.init()
        pygame.joystick.init()
        if pygame.joystick.get_count() <= joystick_index:
            raise RuntimeError(f"No joystick at index {joystick_index}")
        self._joystick = pygame.joystick.Joystick(joystick_index)
        self._joystick.init()
        self.forward_axis = forward_axis
        self.strafe_axis = strafe_axis
        self.rotate_axis = rotate_axis
        self.running = True
        logger.info("Gamepad: using %s", self._joystick.get_name())

    def _axis(self, index: int) -> int:
        return int(round(self._joystick.get_axis(index) * JOYSTICK_FULL_SCALE))

    def poll(self) -> Tuple[int, int, int]:
        """Return the current intent in joystick units."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
        return (-self._axis(self.forward_axis),
                self._axis(self.strafe_axis),
                self._axis(self.rotate_axis))

    def close(self):
        self._joystick.quit()
        pygame.quit()

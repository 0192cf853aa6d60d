"""
controls.py

This module wraps Pygame event handling to provide operator intent for
the X-drive simulation. It maps keys to forward, strafe and rotate
commands in joystick units and handles graceful shutdown when the user
presses ESC or closes the window.

Key map:
    W/S or UP/DOWN      forward / backward
    A/D                 strafe left / right
    LEFT/RIGHT or Q/E   rotate counter-clockwise / clockwise
    F                   toggle field-centric drive

Classes:
KeyboardController:
    Reads Pygame events and computes (forward, strafe, rotate) commands.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import pygame


@dataclass
class KeyboardController:
    """ Translate keyboard input into X-drive intent.

    Use the poll() method in each simulation loop iteration to read input
    and obtain the commanded intent.

    Parameters:
    magnitude (int): Command applied while a key is held (joystick units).
    field_centric (bool): Initial field-centric state.
    """

    magnitude: int = 100
    field_centric: bool = False
    # Internal state
    running: bool = True
    window_size: Tuple[int, int] = (300, 200)

    def __post_init__(self):
        pygame.init()
        self._screen = pygame.display.set_mode(self.window_size)
        pygame.display.set_caption("X-Drive Keyboard Controller")
        self._clock = pygame.time.Clock()

    def poll(self) -> Tuple[int, int, int]:
        """ Poll the keyboard and compute the intent.

        Returns:
            Tuple[int, int, int]: (forward, strafe, rotate) in joystick units,
            rotate positive clockwise.
        """
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            if event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    self.running = False
                elif event.key == pygame.K_f:
                    self.field_centric = not self.field_centric
        keys = pygame.key.get_pressed()
        forward = strafe = rotate = 0
        if keys[pygame.K_w] or keys[pygame.K_UP]:
            forward += self.magnitude
        if keys[pygame.K_s] or keys[pygame.K_DOWN]:
            forward -= self.magnitude
        if keys[pygame.K_d]:
            strafe += self.magnitude
        if keys[pygame.K_a]:
            strafe -= self.magnitude
        if keys[pygame.K_e] or keys[pygame.K_RIGHT]:
            rotate += self.magnitude
        if keys[pygame.K_q] or keys[pygame.K_LEFT]:
            rotate -= self.magnitude
        self._clock.tick()
        return forward, strafe, rotate

    def close(self):
        pygame.quit()

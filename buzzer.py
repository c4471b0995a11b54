import logging

import numpy as np
import pygame

logger = logging.getLogger(__name__)


class Buzzer:
    """
    Plays a constant tone for as long as the sound timer is running.
    """

    SAMPLE_RATE = 44100
    TONE_HZ = 440
    AMPLITUDE = 4096

    def __init__(self, enabled=True):
        self.playing = False
        self.sound = None

        if not enabled:
            return

        try:
            pygame.mixer.init(self.SAMPLE_RATE, -16, 1, 512)
        except pygame.error as error:
            logger.warning('Audio disabled, mixer could not start: %s', error)
            return

        self.sound = pygame.sndarray.make_sound(self.TONE(self.SAMPLE_RATE, self.TONE_HZ, self.AMPLITUDE))

    @staticmethod
    def TONE(sample_rate, frequency, amplitude):
        """
        One second of a sine wave as 16-bit samples, shaped to match the mixer's channel count.
        """
        samples = np.arange(sample_rate) * (2 * np.pi * frequency / sample_rate)
        wave = (amplitude * np.sin(samples)).astype(np.int16)

        init = pygame.mixer.get_init()
        channels = init[2] if init else 1
        if channels > 1:
            wave = np.repeat(wave.reshape(-1, 1), channels, axis=1)
        return wave

    def UPDATE(self, active):
        """
        Start or stop the tone when the sound flag changes.
        """
        if self.sound is None or active == self.playing:
            return

        if active:
            self.sound.play(loops=-1)
        else:
            self.sound.stop()
        self.playing = active

    def STOP(self):
        self.UPDATE(False)

from display import Display

from pygame import display, Color, Rect


class Screen(object):

    # CHIP-8 display size
    SCREEN_HEIGHT = Display.HEIGHT
    SCREEN_WIDTH = Display.WIDTH

    PIXEL_OFF = Color(0, 0, 0, 255)
    PIXEL_ON = Color(255, 255, 255, 255)

    CAPTION = 'CHIP-8 Emulator'

    def __init__(self, SCALE=10):

        # Setting the screen class height, width, and scale
        self.HEIGHT = self.SCREEN_HEIGHT
        self.WIDTH = self.SCREEN_WIDTH
        self.SCALE = SCALE

        #  Initialize a variable to hold the surface but don't use it
        self.SURFACE = None

        # Initialize the screen
        self.INITIALIZE()

    def INITIALIZE(self):

        # Initialize the display from pygame
        display.init()

        # Set the surface
        self.SURFACE = display.set_mode(((self.WIDTH * self.SCALE), (self.HEIGHT * self.SCALE)))

        # Setting the title of the display
        display.set_caption(self.CAPTION)

        # Clear the display, run update on it
        self.CLEAR()
        self.UPDATE()

    def SET_CAPTION(self, rom_name=None, fps=None):
        caption = self.CAPTION
        if rom_name:
            caption += ' - {}'.format(rom_name)
        if fps is not None:
            caption += ' [{:.1f} FPS]'.format(fps)
        display.set_caption(caption)

    def DRAW(self, x, y, state):

        # Setting pixel coordinates
        x_origin = x * self.SCALE
        y_origin = y * self.SCALE

        # Whether to turn pixel on or off
        color = self.PIXEL_ON if state else self.PIXEL_OFF
        self.SURFACE.fill(color, Rect(x_origin, y_origin, self.SCALE, self.SCALE))

    def PAINT(self, pixels):
        """
        Paint a full row-major frame buffer (one byte per pixel) and flip it.
        """
        self.CLEAR()
        for index, state in enumerate(pixels):
            if state:
                y, x = divmod(index, self.WIDTH)
                self.DRAW(x, y, state)
        self.UPDATE()

    def REFRESH(self, cpu):
        """
        Repaint from the interpreter if it asked for a redraw, then lower its flag.

        Returns True when a frame was painted.
        """
        if not cpu.DRAW_FLAG:
            return False

        self.PAINT(cpu.DISPLAY)
        cpu.CLEAR_DRAW_FLAG()
        return True

    def CLEAR(self):
        """
        Sets the entire screen to black (PIXEL_OFF)
        """
        self.SURFACE.fill(self.PIXEL_OFF)

    def UPDATE(self):
        display.flip()

    @staticmethod
    def DECONSTRUCTOR():
        """
        Destroys the current screen object.
        """
        display.quit()

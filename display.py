class Display:
    """
    The 64 x 32 monochrome frame buffer, stored row-major with one byte
    per pixel (0 or 1).

    Sprites are XORed onto the buffer. Their origin wraps around the screen
    but the sprite itself is clipped at the right and bottom edges. Any clear
    or draw raises the redraw flag, which only the consumer lowers again.
    """

    WIDTH = 64
    HEIGHT = 32
    SPRITE_WIDTH = 8

    def __init__(self):
        self.pixels = bytearray(self.WIDTH * self.HEIGHT)
        self.draw_flag = False

    def RESET(self):
        self.pixels[:] = bytes(len(self.pixels))
        self.draw_flag = False

    def CLEAR(self):
        """
        Sets every pixel to off and asks for a redraw.
        """
        self.pixels[:] = bytes(len(self.pixels))
        self.draw_flag = True

    def GET_PIXEL(self, x, y):
        return self.pixels[y * self.WIDTH + x]

    def DRAW_SPRITE(self, x, y, sprite):
        """
        XOR the sprite rows (one byte each, most significant bit leftmost)
        onto the buffer with the top left corner at (x, y).

        Returns True when a lit pixel was switched off (a collision).
        """
        x %= self.WIDTH
        y %= self.HEIGHT
        collision = False

        for row, sprite_byte in enumerate(sprite):
            y_coordinate = y + row
            if y_coordinate >= self.HEIGHT:
                break

            for column in range(self.SPRITE_WIDTH):
                x_coordinate = x + column
                if x_coordinate >= self.WIDTH:
                    break

                if not (sprite_byte >> (7 - column)) & 0x1:
                    continue

                index = y_coordinate * self.WIDTH + x_coordinate
                if self.pixels[index]:
                    collision = True
                self.pixels[index] ^= 1

        self.draw_flag = True
        return collision

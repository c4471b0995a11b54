from exceptions import MachineFaultException

# The 16 hexadecimal digit glyphs, 5 bytes each, living at 0x000 - 0x04F
FONTSET = bytes([
    0xF0, 0x90, 0x90, 0x90, 0xF0,   # 0
    0x20, 0x60, 0x20, 0x20, 0x70,   # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,   # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,   # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,   # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,   # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,   # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,   # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,   # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,   # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,   # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,   # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,   # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,   # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,   # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,   # F
])

FONT_ADDRESS = 0x000
GLYPH_SIZE = 5


class Memory:
    """
    The 4k of CHIP-8 memory behind bounds-checked accessors.

    Every access outside 0x000 - 0xFFF raises a MachineFaultException, and so
    does any program write into the font area.
    """

    SIZE = 4096
    FONT_END = FONT_ADDRESS + len(FONTSET)

    def __init__(self):
        self.data = bytearray(self.SIZE)
        self.RESET()

    def RESET(self):
        """
        Zero the whole memory and copy the font back into low memory.
        """
        self.data[:] = bytes(self.SIZE)
        self.data[FONT_ADDRESS:self.FONT_END] = FONTSET

    def __len__(self):
        return self.SIZE

    def _CHECK_RANGE(self, address, length):
        if address < 0 or address + length > self.SIZE:
            raise MachineFaultException(
                'Memory access out of range: {:#05x} (+{} bytes)'.format(address, length),
                address,
            )

    def READ(self, address):
        self._CHECK_RANGE(address, 1)
        return self.data[address]

    def READ_WORD(self, address):
        """
        Big endian 16-bit read, used for instruction fetch.
        """
        self._CHECK_RANGE(address, 2)
        return (self.READ(address) << 8) | self.READ(address + 1)

    def READ_BLOCK(self, address, length):
        self._CHECK_RANGE(address, length)
        return bytes(self.data[address:address + length])

    def WRITE_BLOCK(self, address, values):
        values = bytes(values)
        self._CHECK_RANGE(address, len(values))
        if values and address < self.FONT_END:
            raise MachineFaultException(
                'Write into the font area at {:#05x}'.format(address),
                address,
            )
        self.data[address:address + len(values)] = values

    def LOAD(self, address, values):
        """
        Place a program image in memory. Only the loader calls this, the
        font guard is bypassed and the size must already be validated.
        """
        self._CHECK_RANGE(address, len(values))
        self.data[address:address + len(values)] = values


class Stack:
    """
    Return address stack, 16 entries deep.
    """

    DEPTH = 16

    def __init__(self):
        self.addresses = []

    def RESET(self):
        self.addresses.clear()

    def __len__(self):
        return len(self.addresses)

    def PUSH(self, address):
        if len(self.addresses) >= self.DEPTH:
            raise MachineFaultException('Stack overflow: more than {} nested calls'.format(self.DEPTH), address)
        self.addresses.append(address)

    def POP(self):
        if not self.addresses:
            raise MachineFaultException('Stack underflow: return without a matching call')
        return self.addresses.pop()


class RegisterFile:
    """
    The 16 general purpose registers V0 - VF.

    Every cell is 8 bits wide: stored values wrap modulo 256. VF is an
    ordinary register that several instructions overwrite with a flag
    (carry, not borrow, shifted out bit, sprite collision).
    """

    COUNT = 16
    FLAG = 0xF

    def __init__(self):
        self.cells = bytearray(self.COUNT)

    def RESET(self):
        self.cells[:] = bytes(self.COUNT)

    def __getitem__(self, index):
        return self.cells[index]

    def __setitem__(self, index, value):
        self.cells[index] = value & 0xFF

    def __len__(self):
        return self.COUNT

    def SET_FLAG(self, value):
        self.cells[self.FLAG] = 1 if value else 0

    def DUMP(self, last):
        """
        Values of V0 through V[last] inclusive.
        """
        return bytes(self.cells[:last + 1])

    def FILL(self, values):
        """
        Load V0 upward from a sequence of bytes.
        """
        self.cells[:len(values)] = bytes(values)

class Chip8Exception(Exception):
    """
    Base class for everything the emulator raises on purpose.
    """


class RomUnreadableException(Chip8Exception):
    """
    The bytes of a program could not be obtained (missing file, bad source).
    """

    def __init__(self, source, reason=None):
        self.source = source
        self.reason = reason
        message = 'Could not load program from {}'.format(source)
        if reason:
            message += ': {}'.format(reason)
        super().__init__(message)


class RomTooLargeException(Chip8Exception):

    def __init__(self, size, limit):
        self.size = size
        self.limit = limit
        super().__init__('Program is {} bytes, at most {} bytes fit in memory'.format(size, limit))


class UnknownOpCodeException(Chip8Exception):
    """
    Only raised when the interpreter runs in strict mode, otherwise
    unknown operations are skipped.
    """

    def __init__(self, opcode):
        self.opcode = opcode
        super().__init__('Unknown opcode: {:04X}'.format(opcode))


class MachineFaultException(Chip8Exception):
    """
    The program did something the machine cannot do (stack overflow,
    memory access out of range, write into the font area). The interpreter
    halts until it is reset.
    """

    def __init__(self, message, address=None):
        self.address = address
        super().__init__(message)

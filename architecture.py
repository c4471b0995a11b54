from display import Display
from exceptions import (
    MachineFaultException,
    RomTooLargeException,
    RomUnreadableException,
    UnknownOpCodeException,
)
from memory import FONT_ADDRESS, GLYPH_SIZE, Memory, RegisterFile, Stack

import logging
import random

logger = logging.getLogger(__name__)


class Architecture:
    # Constants:
    MAX_MEMORY = Memory.SIZE
    PROGRAM_COUNTER_START = 0x200
    MAX_PROGRAM_SIZE = MAX_MEMORY - PROGRAM_COUNTER_START
    KEY_COUNT = 16
    RUNNING = 'running'
    AWAITING_KEY = 'awaiting_key'

    def __init__(self, shift_vy=True, strict=False, rng=None):

        # The CHIP-8 had 4k (4096 bytes) of memory
        self.memory = Memory()

        # The CHIP-8 had a series of registers as follows:
        #
        #   1 x 16-bit index register        (I)
        #   1 x 16-bit program counter       (PC)
        #   1 x 8-bit delay timer            (DT)
        #   1 x 8-bit sound timer            (ST)
        #
        #   16 x 8-bit general registers     (V0 - VF)
        #
        # and a separate 16 entry stack for return addresses

        self.GeneralRegisters = RegisterFile()

        self.CpuRegisters = {
            'I' : 0,
            'PC': 0,
        }

        self.Timers = {
            'DT': 0,
            'ST': 0,
        }

        self.stack = Stack()
        self.screen = Display()
        self.Keypad = [False] * self.KEY_COUNT

        # Quirks and behaviour switches
        self.SHIFT_VY = shift_vy
        self.STRICT = strict
        self.rng = rng or random.Random()

        # The Operations function by looking at the most significant nibble
        # (The first character after 0x), then the next 3 nibbles are used to define
        # The parameters of the operation (so 0x1333 = JMP 333)
        self.OperationLookupTable = {
            0x0: self.SYS,                         # 00E0 / 00EE                (CLEAR, RETURN)
            0x1: self.JMP_ADDR,                    # 1NNN - JUMP NNN            (JUMP TO ADDRESS)
            0x2: self.JMP_SBR,                     # 2NNN - CALL NNN            (JUMP TO SUBROUTINE)
            0x3: self.SKIP_REG_E_VAL,              # 3XNN - SKE  VX, NN         (SKIP IF VX == NN)
            0x4: self.SKIP_REG_NE_VAL,             # 4XNN - SKNE VX, NN         (SKIP IF VX != NN)
            0x5: self.SKIP_REG_E_REG,              # 5XY0 - SKE  VX, VY         (SKIP IF VX == VY)
            0x6: self.LD_VAL_REG,                  # 6XNN - LOAD VX, NN         (LOAD NN INTO VX)
            0x7: self.ADD_VAL_REG,                 # 7XNN - ADD  VX, NN         (ADD NN TO VX)
            0x8: self.ELI,                         # SUBFUNCTION DEFINED BELOW  (Execute Logical Instruction)
            0x9: self.SKIP_REG_NE_REG,             # 9XY0 - SKNE VX, VY         (SKIP IF VX != VY)
            0xA: self.LD_I_VAL,                    # ANNN - LOAD I, NNN         (LOAD NNN INTO I)
            0xB: self.JMP_V0_VAL,                  # BNNN - JUMP V0 + NNN       (JUMP TO V0 + NNN)
            0xC: self.RND_REG,                     # CXNN - RAND VX, NN         (RANDOM BYTE AND NN INTO VX)
            0xD: self.DRAW,                        # DXYN - DRAW VX, VY, N      (DRAW SPRITE AT I, SET VF ON COLLISION)
            0xE: self.KBRD,                        # SUBFUNCTION DEFINED BELOW  (Keyboard Routine)
            0xF: self.MSC,                         # SUBFUNCTION DEFINED BELOW  (Miscellaneous Routine)
        }

        #  As defined above, self.ELI get called when 0x8NNN is loaded into the CPU
        #  The last nibble is used to define the logical instruction
        self.ELILookup = {
            0x0: self.LD_REG_REG,                  # 8XY0 - LOAD VX, VY   (LOAD VY INTO VX)
            0x1: self.OR,                          # 8XY1 - OR   VX, VY   (LOGICAL 'OR' OF VX AND VY)
            0x2: self.AND,                         # 8XY2 - AND  VX, VY   (LOGICAL 'AND' OF VX AND VY)
            0x3: self.XOR,                         # 8XY3 - XOR  VX, VY   (LOGICAL 'XOR' OF VX AND VY)
            0x4: self.ADD_REG_REG,                 # 8XY4 - ADD  VX, VY   (ADD VY TO VX, VF = CARRY)
            0x5: self.SUB_REG_REG,                 # 8XY5 - SUB  VX, VY   (VX = VX - VY, VF = NOT BORROW)
            0x6: self.R_SHFT_REG,                  # 8XY6 - SHR  VX, VY   (VX = VY >> 1)
            0x7: self.SUBN_REG_REG,                # 8XY7 - SUBN VX, VY   (VX = VY - VX, VF = NOT BORROW)
            0xE: self.L_SHFT_REG,                  # 8XYE - SHL  VX, VY   (VX = VY << 1)
        }

        #  As defined above, self.MSC get called when 0xFNNN is loaded into the CPU
        #  The last byte is used to define the instruction
        self.MSCLookup = {
            0x07: self.LD_DT_REG,                   # FX07 - LOAD VX, DT    (LOAD DT INTO VX)
            0x0A: self.WAIT_KEYPRESS,               # FX0A - KEYD VX        (WAIT FOR KEYPRESS, LOAD INTO VX)
            0x15: self.LD_REG_DT,                   # FX15 - LOAD DT, VX    (LOAD VX INTO DT)
            0x18: self.LD_REG_ST,                   # FX18 - LOAD ST, VX    (LOAD VX INTO ST)
            0x1E: self.ADD_REG_I,                   # FX1E - ADD  I, VX     (ADD VX TO I)
            0x29: self.LD_I_REG,                    # FX29 - LOAD I, VX     (LOAD GLYPH ADDRESS OF VX INTO I)
            0x33: self.STR_BCD_MEM,                 # FX33 - BCD            (STORE BINARY CODED DECIMAL OF VX INTO MEMORY)
            0x55: self.STR_REG_MEM,                 # FX55 - STOR [I], VX   (STORE V0 to VX INTO MEMORY[I])
            0x65: self.LD_REG_MEM,                  # FX65 - LOAD VX, [I]   (LOAD V0 to VX FROM MEMORY[I])
        }

        # Settings the current operand
        self.CurrentOperand = 0

        # Register awaiting a key press while in the AWAITING_KEY state
        self.KeyRegister = 0

        # Reset memory function
        self.RESET()

    def __str__(self):
        registers = ' '.join('V{:X}={:02X}'.format(i, self.GeneralRegisters[i]) for i in range(16))
        return 'PC={:04X} I={:04X} SP={} DT={} ST={} STATE={}\n{}'.format(
            self.CpuRegisters['PC'],
            self.CpuRegisters['I'],
            len(self.stack),
            self.Timers['DT'],
            self.Timers['ST'],
            self.STATE,
            registers,
        )

    # Accessors for the collaborators (screen, buzzer, input)

    @property
    def DISPLAY(self):
        """
        Read only copy of the 64 x 32 frame buffer, row-major, one byte per pixel.
        """
        return bytes(self.screen.pixels)

    @property
    def DRAW_FLAG(self):
        return self.screen.draw_flag

    def CLEAR_DRAW_FLAG(self):
        """
        Called by the consumer once it has painted the current frame.
        """
        self.screen.draw_flag = False

    def GET_PIXEL(self, x, y):
        return self.screen.GET_PIXEL(x, y)

    @property
    def SOUND_ACTIVE(self):
        return self.Timers['ST'] > 0

    def SET_KEY(self, index, pressed):
        self.Keypad[index] = bool(pressed)

    # Lifecycle

    def RESET(self):
        """
        Blanks out memory, registers, stack, display and timers, copies the
        font back into low memory and points the PC at the program start
        """
        self.memory.RESET()
        self.GeneralRegisters.RESET()
        self.stack.RESET()
        self.screen.RESET()

        for i in range(self.KEY_COUNT):
            self.Keypad[i] = False

        self.CpuRegisters['PC'] = self.PROGRAM_COUNTER_START
        self.CpuRegisters['I'] = 0

        self.Timers['DT'] = 0
        self.Timers['ST'] = 0

        self.CurrentOperand = 0
        self.KeyRegister = 0
        self.STATE = self.RUNNING
        self.FAULT = None

    def LOAD_PROGRAM(self, data):
        """
        Reset the machine and copy the program image to 0x200.

        Nothing is written to memory unless the whole image fits.
        """
        self.RESET()

        if data is None or isinstance(data, int):
            raise RomUnreadableException('<no data>')
        try:
            program = bytes(data)
        except (TypeError, ValueError) as error:
            raise RomUnreadableException(type(data).__name__, error) from error

        if len(program) > self.MAX_PROGRAM_SIZE:
            raise RomTooLargeException(len(program), self.MAX_PROGRAM_SIZE)

        self.memory.LOAD(self.PROGRAM_COUNTER_START, program)
        self.CpuRegisters['PC'] = self.PROGRAM_COUNTER_START
        logger.info('Loaded %d byte program at %#05x', len(program), self.PROGRAM_COUNTER_START)

    def LOAD_ROMFILE(self, filename):
        """
        Load the ROM indicated by the filename into memory.
        """
        try:
            with open(filename, 'rb') as rom:
                data = rom.read()
        except OSError as error:
            self.RESET()
            raise RomUnreadableException(filename, error.strerror or error) from error

        self.LOAD_PROGRAM(data)

    # Execution

    def EXECUTE(self, OPERAND=None):
        """
        Execute the current instruction from the OPERAND parameter
        or the value at self.memory([PC])

        Returns the operand that ran, or None when the machine is still
        waiting for a key press. While FX0A is waiting, OPERAND is ignored:
        the call only polls the keypad and nothing is executed.
        """

        if self.FAULT is not None:
            raise self.FAULT

        if self.STATE == self.AWAITING_KEY:
            self.POLL_KEYPRESS()
            return None

        try:
            if OPERAND is not None:
                self.CurrentOperand = OPERAND
            else:
                # Fetch the big endian word at [PC] and move the PC
                # past it before the instruction runs
                self.CurrentOperand = self.memory.READ_WORD(self.CpuRegisters['PC'])
                self.CpuRegisters['PC'] = (self.CpuRegisters['PC'] + 2) & 0xFFFF

            # The operation index being formatted for the lookup table
            OPERATION = (self.CurrentOperand & 0xF000) >> 12

            # Run the correct operation
            self.OperationLookupTable[OPERATION]()
        except MachineFaultException as fault:
            logger.error('Machine fault at operand %04X: %s', self.CurrentOperand, fault)
            self.FAULT = fault
            raise

        # Return the operation we just ran
        return self.CurrentOperand

    def DECREMENT_TIMERS(self):
        """
        Decrement both the sound and delay timer, never below zero.
        """
        if self.Timers['DT'] > 0:
            self.Timers['DT'] -= 1

        if self.Timers['ST'] > 0:
            self.Timers['ST'] -= 1

    def UNKNOWN(self):
        """
        Operands outside the instruction table are skipped unless running strict
        """
        if self.STRICT:
            raise UnknownOpCodeException(self.CurrentOperand)
        logger.debug('Ignoring unknown opcode %04X', self.CurrentOperand)

    def SKIP(self):
        self.CpuRegisters['PC'] = (self.CpuRegisters['PC'] + 2) & 0xFFFF

    # Operand field helpers

    @property
    def X(self):
        return (self.CurrentOperand & 0x0F00) >> 8

    @property
    def Y(self):
        return (self.CurrentOperand & 0x00F0) >> 4

    @property
    def N(self):
        return self.CurrentOperand & 0x000F

    @property
    def NN(self):
        return self.CurrentOperand & 0x00FF

    @property
    def NNN(self):
        return self.CurrentOperand & 0x0FFF

    def ELI(self):
        """
        Defining the ELI Operation from the Lookup Table
        """

        # Formatting operation for lookup table
        OPERATION = self.CurrentOperand & 0x000F

        self.ELILookup.get(OPERATION, self.UNKNOWN)()

    def KBRD(self):
        """
        Runs the correct keyboard routine based on CurrentOperand

        OPERANDS:
            EX9E - SKPR VX (IF KEY IN VX IS PRESSED, SKIP LINE)
            EXA1 - SKUP VX (IF KEY IN VX NOT PRESSED, SKIP LINE)

        Only the low nibble of VX selects the key.
        """

        # Formatting operation for lookup table (get the low byte)
        OPERATION = self.NN

        KEY_TO_CHECK = self.GeneralRegisters[self.X] & 0xF

        if OPERATION == 0x9E:
            if self.Keypad[KEY_TO_CHECK]:
                self.SKIP()
        elif OPERATION == 0xA1:
            if not self.Keypad[KEY_TO_CHECK]:
                self.SKIP()
        else:
            self.UNKNOWN()

    def MSC(self):
        """
        Will execute the subroutines defined in self.MSCLookup
        """

        # Formatting operation for lookup table
        OPERATION = self.CurrentOperand & 0x00FF

        self.MSCLookup.get(OPERATION, self.UNKNOWN)()

    def SYS(self):
        """
        Opcodes starting with a 0 are one of the following instructions:
            00E0 - Clear the display
            00EE - Return from subroutine

        Any other 0NNN (machine code routine) is treated as unknown.
        """

        if self.CurrentOperand == 0x00E0:
            self.screen.CLEAR()
        elif self.CurrentOperand == 0x00EE:
            self.RETURN()
        else:
            self.UNKNOWN()

    def RETURN(self):
        """
        Called by 00EE instruction

        Return from subroutine. Pop the return address off of the stack,
        and set the program counter to the value popped.
        """
        self.CpuRegisters['PC'] = self.stack.POP()

    def JMP_ADDR(self):
        """
        Jump instruction to address

        0x1NNN = JUMP TO NNN
        """

        self.CpuRegisters['PC'] = self.NNN

    def JMP_SBR(self):
        """
        Jump instruction to subroutine. Save the current program counter on the stack,
        then take the last 3 nibbles of the CurrentOperand as the new PC

        0x2NNN - CALL NNN Subroutine
        """

        self.stack.PUSH(self.CpuRegisters['PC'])
        self.CpuRegisters['PC'] = self.NNN

    def SKIP_REG_E_VAL(self):
        """
        Triggered by 0x3XNN = SKIP IF REGISTER VX == NN
        """

        if self.GeneralRegisters[self.X] == self.NN:
            self.SKIP()

    def SKIP_REG_NE_VAL(self):
        """
        Triggered by 0x4XNN = SKIP IF REGISTER VX != NN
        """

        if self.GeneralRegisters[self.X] != self.NN:
            self.SKIP()

    def SKIP_REG_E_REG(self):
        """
        Triggered by 0x5XY0 = SKIP IF REGISTER VX == VY
        """

        if self.N != 0:
            return self.UNKNOWN()

        if self.GeneralRegisters[self.X] == self.GeneralRegisters[self.Y]:
            self.SKIP()

    def SKIP_REG_NE_REG(self):
        """
        Triggered by 0x9XY0 = SKIP IF REGISTER VX != VY
        """

        if self.N != 0:
            return self.UNKNOWN()

        if self.GeneralRegisters[self.X] != self.GeneralRegisters[self.Y]:
            self.SKIP()

    def LD_VAL_REG(self):
        """
        Triggered by 0x6XNN = LOAD NN into VX
        """

        self.GeneralRegisters[self.X] = self.NN

    def ADD_VAL_REG(self):
        """
        Triggered by 0x7XNN = VX = [VX] + NN
        Wraps around at 256, VF is left alone
        """

        self.GeneralRegisters[self.X] = self.GeneralRegisters[self.X] + self.NN

    def LD_REG_REG(self):
        """
        PART OF ELI: Triggered by 0x8XY0 = VX = [VY]
        """

        self.GeneralRegisters[self.X] = self.GeneralRegisters[self.Y]

    def OR(self):
        """
        PART OF ELI: Triggered by 0x8XY1 = VX = VX | VY
        """

        self.GeneralRegisters[self.X] = self.GeneralRegisters[self.X] | self.GeneralRegisters[self.Y]

    def AND(self):
        """
        PART OF ELI: Triggered by 0x8XY2 = VX = VX & VY
        """

        self.GeneralRegisters[self.X] = self.GeneralRegisters[self.X] & self.GeneralRegisters[self.Y]

    def XOR(self):
        """
        PART OF ELI: Triggered by 0x8XY3 = VX = VX ^ VY
        """

        self.GeneralRegisters[self.X] = self.GeneralRegisters[self.X] ^ self.GeneralRegisters[self.Y]

    def ADD_REG_REG(self):
        """
        PART OF ELI: Triggered by 0x8XY4 = VX = VX + [VY]
        If carry is generated, we need to set the carry flag in VF

        The flag is stored before the result, so 8FY4 leaves the sum in VF
        """

        added_value = self.GeneralRegisters[self.X] + self.GeneralRegisters[self.Y]

        self.GeneralRegisters.SET_FLAG(added_value > 255)
        self.GeneralRegisters[self.X] = added_value

    def SUB_REG_REG(self):
        """
        PART OF ELI: Triggered by 0x8XY5 = VX = [VX] - [VY]

        VF is set when VX is strictly greater than VY (no borrow). The flag
        is stored first and the subtraction reads the registers afterwards
        """

        self.GeneralRegisters.SET_FLAG(self.GeneralRegisters[self.X] > self.GeneralRegisters[self.Y])
        self.GeneralRegisters[self.X] = self.GeneralRegisters[self.X] - self.GeneralRegisters[self.Y]

    def SUBN_REG_REG(self):
        """
        PART OF ELI: Triggered by 0x8XY7 = VX = [VY] - [VX]

        VF is set when VY is strictly greater than VX (no borrow). The flag
        is stored first and the subtraction reads the registers afterwards
        """

        self.GeneralRegisters.SET_FLAG(self.GeneralRegisters[self.Y] > self.GeneralRegisters[self.X])
        self.GeneralRegisters[self.X] = self.GeneralRegisters[self.Y] - self.GeneralRegisters[self.X]

    def SHIFT_SOURCE(self):
        """
        Shifts read VY unless the interpreter was built with shift_vy=False,
        in which case VX is shifted in place
        """
        return self.GeneralRegisters[self.Y if self.SHIFT_VY else self.X]

    def R_SHFT_REG(self):
        """
        PART OF ELI: Triggered by 0x8XY6 = VF = VY & 0x1 (bit 0 not byte 0), then VX = VY >> 1
        """

        self.GeneralRegisters.SET_FLAG(self.SHIFT_SOURCE() & 0x1)
        self.GeneralRegisters[self.X] = self.SHIFT_SOURCE() >> 1

    def L_SHFT_REG(self):
        """
        PART OF ELI: Triggered by 0x8XYE = VF = (VY >> 7) & 0x1 (bit 7 not byte 7), then VX = VY << 1
        """

        self.GeneralRegisters.SET_FLAG((self.SHIFT_SOURCE() >> 7) & 0x1)
        self.GeneralRegisters[self.X] = self.SHIFT_SOURCE() << 1

    def LD_I_VAL(self):
        """
        Triggered by 0xANNN = LOAD NNN into I
        """

        self.CpuRegisters['I'] = self.NNN

    def JMP_V0_VAL(self):
        """
        Triggered by 0xBNNN = JUMP to [V0] + NNN
        """

        self.CpuRegisters['PC'] = self.NNN + self.GeneralRegisters[0x0]

    def RND_REG(self):
        """
        Triggered by 0xCXNN = Generate a random number, AND it with NN and save in VX
        Random number must be between 0 and 255
        """

        self.GeneralRegisters[self.X] = self.NN & self.rng.randint(0, 255)

    def LD_DT_REG(self):
        """
        PART OF MSC - Triggered by 0xFX07 = LOAD DT INTO VX
        """

        self.GeneralRegisters[self.X] = self.Timers['DT']

    def FIRST_PRESSED_KEY(self):
        for index, pressed in enumerate(self.Keypad):
            if pressed:
                return index
        return None

    def WAIT_KEYPRESS(self):
        """
        PART OF MSC - Triggered by 0xFX0A = WAIT FOR KEYPRESS, STORE KEYPRESS INTO VX

        If a key is already held it is taken right away, otherwise the machine
        moves to the AWAITING_KEY state and each EXECUTE() polls the keypad
        until one is pressed.
        """

        self.KeyRegister = self.X
        self.STATE = self.AWAITING_KEY
        self.POLL_KEYPRESS()

    def POLL_KEYPRESS(self):
        key_pressed = self.FIRST_PRESSED_KEY()
        if key_pressed is None:
            return

        self.GeneralRegisters[self.KeyRegister] = key_pressed
        self.STATE = self.RUNNING
        logger.debug('Key %X stored in V%X, resuming', key_pressed, self.KeyRegister)

    def LD_REG_DT(self):
        """
        PART OF MSC - Triggered by 0xFX15 = LOAD VX INTO DT
        """

        self.Timers['DT'] = self.GeneralRegisters[self.X]

    def LD_REG_ST(self):
        """
        PART OF MSC - Triggered by 0xFX18 = LOAD VX INTO ST
        """

        self.Timers['ST'] = self.GeneralRegisters[self.X]

    def ADD_REG_I(self):
        """
        PART OF MSC - Triggered by 0xFX1E = I = [VX] + [I]

        I may move past the end of memory, the fault only happens when it is used
        """

        self.CpuRegisters['I'] = (self.CpuRegisters['I'] + self.GeneralRegisters[self.X]) & 0xFFFF

    def LD_I_REG(self):
        """
        PART OF MSC - Triggered by 0xFX29 = LOAD GLYPH ADDRESS FOR DIGIT VX INTO I
        We multiply by 5 to shift the register value into a SPRITE CODE
        All Sprite codes are 5 bytes long, so the location of the sprite is index*5
        """

        self.CpuRegisters['I'] = FONT_ADDRESS + (self.GeneralRegisters[self.X] & 0xF) * GLYPH_SIZE

    def STR_BCD_MEM(self):
        """
        PART OF MSC - Triggered by 0xFX33 = TAKE Value in VX and place as follow into memory:

            N*10^2 = self.memory[i]
            N*10^1 = self.memory[i+1]
            N*10^0 = self.memory[i+2]

        """

        value = self.GeneralRegisters[self.X]
        digits = (value // 100, (value // 10) % 10, value % 10)

        self.memory.WRITE_BLOCK(self.CpuRegisters['I'], digits)

    def STR_REG_MEM(self):
        """
        PART OF MSC - Triggered by 0xFX55 = STORE V0-VX INTO MEMORY AT [I]
        """

        self.memory.WRITE_BLOCK(self.CpuRegisters['I'], self.GeneralRegisters.DUMP(self.X))

    def LD_REG_MEM(self):
        """
        PART OF MSC - Triggered by 0xFX65 = LOAD V0-VX FROM MEMORY AT [I]
        """

        self.GeneralRegisters.FILL(self.memory.READ_BLOCK(self.CpuRegisters['I'], self.X + 1))

    def DRAW(self):
        """
        The draw method for drawing a sprite into the frame buffer
        Triggered by DXYN - DRAW VX, VY, N

        Works by reading N bytes of sprite from memory at the index register ([I])
        and XORing them onto the display at the coordinates x = [VX], y = [VY].
        The width is hardcoded to be 8-bits, N gives the height.

        Since the index register points to memory, say the memory looks like this:

        self.memory[0]:     0 1 1 1 1 1 0 0
        self.memory[1]:     0 1 0 0 0 0 0 0
        self.memory[2]:     0 1 0 0 0 0 0 0
        self.memory[3]:     0 1 1 1 1 1 0 0
        self.memory[4]:     0 1 0 0 0 0 0 0
        self.memory[5]:     0 1 0 0 0 0 0 0
        self.memory[6]:     0 1 1 1 1 1 0 0

        where the 1's form the shape of an E, then having the index point to self.memory[0]
        and N as 7 would tell the emulator to draw the E by iterating from 0-6 in the memory.

        VF ends up as 1 if any lit pixel got switched off, 0 otherwise.
        """

        x = self.GeneralRegisters[self.X]
        y = self.GeneralRegisters[self.Y]

        sprite = self.memory.READ_BLOCK(self.CpuRegisters['I'], self.N)

        collision = self.screen.DRAW_SPRITE(x, y, sprite)
        self.GeneralRegisters.SET_FLAG(collision)

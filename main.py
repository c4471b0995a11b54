from architecture import Architecture
from buzzer import Buzzer
from exceptions import Chip8Exception
from keyboard import HANDLE_KEY_EVENT
from scheduler import CycleScheduler
from screen import Screen

import argparse
import logging
import os
import sys
import time

import pygame

logger = logging.getLogger(__name__)


class Emulator:

    # Instruction and timer rates (Hz)
    CPU_HZ = 700
    TIMER_HZ = 60

    # How often the frame rate in the caption is refreshed (in s)
    FPS_INTERVAL = 0.5

    # Idle wait while paused (in ms)
    PAUSED_WAIT_MS = 16

    def __init__(self, rom, scale=10, cpu_hz=CPU_HZ, timer_hz=TIMER_HZ,
                 strict=False, shift_vy=True, mute=False):
        self.ROM_FILE = rom
        self.SCALE = scale
        self.CPU_HZ = cpu_hz
        self.TIMER_HZ = timer_hz
        self.MUTE = mute

        self.CPU = Architecture(shift_vy=shift_vy, strict=strict)
        self.scheduler = CycleScheduler(cpu_hz, timer_hz)

        self.paused = False
        self.running = False

    def LOAD(self):
        """
        (Re)load the ROM file, which also resets the machine.
        """
        self.CPU.LOAD_ROMFILE(self.ROM_FILE)
        self.scheduler.RESET()
        logger.info('Running %s', self.ROM_FILE)

    def HANDLE_EVENTS(self):
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False

            elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                self.running = False

            elif event.type == pygame.KEYDOWN and event.key == pygame.K_F5:
                logger.info('Reset')
                self.LOAD()

            elif event.type == pygame.KEYDOWN and event.key == pygame.K_p:
                self.paused = not self.paused
                logger.info('Paused' if self.paused else 'Resumed')

            else:
                HANDLE_KEY_EVENT(self.CPU, event)

    def RUN_DUE_CYCLES(self):
        steps, ticks = self.scheduler.DUE()

        for _ in range(steps):
            self.CPU.EXECUTE()

        for _ in range(ticks):
            self.CPU.DECREMENT_TIMERS()

    def SLEEP_MS(self):
        """
        Milliseconds the loop may wait before polling again. While paused
        nothing runs: the loop idles at a fixed rate and the schedule is
        held at the current time.
        """
        if self.paused:
            self.scheduler.RESET()
            return self.PAUSED_WAIT_MS
        return int(self.scheduler.SLEEP_TIME() * 1000)

    def main(self):
        pygame.init()

        screen = Screen(SCALE=self.SCALE)
        buzzer = Buzzer(enabled=not self.MUTE)
        rom_name = os.path.basename(self.ROM_FILE)

        try:
            self.LOAD()
            screen.SET_CAPTION(rom_name)

            frames = 0
            last_fps_update = time.perf_counter()
            self.running = True

            while self.running:
                self.HANDLE_EVENTS()

                if not self.paused:
                    self.RUN_DUE_CYCLES()

                if screen.REFRESH(self.CPU):
                    frames += 1

                buzzer.UPDATE(self.CPU.SOUND_ACTIVE and not self.paused)

                now = time.perf_counter()
                if now - last_fps_update >= self.FPS_INTERVAL:
                    screen.SET_CAPTION(rom_name, frames / (now - last_fps_update))
                    frames = 0
                    last_fps_update = now

                # Sleep until the next step or timer deadline
                pygame.time.wait(self.SLEEP_MS())
        finally:
            buzzer.STOP()
            screen.DECONSTRUCTOR()
            pygame.quit()


def PARSE_ARGS(argv=None):
    parser = argparse.ArgumentParser(prog='chip8', description='CHIP-8 emulator')
    parser.add_argument('rom', help='path to the ROM file')
    parser.add_argument('--scale', type=int, default=10, help='window pixels per CHIP-8 pixel (default: 10)')
    parser.add_argument('--cpu-hz', type=int, default=Emulator.CPU_HZ,
                        help='instructions per second (default: {})'.format(Emulator.CPU_HZ))
    parser.add_argument('--strict', action='store_true', help='stop on unknown opcodes instead of skipping them')
    parser.add_argument('--shift-vx', action='store_true', help='8XY6/8XYE shift VX in place instead of VY')
    parser.add_argument('--mute', action='store_true', help='disable the buzzer')
    parser.add_argument('--debug', action='store_true', default=int(os.getenv('DEBUG', 0)) >= 1,
                        help='log every ignored opcode and state change')
    return parser.parse_args(argv)


def main(argv=None):
    args = PARSE_ARGS(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format='[%(levelname)s]:  %(message)s',
        stream=sys.stdout,
    )

    emulator = Emulator(
        rom=args.rom,
        scale=args.scale,
        cpu_hz=args.cpu_hz,
        strict=args.strict,
        shift_vy=not args.shift_vx,
        mute=args.mute,
    )

    try:
        emulator.main()
    except Chip8Exception as error:
        logger.error('%s', error)
        sys.exit('The emulator stopped: {}\n{}'.format(error, emulator.CPU))


if __name__ == '__main__':
    main()

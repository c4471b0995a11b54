"""
Tests for the pygame collaborators: keypad mapping, buzzer, screen and the
emulator driver. The screen runs against SDL's dummy video driver.
"""

import numpy as np
import pygame
import pytest

from architecture import Architecture
from buzzer import Buzzer
from keyboard import HANDLE_KEY_EVENT, KEY_MAPPINGS, KEYPAD_LOOKUP
from main import Emulator, PARSE_ARGS
from scheduler import CycleScheduler
from screen import Screen


# =============================================================================
#  KEYBOARD
# =============================================================================

def test_every_keypad_line_has_its_own_key():
    assert sorted(KEY_MAPPINGS) == list(range(16))
    assert len(set(KEY_MAPPINGS.values())) == 16
    assert KEYPAD_LOOKUP[pygame.K_x] == 0x0
    assert KEYPAD_LOOKUP[pygame.K_4] == 0xC

def test_key_events_drive_keypad_lines(cpu):
    assert HANDLE_KEY_EVENT(cpu, pygame.event.Event(pygame.KEYDOWN, key=pygame.K_q))
    assert cpu.Keypad[0x4] is True

    assert HANDLE_KEY_EVENT(cpu, pygame.event.Event(pygame.KEYUP, key=pygame.K_q))
    assert cpu.Keypad[0x4] is False

def test_unmapped_keys_and_other_events_are_ignored(cpu):
    assert not HANDLE_KEY_EVENT(cpu, pygame.event.Event(pygame.KEYDOWN, key=pygame.K_F12))
    assert not HANDLE_KEY_EVENT(cpu, pygame.event.Event(pygame.QUIT))
    assert not any(cpu.Keypad)


# =============================================================================
#  BUZZER
# =============================================================================

def test_tone_is_one_second_of_16_bit_samples():
    wave = Buzzer.TONE(8000, 440, 4096)
    assert wave.dtype == np.int16
    assert wave.shape[0] == 8000
    assert np.abs(wave).max() <= 4096

def test_muted_buzzer_does_nothing():
    buzzer = Buzzer(enabled=False)
    buzzer.UPDATE(True)
    assert buzzer.playing is False
    buzzer.STOP()


# =============================================================================
#  SCREEN
# =============================================================================

@pytest.fixture
def screen(monkeypatch):
    monkeypatch.setenv("SDL_VIDEODRIVER", "dummy")
    surface = Screen(SCALE=2)
    yield surface
    Screen.DECONSTRUCTOR()

def test_refresh_paints_and_lowers_the_flag(screen, run):
    cpu = run(0xA000, 0xD001)
    assert screen.REFRESH(cpu) is True
    assert not cpu.DRAW_FLAG
    assert screen.SURFACE.get_at((0, 0)) == Screen.PIXEL_ON
    assert screen.SURFACE.get_at((4 * 2, 0)) == Screen.PIXEL_OFF

def test_refresh_skips_clean_frames(screen, cpu):
    assert screen.REFRESH(cpu) is False

def test_screen_size_follows_scale(screen):
    assert screen.SURFACE.get_size() == (64 * 2, 32 * 2)


# =============================================================================
#  DRIVER
# =============================================================================

class FakeClock:

    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_driver_runs_due_steps_and_ticks(program):
    emulator = Emulator(rom="unused.ch8")
    clock = FakeClock()
    emulator.scheduler = CycleScheduler(700, 60, clock=clock)

    emulator.CPU.LOAD_PROGRAM(program(0x6005, 0xF015, 0x1204))
    clock.now = 0.25
    emulator.RUN_DUE_CYCLES()

    assert emulator.CPU.CpuRegisters["PC"] == 0x204
    assert emulator.CPU.Timers["DT"] == 0

def test_driver_passes_quirks_to_the_core():
    emulator = Emulator(rom="unused.ch8", strict=True, shift_vy=False)
    assert isinstance(emulator.CPU, Architecture)
    assert emulator.CPU.STRICT is True
    assert emulator.CPU.SHIFT_VY is False

def test_parse_args_defaults(monkeypatch):
    monkeypatch.delenv("DEBUG", raising=False)
    args = PARSE_ARGS(["games/PONG"])
    assert args.rom == "games/PONG"
    assert args.scale == 10
    assert args.cpu_hz == 700
    assert not args.strict
    assert not args.shift_vx
    assert not args.debug

def test_parse_args_switches(monkeypatch):
    monkeypatch.setenv("DEBUG", "1")
    args = PARSE_ARGS(["rom.ch8", "--scale", "4", "--cpu-hz", "1000", "--strict", "--shift-vx", "--mute"])
    assert (args.scale, args.cpu_hz) == (4, 1000)
    assert args.strict and args.shift_vx and args.mute
    assert args.debug

def test_paused_driver_idles_without_building_a_backlog(program):
    emulator = Emulator(rom="unused.ch8")
    clock = FakeClock()
    emulator.scheduler = CycleScheduler(700, 60, clock=clock)
    emulator.CPU.LOAD_PROGRAM(program(0x7001, 0x1200))

    emulator.paused = True
    clock.now = 5.0
    assert emulator.SLEEP_MS() == Emulator.PAUSED_WAIT_MS > 0
    assert emulator.scheduler.DUE() == (0, 0)

    emulator.paused = False
    assert emulator.SLEEP_MS() >= 1
    emulator.RUN_DUE_CYCLES()
    assert emulator.CPU.GeneralRegisters[0] == 0

import math
import time


class CycleScheduler:
    """
    Works out how many instruction steps and timer ticks are due.

    Deadlines are counted from a fixed start time so rounding never drifts
    the rates. If the caller falls more than MAX_CATCH_UP seconds behind,
    the backlog is dropped instead of being replayed in one burst.
    """

    CPU_HZ = 700
    TIMER_HZ = 60
    MAX_CATCH_UP = 0.25

    # Guards against floor() landing one short on values like 0.5 * 700
    EPSILON = 1e-9

    def __init__(self, cpu_hz=CPU_HZ, timer_hz=TIMER_HZ, clock=time.perf_counter):
        if cpu_hz <= 0 or timer_hz <= 0:
            raise ValueError('Rates must be positive, got cpu_hz={} timer_hz={}'.format(cpu_hz, timer_hz))

        self.cpu_hz = cpu_hz
        self.timer_hz = timer_hz
        self.clock = clock
        self.RESET()

    def RESET(self):
        """
        Restart counting from now, forgetting anything that was due.
        """
        self.start = self.clock()
        self.steps_done = 0
        self.ticks_done = 0

    def _CATCH_UP(self, due, done, hz):
        limit = int(self.MAX_CATCH_UP * hz)
        if due - done > limit:
            done = due - limit
        return done

    def DUE(self):
        """
        Returns (steps, ticks) that should run now and marks them as done.
        """
        elapsed = self.clock() - self.start

        steps_due = math.floor(elapsed * self.cpu_hz + self.EPSILON)
        ticks_due = math.floor(elapsed * self.timer_hz + self.EPSILON)

        self.steps_done = self._CATCH_UP(steps_due, self.steps_done, self.cpu_hz)
        self.ticks_done = self._CATCH_UP(ticks_due, self.ticks_done, self.timer_hz)

        steps = max(0, steps_due - self.steps_done)
        ticks = max(0, ticks_due - self.ticks_done)

        self.steps_done += steps
        self.ticks_done += ticks
        return steps, ticks

    def SLEEP_TIME(self):
        """
        Seconds until the next step or tick deadline, zero if one is already due.
        """
        next_step = self.start + (self.steps_done + 1) / self.cpu_hz
        next_tick = self.start + (self.ticks_done + 1) / self.timer_hz
        return max(0.0, min(next_step, next_tick) - self.clock())

import pygame

# CHIP-8 keypad index -> physical key, using the usual COSMAC VIP layout
#
#   1 2 3 C        1 2 3 4
#   4 5 6 D   ->   Q W E R
#   7 8 9 E        A S D F
#   A 0 B F        Z X C V
KEY_MAPPINGS = {
    0x1: pygame.K_1,
    0x2: pygame.K_2,
    0x3: pygame.K_3,
    0xC: pygame.K_4,
    0x4: pygame.K_q,
    0x5: pygame.K_w,
    0x6: pygame.K_e,
    0xD: pygame.K_r,
    0x7: pygame.K_a,
    0x8: pygame.K_s,
    0x9: pygame.K_d,
    0xE: pygame.K_f,
    0xA: pygame.K_z,
    0x0: pygame.K_x,
    0xB: pygame.K_c,
    0xF: pygame.K_v,
}

# Physical key -> keypad index
KEYPAD_LOOKUP = {physical: index for index, physical in KEY_MAPPINGS.items()}


def HANDLE_KEY_EVENT(cpu, event):
    """
    Forward a KEYDOWN / KEYUP event to the keypad line it is mapped to.

    Returns True when the event was a keypad key.
    """
    if event.type not in (pygame.KEYDOWN, pygame.KEYUP):
        return False

    index = KEYPAD_LOOKUP.get(event.key)
    if index is None:
        return False

    cpu.SET_KEY(index, event.type == pygame.KEYDOWN)
    return True

"""Enumerations for map regions, keyboard keys and mouse buttons."""

from __future__ import annotations

from enum import IntEnum, IntFlag, auto


class _ZeroBased(IntEnum):
    """Integer enumeration whose automatic values start at zero."""

    @staticmethod
    def _generate_next_value_(name, start, count, last_values):
        return count


class RegionId(_ZeroBased):
    """Identifier of a map region."""

    NONE = auto()
    ACT1_TOWN = auto()
    ACT1_WILDERNESS = auto()
    ACT1_CAVE = auto()
    ACT1_CRYPT = auto()
    ACT1_MONESTARY = auto()
    ACT1_COURTYARD = auto()
    ACT1_BARRACKS = auto()
    ACT1_JAIL = auto()
    ACT1_CATHEDRAL = auto()
    ACT1_CATACOMBS = auto()
    ACT1_TRISTRAM = auto()
    ACT2_TOWN = auto()
    ACT2_SEWER = auto()
    ACT2_HAREM = auto()
    ACT2_BASEMENT = auto()
    ACT2_DESERT = auto()
    ACT2_TOMB = auto()
    ACT2_LAIR = auto()
    ACT2_ARCANE = auto()
    ACT3_TOWN = auto()
    ACT3_JUNGLE = auto()
    ACT3_KURAST = auto()
    ACT3_SPIDER = auto()
    ACT3_DUNGEON = auto()
    ACT3_SEWER = auto()
    ACT4_TOWN = auto()
    ACT4_MESA = auto()
    ACT4_LAVA = auto()
    ACT5_TOWN = auto()
    ACT5_SIEGE = auto()
    ACT5_BARRICADE = auto()
    ACT5_TEMPLE = auto()
    ACT5_ICE_CAVES = auto()
    ACT5_BAAL = auto()
    ACT5_LAVA = auto()


class Key(_ZeroBased):
    """A button on a traditional keyboard."""

    DIGIT_0 = auto()
    DIGIT_1 = auto()
    DIGIT_2 = auto()
    DIGIT_3 = auto()
    DIGIT_4 = auto()
    DIGIT_5 = auto()
    DIGIT_6 = auto()
    DIGIT_7 = auto()
    DIGIT_8 = auto()
    DIGIT_9 = auto()
    A = auto()
    B = auto()
    C = auto()
    D = auto()
    E = auto()
    F = auto()
    G = auto()
    H = auto()
    I = auto()  # noqa: E741
    J = auto()
    K = auto()
    L = auto()
    M = auto()
    N = auto()
    O = auto()  # noqa: E741
    P = auto()
    Q = auto()
    R = auto()
    S = auto()
    T = auto()
    U = auto()
    V = auto()
    W = auto()
    X = auto()
    Y = auto()
    Z = auto()
    APOSTROPHE = auto()
    BACKSLASH = auto()
    BACKSPACE = auto()
    CAPS_LOCK = auto()
    COMMA = auto()
    DELETE = auto()
    DOWN = auto()
    END = auto()
    ENTER = auto()
    EQUAL = auto()
    ESCAPE = auto()
    F1 = auto()
    F2 = auto()
    F3 = auto()
    F4 = auto()
    F5 = auto()
    F6 = auto()
    F7 = auto()
    F8 = auto()
    F9 = auto()
    F10 = auto()
    F11 = auto()
    F12 = auto()
    GRAVE_ACCENT = auto()
    HOME = auto()
    INSERT = auto()
    KP_0 = auto()
    KP_1 = auto()
    KP_2 = auto()
    KP_3 = auto()
    KP_4 = auto()
    KP_5 = auto()
    KP_6 = auto()
    KP_7 = auto()
    KP_8 = auto()
    KP_9 = auto()
    KP_ADD = auto()
    KP_DECIMAL = auto()
    KP_DIVIDE = auto()
    KP_ENTER = auto()
    KP_EQUAL = auto()
    KP_MULTIPLY = auto()
    KP_SUBTRACT = auto()
    LEFT = auto()
    LEFT_BRACKET = auto()
    MENU = auto()
    MINUS = auto()
    NUM_LOCK = auto()
    PAGE_DOWN = auto()
    PAGE_UP = auto()
    PAUSE = auto()
    PERIOD = auto()
    PRINT_SCREEN = auto()
    RIGHT = auto()
    RIGHT_BRACKET = auto()
    SCROLL_LOCK = auto()
    SEMICOLON = auto()
    SLASH = auto()
    SPACE = auto()
    TAB = auto()
    UP = auto()
    ALT = auto()
    CONTROL = auto()
    SHIFT = auto()
    TILDE = auto()
    MOUSE3 = auto()
    MOUSE4 = auto()
    MOUSE5 = auto()
    MOUSE_WHEEL_UP = auto()
    MOUSE_WHEEL_DOWN = auto()

    MIN = DIGIT_0
    MAX = MOUSE_WHEEL_DOWN


class KeyMod(IntFlag):
    """Modifier keys held during a key action."""

    ALT = 1
    CONTROL = 2
    SHIFT = 4


class MouseButton(_ZeroBased):
    """A button of a traditional three-button mouse."""

    LEFT = auto()
    MIDDLE = auto()
    RIGHT = auto()

    MIN = LEFT
    MAX = RIGHT


class MouseButtonMod(IntFlag):
    """Modified mouse button actions."""

    LEFT = 1
    MIDDLE = 2
    RIGHT = 4
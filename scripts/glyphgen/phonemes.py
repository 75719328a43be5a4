"""Phoneme and grammar tables used by the word synthesizer."""

FORMATIVE_TYPES = ["UNF/C", "FRM"]
SPECIFICATIONS = ["BSC", "CTE", "CSV", "OBJ"]
CASES = ["THM", "ABS", "ERG", "AFF", "STM", "INS"]

# Dense formatives carry a Vn value and a slot V affix more often than not.
DENSE_VN = ["RTR", "PRG", "REP", "PCL", "CNT", "ATP", "DUP", "MNO", "1:BEN", "3:DET"]
DENSE_SLOT_V_CS = ["k", "t", "r", "s", "c", "kl", "kr"]
SLOT_V_AFFIX_TYPES = [1, 2]
SLOT_V_AFFIX_DEGREES = [1, 2, 3, 4, 5, 6, 7, 8, 9]

START_ONSETS = [
    "m", "k", "b", "t", "d", "n", "r", "s", "l", "v", "g", "p", "f", "h", "z",
    "sh", "ch", "th", "dr", "kr", "gr", "br", "tr", "kl", "bl", "st", "sk",
    "sp", "sn", "sm", "pl", "pr",
]
MID_ONSETS = START_ONSETS + ["y", "w", "nj"]
VOWELS = ["e", "i", "o", "u", "a", "ai", "ei", "ia", "io", "oa", "ou"]
# Empty codas are repeated on purpose: they weight open syllables.
CODAS = [
    "", "", "", "n", "r", "l", "s", "m", "k", "t", "d", "g", "sh", "ch", "j",
    "nj", "nd", "rk", "rt",
]

TINY_VOWELS = ["e", "i", "o", "u", "a"]
TINY_CODAS = ["", "n", "r", "l", "s", "k", "t"]

LETTER_STARTS = [
    "e", "i", "o", "u", "b", "c", "d", "f", "g", "h", "j", "k", "l", "m", "n",
    "p", "q", "r", "s", "t", "v", "w", "x", "y", "z", "ch", "sh", "th", "kh",
    "ph", "ts", "tr", "kr", "gr", "pl", "br", "dr", "st", "sk", "sp", "sn",
    "sm", "hl", "hr", "hm", "hn",
]
LETTER_PARTS = [
    "a", "e", "i", "o", "u", "w", "y", "h", "r", "l", "m", "n", "p", "t", "k",
    "s", "f", "v", "z", "ch", "sh", "th", "kh", "ts", "tr", "kr", "gr", "pl",
    "br", "dr", "st", "sk", "sp", "sn", "sm", "ae", "ai", "ei", "io", "ou",
    "oa", "ui", "ia", "eo", "ue", "'",
]

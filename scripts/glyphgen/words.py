"""
Candidate word synthesis.

A WordSynthesizer rolls a generation mode per attempt, builds a candidate with
that mode and then applies soft acceptance biases. Grammatical modes go through
an injected word engine; the remaining modes are phonotactic and only use the
tables in ``phonemes``.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

from . import phonemes
from .rng import SeededStream

MODE_FORMATIVE = "formative"
MODE_DENSE_FORMATIVE = "dense_formative"
MODE_SYNTHETIC = "synthetic"
MODE_TINY = "tiny"
MODE_LETTER_SALAD = "letter_salad"
MODE_PREFIXED_SYNTHETIC = "prefixed_synthetic"
MODE_FALLBACK = "fallback"

FALLBACK_WORD = "Q2mare"
SYNTHETIC_PREFIX = "Q2"
FORMATIVE_TRIES = 50
DENSE_FORMATIVE_TRIES = 80
SYNTHETIC_MAX_LENGTH = 12
TINY_MAX_LENGTH = 5

# Tuned aesthetic biases, not correctness rules.
CODA_BETWEEN_SYLLABLES_PROB = 0.5
FINAL_CODA_PROB = 0.72
TINY_CODA_PROB = 0.35
FORMATIVE_SHORTCUT_PROB = 0.5
DENSE_SLOT_V_AFFIX_PROB = 0.75
DENSE_VN_PROB = 0.7
REJECT_NON_ASCII_PROB = 0.9


@dataclass
class SlotVAffix:
    type: int
    degree: int
    cs: str


@dataclass
class WordConstraints:
    """Structured request handed to the word engine."""

    type: str
    root: str
    shortcut: bool = False
    specification: Optional[str] = None
    case: Optional[str] = None
    vn: Optional[str] = None
    slot_v_affixes: Optional[List[SlotVAffix]] = None


class WordEngine(Protocol):
    """Grammar engine that turns constraints into a word string."""

    roots: Sequence[str]

    def generate_word(self, constraints: WordConstraints) -> str:
        """Return a word or raise ValueError for an invalid combination."""
        ...


@dataclass(frozen=True)
class Candidate:
    text: str
    mode: str


@dataclass
class SynthesisProfile:
    """Mode weights, retry ceiling and acceptance biases for one builder."""

    modes: Tuple[Tuple[str, float], ...]
    attempt_limit: int
    reject_leading_aw_prob: float
    reject_leading_a_prob: float
    reject_non_ascii_prob: float = REJECT_NON_ASCII_PROB
    fallback_word: str = FALLBACK_WORD
    thresholds: Tuple[Tuple[str, float], ...] = field(init=False)

    def __post_init__(self):
        total = sum(weight for _, weight in self.modes)
        if not self.modes or total <= 0:
            raise ValueError("Synthesis profile needs at least one mode with positive weight")
        cumulative = 0.0
        thresholds = []
        for mode, weight in self.modes:
            cumulative += weight / total
            thresholds.append((mode, cumulative))
        self.thresholds = tuple(thresholds)

    def pick_mode(self, roll: float) -> str:
        for mode, threshold in self.thresholds[:-1]:
            if roll < threshold:
                return mode
        return self.thresholds[-1][0]

    def with_overrides(self, config: Optional[Dict[str, Any]]) -> "SynthesisProfile":
        """Return a copy with values from a ``word_synthesis`` config section."""
        if not config:
            return self
        modes = config.get("modes")
        return SynthesisProfile(
            modes=tuple((str(k), float(v)) for k, v in modes.items()) if modes else self.modes,
            attempt_limit=int(config.get("attempt_limit", self.attempt_limit)),
            reject_leading_aw_prob=float(config.get("reject_leading_aw_prob", self.reject_leading_aw_prob)),
            reject_leading_a_prob=float(config.get("reject_leading_a_prob", self.reject_leading_a_prob)),
            reject_non_ascii_prob=float(config.get("reject_non_ascii_prob", self.reject_non_ascii_prob)),
            fallback_word=str(config.get("fallback_word", self.fallback_word)),
        )


POOL_PROFILE = SynthesisProfile(
    modes=(
        (MODE_FORMATIVE, 0.08),
        (MODE_TINY, 0.20),
        (MODE_SYNTHETIC, 0.64),
        (MODE_PREFIXED_SYNTHETIC, 0.08),
    ),
    attempt_limit=160,
    reject_leading_aw_prob=0.95,
    reject_leading_a_prob=0.8,
)

PHRASE_PROFILE = SynthesisProfile(
    modes=(
        (MODE_DENSE_FORMATIVE, 0.58),
        (MODE_LETTER_SALAD, 0.24),
        (MODE_SYNTHETIC, 0.08),
        (MODE_TINY, 0.06),
        (MODE_FORMATIVE, 0.04),
    ),
    attempt_limit=220,
    reject_leading_aw_prob=1.0,
    reject_leading_a_prob=1.0,
)


def usable_roots(roots: Optional[Sequence[str]]) -> List[str]:
    """Drop empty roots and bracketed placeholder roots."""
    if not roots:
        return []
    return [root for root in roots if isinstance(root, str) and root and "[" not in root]


def _accept_with_bias(stream: SeededStream, reject_prob: float) -> bool:
    if reject_prob >= 1.0:
        return False
    if reject_prob <= 0.0:
        return True
    return not stream.random() < reject_prob


class WordSynthesizer:
    def __init__(
        self,
        stream: SeededStream,
        engine: Optional[WordEngine] = None,
        profile: SynthesisProfile = POOL_PROFILE,
    ):
        self.stream = stream
        self.engine = engine
        self.profile = profile
        self.roots = usable_roots(getattr(engine, "roots", None))

    def __call__(self) -> Candidate:
        return self.next_word()

    def next_word(self) -> Candidate:
        """Generate one accepted candidate, or the fallback word when the ceiling is hit."""
        for _ in range(self.profile.attempt_limit):
            mode = self.profile.pick_mode(self.stream.random())
            text = self._generate(mode)

            if not text:
                continue
            if self._rejects_leading_a(text):
                continue
            if self._is_non_ascii(text) and not _accept_with_bias(self.stream, self.profile.reject_non_ascii_prob):
                continue

            return Candidate(text, mode)

        return Candidate(self.profile.fallback_word, MODE_FALLBACK)

    def _generate(self, mode: str) -> Optional[str]:
        if mode == MODE_FORMATIVE:
            return self.formative_word()
        if mode == MODE_DENSE_FORMATIVE:
            return self.dense_formative_word()
        if mode == MODE_SYNTHETIC:
            return self.synthetic_word()
        if mode == MODE_TINY:
            return self.tiny_word()
        if mode == MODE_LETTER_SALAD:
            return self.letter_salad_word()
        if mode == MODE_PREFIXED_SYNTHETIC:
            return SYNTHETIC_PREFIX + self.synthetic_word()
        raise ValueError(f"Unknown synthesis mode: {mode}")

    def _rejects_leading_a(self, text: str) -> bool:
        lower = text.lower()
        if lower.startswith("aw"):
            return not _accept_with_bias(self.stream, self.profile.reject_leading_aw_prob)
        if lower.startswith("a"):
            return not _accept_with_bias(self.stream, self.profile.reject_leading_a_prob)
        return False

    @staticmethod
    def _is_non_ascii(text: str) -> bool:
        return any(ord(ch) > 0x7F for ch in text)

    def _call_engine(self, constraints: WordConstraints) -> Optional[str]:
        try:
            return self.engine.generate_word(constraints)
        except ValueError:
            # Invalid combination; the caller draws a new one.
            return None

    def formative_word(self) -> Optional[str]:
        if self.engine is None or not self.roots:
            return None

        rng = self.stream
        for _ in range(FORMATIVE_TRIES):
            word_type = rng.item(phonemes.FORMATIVE_TYPES)
            constraints = WordConstraints(
                type=word_type,
                root=rng.item(self.roots),
                shortcut=rng.random() < FORMATIVE_SHORTCUT_PROB,
                specification=rng.item(phonemes.SPECIFICATIONS),
                case=rng.item(phonemes.CASES) if word_type == "UNF/C" else None,
            )
            word = self._call_engine(constraints)
            if word:
                return word
        return None

    def dense_formative_word(self) -> Optional[str]:
        if self.engine is None or not self.roots:
            return None

        rng = self.stream
        for _ in range(DENSE_FORMATIVE_TRIES):
            word_type = rng.item(phonemes.FORMATIVE_TYPES)
            slot_v_affixes = None
            if rng.random() < DENSE_SLOT_V_AFFIX_PROB:
                slot_v_affixes = [
                    SlotVAffix(
                        type=rng.item(phonemes.SLOT_V_AFFIX_TYPES),
                        degree=rng.item(phonemes.SLOT_V_AFFIX_DEGREES),
                        cs=rng.item(phonemes.DENSE_SLOT_V_CS),
                    )
                ]
            root = rng.item(self.roots)
            shortcut = rng.random() < FORMATIVE_SHORTCUT_PROB
            specification = rng.item(phonemes.SPECIFICATIONS)
            case = rng.item(phonemes.CASES) if word_type == "UNF/C" else None
            vn = rng.item(phonemes.DENSE_VN) if rng.random() < DENSE_VN_PROB else None

            word = self._call_engine(
                WordConstraints(
                    type=word_type,
                    root=root,
                    shortcut=shortcut,
                    specification=specification,
                    case=case,
                    vn=vn,
                    slot_v_affixes=slot_v_affixes,
                )
            )
            if word:
                return word
        return None

    def synthetic_word(self) -> str:
        """Phonotactic word of 2-4 syllables."""
        rng = self.stream
        syllables = rng.randint(2, 4)
        word = rng.item(phonemes.START_ONSETS) + rng.item(phonemes.VOWELS)

        for _ in range(1, syllables):
            if rng.random() < CODA_BETWEEN_SYLLABLES_PROB:
                word += rng.item(phonemes.CODAS)
            word += rng.item(phonemes.MID_ONSETS)
            word += rng.item(phonemes.VOWELS)

        if rng.random() < FINAL_CODA_PROB:
            word += rng.item(phonemes.CODAS)

        return word[:SYNTHETIC_MAX_LENGTH]

    def tiny_word(self) -> str:
        rng = self.stream
        word = rng.item(phonemes.START_ONSETS) + rng.item(phonemes.TINY_VOWELS)
        if rng.random() < TINY_CODA_PROB:
            word += rng.item(phonemes.TINY_CODAS)
        return word[:TINY_MAX_LENGTH]

    def letter_salad_word(self) -> str:
        rng = self.stream
        target_length = rng.randint(3, 12)
        word = rng.item(phonemes.LETTER_STARTS)
        while len(word) < target_length:
            word += rng.item(phonemes.LETTER_PARTS)
        return word[:target_length]

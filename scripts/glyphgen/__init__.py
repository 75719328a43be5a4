from .config import load_config, get_builder_config, get_engine_specs
from .logging import setup_logger
from .paths import ensure_dir, get_generated_at
from .rng import SeededStream, resolve_seed, seed_summary, content_hash
from .render import RenderAdapter, load_engines
from .words import WordSynthesizer, POOL_PROFILE, PHRASE_PROFILE
from .pool_builder import GlyphPoolBuilder, PoolBuildOptions
from .phrase_builder import PhraseSliceBuilder, PhraseBuildOptions

__all__ = [
    'load_config', 'get_builder_config', 'get_engine_specs', 'setup_logger',
    'ensure_dir', 'get_generated_at', 'SeededStream', 'resolve_seed', 'seed_summary',
    'content_hash', 'RenderAdapter', 'load_engines', 'WordSynthesizer', 'POOL_PROFILE',
    'PHRASE_PROFILE', 'GlyphPoolBuilder', 'PoolBuildOptions', 'PhraseSliceBuilder',
    'PhraseBuildOptions'
]
